from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from yacht_maintenance.errors import ValidationFailedError
from yacht_maintenance.models.schemas import (
    AssessmentCreate,
    ConditionLabel,
    IssueFound,
    label_for_score,
)
from yacht_maintenance.notifications import list_notifications
from yacht_maintenance.scheduling.records import list_records
from yacht_maintenance.tracking.assessments import list_assessments, record_assessment


class TestAssessmentCreate:
    def test_label_derived_from_score(self):
        data = AssessmentCreate(yacht_id=1, overall_score=78)
        assert data.condition == ConditionLabel.GOOD

    def test_score_derived_from_label(self):
        data = AssessmentCreate(yacht_id=1, condition="fair")
        assert data.overall_score == 60

    def test_score_or_label_required(self):
        with pytest.raises(ValidationError):
            AssessmentCreate(yacht_id=1)

    def test_score_range(self):
        with pytest.raises(ValidationError):
            AssessmentCreate(yacht_id=1, overall_score=101)

    @pytest.mark.parametrize(
        "score, label",
        [
            (100, ConditionLabel.EXCELLENT),
            (90, ConditionLabel.EXCELLENT),
            (75, ConditionLabel.GOOD),
            (50, ConditionLabel.FAIR),
            (30, ConditionLabel.POOR),
            (29, ConditionLabel.CRITICAL),
        ],
    )
    def test_label_thresholds(self, score, label):
        assert label_for_score(score) == label


class TestRecordAssessment:
    def test_updates_component_condition(
        self, session, sample_yacht, sample_components, staff_user, now
    ):
        engine = sample_components["engine"]
        assessment = record_assessment(
            session,
            AssessmentCreate(
                yacht_id=sample_yacht.id,
                component_id=engine.id,
                overall_score=67,
                assessment_date=now,
                issues_found=[IssueFound(issue="Worn belt", severity="medium")],
            ),
            actor_id=staff_user.id,
        )
        assert assessment.id is not None
        assert assessment.condition == "fair"
        assert assessment.assessor_id == staff_user.id
        assert assessment.issues_found[0]["issue"] == "Worn belt"
        assert float(engine.current_condition) == 67.0
        assert engine.last_inspection_date == now
        assert engine.next_maintenance_date == now + timedelta(days=180)

    def test_older_assessment_keeps_inspection_date(
        self, session, sample_yacht, sample_components, staff_user
    ):
        engine = sample_components["engine"]
        record_assessment(
            session,
            AssessmentCreate(
                yacht_id=sample_yacht.id,
                component_id=engine.id,
                overall_score=70,
                assessment_date=datetime(2024, 12, 1),
            ),
            actor_id=staff_user.id,
        )
        assert engine.last_inspection_date == datetime(2025, 1, 10)
        assert engine.next_maintenance_date >= engine.last_inspection_date

    def test_assessor_required(self, session, sample_yacht):
        with pytest.raises(ValidationFailedError):
            record_assessment(
                session, AssessmentCreate(yacht_id=sample_yacht.id, overall_score=80)
            )

    def test_explicit_assessor_wins(self, session, sample_yacht, owner, staff_user):
        assessment = record_assessment(
            session,
            AssessmentCreate(
                yacht_id=sample_yacht.id, assessor_id=owner.id, overall_score=80
            ),
            actor_id=staff_user.id,
        )
        assert assessment.assessor_id == owner.id

    def test_component_on_other_yacht_rejected(
        self, session, other_yacht, sample_components, staff_user
    ):
        with pytest.raises(ValidationFailedError):
            record_assessment(
                session,
                AssessmentCreate(
                    yacht_id=other_yacht.id,
                    component_id=sample_components["engine"].id,
                    overall_score=80,
                ),
                actor_id=staff_user.id,
            )

    def test_list_newest_first(self, session, sample_yacht, staff_user):
        for day in (1, 20, 10):
            record_assessment(
                session,
                AssessmentCreate(
                    yacht_id=sample_yacht.id,
                    overall_score=80,
                    assessment_date=datetime(2025, 5, day),
                ),
                actor_id=staff_user.id,
            )
        assessments = list_assessments(session, sample_yacht.id)
        assert [a.assessment_date.day for a in assessments] == [20, 10, 1]


class TestCorrectiveWork:
    def test_poor_condition_schedules_critical_work(
        self, session, sample_yacht, sample_components, staff_user, owner, now
    ):
        hull = sample_components["hull"]
        record_assessment(
            session,
            AssessmentCreate(
                yacht_id=sample_yacht.id,
                component_id=hull.id,
                condition="poor",
                assessment_date=now,
            ),
            actor_id=staff_user.id,
        )
        assert float(hull.current_condition) == 40.0

        records = list_records(session, sample_yacht.id)
        assert len(records) == 1
        record = records[0]
        assert record.task_type == "corrective_maintenance"
        assert record.priority == "critical"
        assert record.component_id == hull.id
        assert record.scheduled_date == now + timedelta(days=7)
        assert float(record.estimated_cost) == 1500.0

        types = {n.type for n in list_notifications(session, owner.id)}
        assert types == {"condition_alert", "maintenance_scheduled"}

    def test_assessment_estimate_used(self, session, sample_yacht, staff_user, now):
        record_assessment(
            session,
            AssessmentCreate(
                yacht_id=sample_yacht.id,
                overall_score=25,
                estimated_cost=3200,
                assessment_date=now,
            ),
            actor_id=staff_user.id,
        )
        record = list_records(session, sample_yacht.id)[0]
        assert float(record.estimated_cost) == 3200.0
        assert record.category == "general"

    def test_above_threshold_no_work(self, session, sample_yacht, staff_user, owner):
        record_assessment(
            session,
            AssessmentCreate(yacht_id=sample_yacht.id, overall_score=41),
            actor_id=staff_user.id,
        )
        assert list_records(session, sample_yacht.id) == []
        assert list_notifications(session, owner.id) == []
