import logging
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from yacht_maintenance.config.settings import get_settings
from yacht_maintenance.errors import ValidationFailedError
from yacht_maintenance.models.orm import ConditionAssessment, to_decimal, utcnow
from yacht_maintenance.models.schemas import AssessmentCreate, Priority, RecordCreate
from yacht_maintenance.notifications import notify, recipient_for
from yacht_maintenance.scheduling.records import create_record
from yacht_maintenance.tracking.components import (
    apply_inspection,
    component_for_yacht,
    get_yacht,
)

logger = logging.getLogger(__name__)


def list_assessments(
    session: Session, yacht_id: int, component_id: int | None = None
) -> list[ConditionAssessment]:
    stmt = select(ConditionAssessment).where(ConditionAssessment.yacht_id == yacht_id)
    if component_id is not None:
        stmt = stmt.where(ConditionAssessment.component_id == component_id)
    return list(
        session.scalars(
            stmt.order_by(
                ConditionAssessment.assessment_date.desc(),
                ConditionAssessment.id.desc(),
            )
        ).all()
    )


def record_assessment(
    session: Session, data: AssessmentCreate, actor_id: int | None = None
) -> ConditionAssessment:
    """File a condition assessment and apply it to the assessed component.

    The component's ``current_condition`` becomes the assessment's score in
    the same transaction. A score at or below the corrective threshold
    schedules critical corrective work a week out and alerts the owner.
    """
    yacht = get_yacht(session, data.yacht_id)
    component = component_for_yacht(session, yacht.id, data.component_id)
    assessor_id = data.assessor_id or actor_id
    if assessor_id is None:
        raise ValidationFailedError("An assessor is required")

    assessed_at = data.assessment_date or utcnow()
    assessment = ConditionAssessment(
        yacht_id=yacht.id,
        component_id=data.component_id,
        assessor_id=assessor_id,
        assessment_type=data.assessment_type,
        overall_score=data.overall_score,
        visual_score=data.visual_score,
        functional_score=data.functional_score,
        structural_score=data.structural_score,
        condition=data.condition.value,
        priority=data.priority.value,
        estimated_cost=to_decimal(data.estimated_cost),
        issues_found=[i.model_dump(mode="json") for i in data.issues_found],
        recommendations=list(data.recommendations),
        notes=data.notes,
        assessment_date=assessed_at,
        next_assessment_date=data.next_assessment_date,
    )
    session.add(assessment)

    if component is not None:
        component.current_condition = to_decimal(data.overall_score)
        apply_inspection(component, assessed_at)
    session.flush()

    settings = get_settings()
    if data.overall_score <= settings.corrective_condition_threshold:
        if component is not None:
            subject, category = component.component_name, component.component_type
        else:
            subject, category = yacht.name, "general"
        create_record(
            session,
            RecordCreate(
                yacht_id=yacht.id,
                component_id=data.component_id,
                task_type="corrective_maintenance",
                category=category,
                description=(
                    f"Corrective work after {data.condition.value} assessment "
                    f"of {subject}"
                ),
                priority=Priority.CRITICAL,
                scheduled_date=assessed_at + timedelta(days=7),
                estimated_cost=(
                    data.estimated_cost
                    if data.estimated_cost is not None
                    else settings.default_corrective_estimate
                ),
            ),
            actor_id=actor_id,
        )
        notify(
            session,
            recipient_for(yacht, actor_id),
            "condition_alert",
            "Critical Condition Alert",
            f"{subject} assessed at {data.overall_score}/100 ({data.condition.value})",
            data={
                "yacht_id": yacht.id,
                "component_id": data.component_id,
                "assessment_id": assessment.id,
            },
            priority="critical",
            action_url=f"/maintenance?yacht={yacht.id}&tab=assessments",
        )
        logger.info(
            "Condition %d on yacht %d triggered corrective maintenance",
            data.overall_score,
            yacht.id,
        )

    return assessment
