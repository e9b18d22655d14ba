"""Admin endpoints for managing subjects and topics."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from prepbank.core.audit import log_admin_action
from prepbank.core.dependencies import require_admin
from prepbank.db.session import get_db
from prepbank.models.user import User
from prepbank.schemas.syllabus import SubjectCreate, SubjectOut, TopicCreate, TopicOut
from prepbank.services import syllabus

router = APIRouter(prefix="/admin", tags=["Admin - Syllabus"])


# ============================================================================
# Subjects
# ============================================================================


@router.get("/subjects", response_model=list[SubjectOut])
async def list_subjects(
    include_inactive: bool = True,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> list[SubjectOut]:
    """List subjects ordered by display order."""
    return [SubjectOut.model_validate(s) for s in syllabus.list_subjects(db, include_inactive)]


@router.post("/subjects", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
async def create_subject(
    payload: SubjectCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> SubjectOut:
    """Create a subject; the slug is derived from the name."""
    subject = syllabus.create_subject(
        db,
        payload.name,
        description=payload.description,
        display_order=payload.display_order,
        status_value=payload.status,
    )
    log_admin_action(
        db,
        admin_id=current_user.id,
        action="CREATE",
        entity_type="subject",
        entity_id=subject.id,
        details={"name": subject.name, "slug": subject.slug},
        request=request,
    )
    return SubjectOut.model_validate(subject)


# ============================================================================
# Topics
# ============================================================================


@router.get("/topics", response_model=list[TopicOut])
async def list_topics(
    subject_id: UUID | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> list[TopicOut]:
    """List topics, optionally for one subject."""
    return [TopicOut.model_validate(t) for t in syllabus.list_topics(db, subject_id)]


@router.post("/topics", response_model=TopicOut, status_code=status.HTTP_201_CREATED)
async def create_topic(
    payload: TopicCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> TopicOut:
    """Create a topic under an existing subject."""
    topic = syllabus.create_topic(
        db,
        payload.subject_id,
        payload.name,
        description=payload.description,
        display_order=payload.display_order,
        status_value=payload.status,
    )
    log_admin_action(
        db,
        admin_id=current_user.id,
        action="CREATE",
        entity_type="topic",
        entity_id=topic.id,
        details={"name": topic.name, "slug": topic.slug, "subject_id": str(topic.subject_id)},
        request=request,
    )
    return TopicOut.model_validate(topic)
