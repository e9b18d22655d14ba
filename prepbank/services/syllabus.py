"""Subject and topic administration."""

import re
from uuid import UUID

from fastapi import status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from prepbank.core.app_exceptions import AppError, raise_app_error, raise_not_found
from prepbank.models.syllabus import Subject, Topic

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Lowercase; runs of non-alphanumerics become '-'; no leading/trailing '-'."""
    return _NON_ALNUM_RE.sub("-", name.strip().lower()).strip("-")


def list_subjects(db: Session, include_inactive: bool = True) -> list[Subject]:
    query = db.query(Subject)
    if not include_inactive:
        query = query.filter(Subject.status == "active")
    return query.order_by(Subject.display_order, Subject.name).all()


def list_topics(db: Session, subject_id: UUID | None = None) -> list[Topic]:
    query = db.query(Topic)
    if subject_id is not None:
        query = query.filter(Topic.subject_id == subject_id)
    return query.order_by(Topic.display_order, Topic.name).all()


def create_subject(
    db: Session,
    name: str,
    description: str | None = None,
    display_order: int = 0,
    status_value: str = "active",
) -> Subject:
    """Create a subject; 409 SUBJECT_EXISTS on a name or slug clash."""
    name = name.strip()
    slug = slugify(name)
    if not slug:
        raise_app_error(
            status.HTTP_400_BAD_REQUEST,
            "INVALID_NAME",
            "Subject name must contain at least one letter or digit",
        )

    existing = (
        db.query(Subject)
        .filter((func.lower(Subject.name) == name.lower()) | (Subject.slug == slug))
        .first()
    )
    if existing:
        raise_app_error(
            status.HTTP_409_CONFLICT,
            "SUBJECT_EXISTS",
            f"Subject '{name}' already exists",
            {"subject_id": str(existing.id)},
        )

    subject = Subject(
        name=name,
        slug=slug,
        description=description,
        display_order=display_order,
        status=status_value,
    )
    try:
        db.add(subject)
        db.commit()
        db.refresh(subject)
    except IntegrityError as e:
        db.rollback()
        raise AppError(
            status.HTTP_409_CONFLICT, "SUBJECT_EXISTS", f"Subject '{name}' already exists"
        ) from e
    return subject


def create_topic(
    db: Session,
    subject_id: UUID,
    name: str,
    description: str | None = None,
    display_order: int = 0,
    status_value: str = "active",
) -> Topic:
    """Create a topic under an existing subject; 409 TOPIC_EXISTS on a slug clash."""
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise_not_found("SUBJECT_NOT_FOUND", "Subject", subject_id=subject_id)

    name = name.strip()
    slug = slugify(name)
    if not slug:
        raise_app_error(
            status.HTTP_400_BAD_REQUEST,
            "INVALID_NAME",
            "Topic name must contain at least one letter or digit",
        )

    existing = db.query(Topic).filter(Topic.subject_id == subject_id, Topic.slug == slug).first()
    if existing:
        raise_app_error(
            status.HTTP_409_CONFLICT,
            "TOPIC_EXISTS",
            f"Topic '{name}' already exists in subject '{subject.name}'",
            {"topic_id": str(existing.id)},
        )

    topic = Topic(
        subject_id=subject_id,
        name=name,
        slug=slug,
        description=description,
        display_order=display_order,
        status=status_value,
    )
    try:
        db.add(topic)
        db.commit()
        db.refresh(topic)
    except IntegrityError as e:
        db.rollback()
        raise AppError(
            status.HTTP_409_CONFLICT,
            "TOPIC_EXISTS",
            f"Topic '{name}' already exists in subject '{subject.name}'",
        ) from e
    return topic
