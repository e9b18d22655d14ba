"""Question bank model."""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from prepbank.db.base import Base, JSONType


class QuestionStatus(str, PyEnum):
    """Question lifecycle status."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


ANSWER_LETTERS = ("A", "B", "C", "D", "E")


class Question(Base):
    """Multiple-choice question with optional passage and image."""

    __tablename__ = "questions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    subject_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("subjects.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )
    topic_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("topics.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )

    question_text = Column(Text, nullable=False)
    passage = Column(Text, nullable=True)
    passage_id = Column(String(100), nullable=True)  # Groups questions sharing a passage

    # Image (alt text is mandatory whenever an image URL is set)
    question_image_url = Column(Text, nullable=True)
    image_alt_text = Column(Text, nullable=True)
    image_width = Column(Integer, nullable=True)
    image_height = Column(Integer, nullable=True)

    option_a = Column(Text, nullable=False)
    option_b = Column(Text, nullable=False)
    option_c = Column(Text, nullable=True)
    option_d = Column(Text, nullable=True)
    option_e = Column(Text, nullable=True)
    correct_answer = Column(String(1), nullable=False)

    explanation = Column(Text, nullable=True)
    hint = Column(Text, nullable=True)
    solution = Column(Text, nullable=True)
    further_study_links = Column(JSONType, nullable=True)  # list[str]

    difficulty = Column(String(10), nullable=True)  # Easy / Medium / Hard
    exam_type = Column(String(10), nullable=True)  # WAEC / JAMB / NECO / GCE
    exam_year = Column(Integer, nullable=True)

    status = Column(
        Enum(
            QuestionStatus,
            name="question_status",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=QuestionStatus.DRAFT,
    )

    # Import batch handle; NULL for manually created questions
    import_report_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("import_reports.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    subject = relationship("Subject")
    topic = relationship("Topic")
    import_report = relationship("ImportReport", back_populates="questions")

    __table_args__ = (
        CheckConstraint(
            "correct_answer IN ('A', 'B', 'C', 'D', 'E')", name="ck_question_correct_answer"
        ),
        CheckConstraint(
            "question_image_url IS NULL OR image_alt_text IS NOT NULL",
            name="ck_question_image_alt_text",
        ),
        CheckConstraint("image_width IS NULL OR image_width > 0", name="ck_question_image_width"),
        CheckConstraint(
            "image_height IS NULL OR image_height > 0", name="ck_question_image_height"
        ),
        Index("ix_questions_subject_topic", "subject_id", "topic_id"),
        Index("ix_questions_status", "status"),
        Index("ix_questions_passage_id", "passage_id"),
        Index("ix_questions_import_report_id", "import_report_id"),
    )
