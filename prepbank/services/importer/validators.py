"""Validators for import engine."""

import re
from typing import Any, Iterable

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func
from sqlalchemy.orm import Session

from prepbank.models.question import ANSWER_LETTERS, Question
from prepbank.services.importer.import_row import REQUIRED_COLUMNS, ImportRow, normalize_text
from prepbank.services.importer.reference_resolver import ReferenceResolver, Resolution

EXAM_TYPES = ("WAEC", "JAMB", "NECO", "GCE")
DIFFICULTIES = ("easy", "medium", "hard")
YEAR_MIN = 1900
YEAR_MAX = 2100

# Stay well under SQLite's 999 and Postgres' 32767 bound-parameter limits
EXISTENCE_CHUNK_SIZE = 500

_YEAR_RE = re.compile(r"[0-9]{4}")
_POSITIVE_INT_RE = re.compile(r"[0-9]+")
_PASSAGE_ID_RE = re.compile(r"[A-Za-z0-9_-]+")
_url_adapter = TypeAdapter(AnyUrl)


def fetch_existing_texts(db: Session, texts: Iterable[str]) -> set[str]:
    """
    Return the subset of normalised texts that already exist as stored questions.

    One query per chunk of candidates; chunking only bounds the IN-list size.
    """
    candidates = sorted({t for t in texts if t})
    existing: set[str] = set()
    normalized = func.lower(func.trim(Question.question_text))
    for start in range(0, len(candidates), EXISTENCE_CHUNK_SIZE):
        chunk = candidates[start : start + EXISTENCE_CHUNK_SIZE]
        rows = db.query(normalized).filter(normalized.in_(chunk)).distinct().all()
        existing.update(r[0] for r in rows)
    return existing


def is_valid_url(value: str) -> bool:
    try:
        url = _url_adapter.validate_python(value)
    except PydanticValidationError:
        return False
    return bool(url.scheme and url.host)


def is_positive_int(value: str) -> bool:
    return bool(_POSITIVE_INT_RE.fullmatch(value)) and int(value) > 0


class ValidationError:
    """Validation error for a specific row and field."""

    def __init__(
        self,
        row: int,
        field: str,
        message: str,
        code: str,
        value: Any = None,
    ):
        """
        Initialize validation error.

        Args:
            row: CSV row number (header is row 1)
            field: Field name that failed validation
            message: Human-readable message
            code: Error code (stable identifier)
            value: Offending raw value
        """
        self.row = row
        self.field = field
        self.message = message
        self.code = code
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON responses."""
        return {
            "row": self.row,
            "field": self.field,
            "message": self.message,
            "value": self.value,
            "code": self.code,
        }

    def __repr__(self) -> str:
        return f"ValidationError(row={self.row}, field={self.field!r}, code={self.code!r})"


class QuestionValidator:
    """
    Validate import rows before insertion.

    One instance per import. It holds the per-file duplicate set and the stored
    question texts fetched up front, so rows must be validated in file order.
    """

    # Error codes (stable)
    MISSING_REQUIRED = "MISSING_REQUIRED"
    SUBJECT_NOT_FOUND = "SUBJECT_NOT_FOUND"
    TOPIC_NOT_FOUND = "TOPIC_NOT_FOUND"
    TOPIC_SUBJECT_MISMATCH = "TOPIC_SUBJECT_MISMATCH"
    INVALID_EXAM_TYPE = "INVALID_EXAM_TYPE"
    INVALID_YEAR = "INVALID_YEAR"
    INVALID_DIFFICULTY = "INVALID_DIFFICULTY"
    INVALID_CORRECT_ANSWER = "INVALID_CORRECT_ANSWER"
    MISSING_CORRECT_OPTION = "MISSING_CORRECT_OPTION"
    INVALID_IMAGE_URL = "INVALID_IMAGE_URL"
    MISSING_ALT_TEXT = "MISSING_ALT_TEXT"
    INVALID_IMAGE_DIMENSION = "INVALID_IMAGE_DIMENSION"
    INVALID_PASSAGE_ID = "INVALID_PASSAGE_ID"
    DUPLICATE_IN_FILE = "DUPLICATE_IN_FILE"
    DUPLICATE_IN_DATABASE = "DUPLICATE_IN_DATABASE"

    def __init__(self, resolver: ReferenceResolver, existing_texts: set[str] | None = None):
        """
        Initialize validator.

        Args:
            resolver: Per-import subject/topic lookup
            existing_texts: Normalised texts of already-stored questions
        """
        self.resolver = resolver
        self.existing_texts = existing_texts or set()
        self.seen_texts: set[str] = set()

    @classmethod
    def for_rows(cls, db: Session, rows: list[ImportRow]) -> "QuestionValidator":
        """Build the resolver and fetch stored duplicates for a whole file."""
        resolver = ReferenceResolver.from_db(db)
        existing = fetch_existing_texts(db, (r.normalized_question_text for r in rows))
        return cls(resolver, existing)

    def validate(self, row: ImportRow) -> tuple[list[ValidationError], Resolution]:
        """
        Validate one row and resolve its references.

        Args:
            row: Parsed import row

        Returns:
            (errors, resolution); the row is insertable when errors is empty
        """
        errors: list[ValidationError] = []

        def add(field: str, code: str, message: str) -> None:
            errors.append(ValidationError(row.row_number, field, message, code, row.get(field)))

        for column in REQUIRED_COLUMNS:
            if row.get(column) is None:
                add(column, self.MISSING_REQUIRED, "Required field is missing or empty")

        resolution = self.resolver.resolve(row.subject, row.topic)
        if resolution.subject_error:
            add("subject", self.SUBJECT_NOT_FOUND, resolution.subject_error)
        if resolution.topic_error:
            code = (
                self.TOPIC_SUBJECT_MISMATCH if resolution.topic_mismatch else self.TOPIC_NOT_FOUND
            )
            add("topic", code, resolution.topic_error)

        if row.exam_type is not None and row.exam_type.upper() not in EXAM_TYPES:
            add(
                "exam_type",
                self.INVALID_EXAM_TYPE,
                f"Exam type must be one of: {', '.join(EXAM_TYPES)}",
            )

        if row.year is not None and not (
            _YEAR_RE.fullmatch(row.year) and YEAR_MIN <= int(row.year) <= YEAR_MAX
        ):
            add(
                "year",
                self.INVALID_YEAR,
                f"Year must be a valid 4-digit year between {YEAR_MIN} and {YEAR_MAX}",
            )

        if row.difficulty is not None and row.difficulty.lower() not in DIFFICULTIES:
            add(
                "difficulty",
                self.INVALID_DIFFICULTY,
                f"Difficulty must be one of: {', '.join(DIFFICULTIES)}",
            )

        if row.correct_answer is not None:
            letter = row.correct_answer.upper()
            if letter not in ANSWER_LETTERS:
                add(
                    "correct_answer",
                    self.INVALID_CORRECT_ANSWER,
                    f"Correct answer must be one of: {', '.join(ANSWER_LETTERS)}",
                )
            elif row.option(letter) is None:
                add(
                    "correct_answer",
                    self.MISSING_CORRECT_OPTION,
                    f'Correct answer "{letter}" has no corresponding option '
                    f"(option_{letter.lower()} is empty)",
                )

        if row.question_image_url is not None:
            if not is_valid_url(row.question_image_url):
                add(
                    "question_image_url",
                    self.INVALID_IMAGE_URL,
                    "Invalid URL format for question image",
                )
            if row.image_alt_text is None:
                add(
                    "image_alt_text",
                    self.MISSING_ALT_TEXT,
                    "Alt text is required when question_image_url is provided",
                )

        for dimension in ("image_width", "image_height"):
            value = row.get(dimension)
            if value is not None and not is_positive_int(value):
                label = "width" if dimension == "image_width" else "height"
                add(
                    dimension,
                    self.INVALID_IMAGE_DIMENSION,
                    f"Image {label} must be a positive integer",
                )

        if row.passage_id is not None and not _PASSAGE_ID_RE.fullmatch(row.passage_id):
            add(
                "passage_id",
                self.INVALID_PASSAGE_ID,
                "Passage ID must contain only letters, numbers, underscores, and hyphens",
            )

        text_key = normalize_text(row.question_text)
        if text_key is not None:
            if text_key in self.seen_texts:
                add("question_text", self.DUPLICATE_IN_FILE, "Duplicate question text found in file")
            else:
                self.seen_texts.add(text_key)
                if text_key in self.existing_texts:
                    add(
                        "question_text",
                        self.DUPLICATE_IN_DATABASE,
                        "Question already exists in database",
                    )

        return errors, resolution

    @classmethod
    def is_duplicate(cls, errors: list[ValidationError]) -> bool:
        return any(e.code in (cls.DUPLICATE_IN_FILE, cls.DUPLICATE_IN_DATABASE) for e in errors)
