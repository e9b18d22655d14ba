"""Typed record for one CSV data row."""

from dataclasses import dataclass, field, fields
from typing import Any

# Column order used by the template and the recognised-column list
CSV_COLUMNS: tuple[str, ...] = (
    "subject",
    "topic",
    "exam_type",
    "year",
    "difficulty",
    "question_text",
    "passage",
    "passage_id",
    "question_image_url",
    "image_alt_text",
    "image_width",
    "image_height",
    "option_a",
    "option_b",
    "option_c",
    "option_d",
    "option_e",
    "correct_answer",
    "hint",
    "solution",
    "further_study_links",
)


def normalize_text(value: str | None) -> str | None:
    """
    Duplicate-detection key, the Python twin of SQL ``lower(trim(question_text))``.

    Only spaces are trimmed, as SQL ``trim`` does; tabs and newlines are part of the
    key. SQLite's ``lower`` folds ASCII letters only, so on SQLite stored texts that
    differ from a candidate only in non-ASCII capitals are not matched. PostgreSQL
    folds them.
    """
    if value is None:
        return None
    value = value.strip(" ").lower()
    return value or None

REQUIRED_COLUMNS: tuple[str, ...] = (
    "subject",
    "topic",
    "exam_type",
    "year",
    "question_text",
    "option_a",
    "option_b",
    "correct_answer",
)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class ImportRow:
    """One CSV line. Every column is a nullable string; blank cells become None."""

    row_number: int
    subject: str | None = None
    topic: str | None = None
    exam_type: str | None = None
    year: str | None = None
    difficulty: str | None = None
    question_text: str | None = None
    passage: str | None = None
    passage_id: str | None = None
    question_image_url: str | None = None
    image_alt_text: str | None = None
    image_width: str | None = None
    image_height: str | None = None
    option_a: str | None = None
    option_b: str | None = None
    option_c: str | None = None
    option_d: str | None = None
    option_e: str | None = None
    correct_answer: str | None = None
    hint: str | None = None
    solution: str | None = None
    further_study_links: str | None = None
    raw: dict[str, str] = field(default_factory=dict, repr=False)

    @classmethod
    def from_record(cls, row_number: int, record: dict[str, str]) -> "ImportRow":
        """Build a row from a header-keyed record; unknown columns stay in ``raw``."""
        values = {name: _clean(record.get(name)) for name in CSV_COLUMNS}
        return cls(row_number=row_number, raw=dict(record), **values)

    def get(self, column: str) -> str | None:
        """Cleaned value of a recognised column."""
        return getattr(self, column, None)

    def raw_value(self, column: str) -> Any:
        """Value as it appeared in the file (None if the column is absent)."""
        return self.raw.get(column)

    def option(self, letter: str) -> str | None:
        """Option text for an answer letter (A-E)."""
        return self.get(f"option_{letter.lower()}")

    @property
    def normalized_question_text(self) -> str | None:
        """Question text key for duplicate detection."""
        return normalize_text(self.question_text)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "raw"}
