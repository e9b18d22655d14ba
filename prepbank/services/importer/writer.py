"""Writer for import engine - batched question inserts."""

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Sequence, TypeVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from prepbank.core.logging import get_logger
from prepbank.models.question import Question, QuestionStatus
from prepbank.services.importer.import_row import ImportRow

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_DIFFICULTY = "Medium"


@dataclass
class RowOutcome:
    """Result of one insert attempt."""

    row: int
    success: bool
    error: str | None = None
    question_id: UUID | None = None


@dataclass
class WriteResult:
    """Aggregated outcomes of a write run."""

    outcomes: list[RowOutcome] = field(default_factory=list)
    batches: int = 0

    @property
    def successful(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> list[RowOutcome]:
        return [o for o in self.outcomes if not o.success]


@dataclass
class WritableRow:
    """A validated row together with its resolved references."""

    row: ImportRow
    subject_id: UUID
    topic_id: UUID


def iter_batches(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size < 1:
        raise ValueError("batch size must be positive")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def split_links(value: str | None) -> list[str] | None:
    """Comma-joined links to a list; blank entries dropped."""
    if value is None:
        return None
    links = [part.strip() for part in value.split(",")]
    links = [link for link in links if link]
    return links or None


def normalize_difficulty(value: str | None) -> str:
    if value is None:
        return DEFAULT_DIFFICULTY
    return value.strip().capitalize()


def _to_int(value: str | None) -> int | None:
    return int(value) if value is not None else None


class QuestionWriter:
    """
    Write validated questions to database.

    Rows are inserted in fixed-size batches. Each row runs in its own SAVEPOINT so a
    storage error fails only that row; each batch is committed before the next one
    starts.
    """

    def __init__(
        self,
        db: Session,
        created_by: UUID | None,
        import_report_id: UUID | None,
        batch_size: int = 50,
        status: QuestionStatus = QuestionStatus.PUBLISHED,
    ):
        """
        Initialize writer.

        Args:
            db: Database session
            created_by: User ID creating questions
            import_report_id: Report the questions belong to
            batch_size: Rows per committed batch
            status: Lifecycle status for inserted questions
        """
        self.db = db
        self.created_by = created_by
        self.import_report_id = import_report_id
        self.batch_size = batch_size
        self.status = status

    def build_question(self, item: WritableRow) -> Question:
        """Map a validated row to a Question; raises ValueError on an invariant breach."""
        row = item.row
        if row.question_image_url and not row.image_alt_text:
            raise ValueError("Alt text is required when question_image_url is provided")
        if row.correct_answer is None:
            raise ValueError("Correct answer is required")

        return Question(
            subject_id=item.subject_id,
            topic_id=item.topic_id,
            question_text=row.question_text,
            passage=row.passage,
            passage_id=row.passage_id,
            question_image_url=row.question_image_url,
            image_alt_text=row.image_alt_text,
            image_width=_to_int(row.image_width),
            image_height=_to_int(row.image_height),
            option_a=row.option_a,
            option_b=row.option_b,
            option_c=row.option_c,
            option_d=row.option_d,
            option_e=row.option_e,
            correct_answer=row.correct_answer.upper(),
            hint=row.hint,
            solution=row.solution,
            further_study_links=split_links(row.further_study_links),
            difficulty=normalize_difficulty(row.difficulty),
            exam_type=row.exam_type.upper() if row.exam_type else None,
            exam_year=_to_int(row.year),
            status=self.status,
            import_report_id=self.import_report_id,
            created_by=self.created_by,
        )

    def write_one(self, item: WritableRow) -> RowOutcome:
        """Insert one row inside a SAVEPOINT; failures are returned, not raised."""
        try:
            question = self.build_question(item)
            with self.db.begin_nested():
                self.db.add(question)
                self.db.flush()
        except (SQLAlchemyError, ValueError) as e:
            message = str(getattr(e, "orig", None) or e)
            logger.warning(
                "import_row_failed",
                extra={
                    "event": "import_row_failed",
                    "import_report_id": str(self.import_report_id),
                    "row": item.row.row_number,
                    "error": message,
                },
            )
            return RowOutcome(row=item.row.row_number, success=False, error=message)
        return RowOutcome(row=item.row.row_number, success=True, question_id=question.id)

    def run_batch(self, batch: Sequence[WritableRow]) -> list[RowOutcome]:
        """
        Insert one batch and commit it.

        Rows in a batch are independent units: each runs in its own SAVEPOINT, so a
        failed row leaves its neighbours untouched and the order has no effect on the
        outcome. Nothing in a batch is visible to other sessions until the commit.

        Returns:
            One outcome per row, in batch order
        """
        outcomes = [self.write_one(item) for item in batch]
        self.db.commit()
        return outcomes

    def write(self, items: Iterable[WritableRow]) -> WriteResult:
        """
        Insert rows batch by batch.

        Args:
            items: Validated rows with resolved references

        Returns:
            WriteResult with one outcome per row, in input order
        """
        result = WriteResult()
        for batch in iter_batches(list(items), self.batch_size):
            outcomes = self.run_batch(batch)
            result.outcomes.extend(outcomes)
            result.batches += 1
            logger.debug(
                "import_batch_committed",
                extra={
                    "event": "import_batch_committed",
                    "import_report_id": str(self.import_report_id),
                    "batch": result.batches,
                    "rows": len(batch),
                    "failed": sum(1 for o in outcomes if not o.success),
                },
            )
        return result


def outcome_errors(outcomes: Iterable[RowOutcome]) -> list[dict[str, Any]]:
    """Failed outcomes as ``{row, error}`` entries."""
    return [{"row": o.row, "error": o.error} for o in outcomes if not o.success]
