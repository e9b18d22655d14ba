"""Subject/topic name resolution for the import engine."""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from prepbank.models.syllabus import Subject, Topic


def _key(value: str | None) -> str:
    return (value or "").strip().lower()


@dataclass
class Resolution:
    """Resolved ids for one row, or the reason resolution failed."""

    subject_id: UUID | None = None
    topic_id: UUID | None = None
    subject_error: str | None = None
    topic_error: str | None = None
    topic_mismatch: bool = False

    @property
    def ok(self) -> bool:
        return self.subject_id is not None and self.topic_id is not None


class ReferenceResolver:
    """
    Map subject/topic names or slugs to ids.

    Built once per import from two queries; never shared between imports so newly
    created subjects and topics are always visible to the next import.
    """

    def __init__(self, subjects: list[Subject], topics: list[Topic]):
        self._subject_by_name: dict[str, UUID] = {}
        self._subject_by_slug: dict[str, UUID] = {}
        self._subject_names: dict[UUID, str] = {}
        for subject in subjects:
            self._subject_by_name.setdefault(_key(subject.name), subject.id)
            self._subject_by_slug.setdefault(_key(subject.slug), subject.id)
            self._subject_names[subject.id] = subject.name

        # (subject_id, key) -> topic id, plus key -> owning subject ids for the
        # "belongs to another subject" diagnostic
        self._topic_by_name: dict[tuple[UUID, str], UUID] = {}
        self._topic_by_slug: dict[tuple[UUID, str], UUID] = {}
        self._topic_owners: dict[str, set[UUID]] = {}
        for topic in topics:
            name_key = _key(topic.name)
            slug_key = _key(topic.slug)
            self._topic_by_name.setdefault((topic.subject_id, name_key), topic.id)
            self._topic_by_slug.setdefault((topic.subject_id, slug_key), topic.id)
            self._topic_owners.setdefault(name_key, set()).add(topic.subject_id)
            self._topic_owners.setdefault(slug_key, set()).add(topic.subject_id)

    @classmethod
    def from_db(cls, db: Session) -> "ReferenceResolver":
        """Fetch all subjects and topics once and build the lookup tables."""
        subjects = db.query(Subject).order_by(Subject.display_order, Subject.name).all()
        topics = db.query(Topic).all()
        return cls(subjects, topics)

    @property
    def available_subjects(self) -> list[str]:
        return sorted(self._subject_names.values())

    def resolve_subject(self, value: str | None) -> UUID | None:
        """Name match first, slug match second."""
        key = _key(value)
        if not key:
            return None
        return self._subject_by_name.get(key) or self._subject_by_slug.get(key)

    def resolve_topic(self, subject_id: UUID, value: str | None) -> UUID | None:
        """Resolve a topic within one subject."""
        key = _key(value)
        if not key:
            return None
        return self._topic_by_name.get((subject_id, key)) or self._topic_by_slug.get(
            (subject_id, key)
        )

    def resolve(self, subject: str | None, topic: str | None) -> Resolution:
        """
        Resolve a row's subject and topic.

        Blank values are left unresolved without an error; the required-field rule
        reports them.
        """
        result = Resolution()
        if not _key(subject):
            return result

        subject_id = self.resolve_subject(subject)
        if subject_id is None:
            available = ", ".join(self.available_subjects) or "none"
            result.subject_error = (
                f'Subject "{subject.strip()}" not found. Available subjects: {available}'
            )
            return result
        result.subject_id = subject_id

        if not _key(topic):
            return result

        topic_id = self.resolve_topic(subject_id, topic)
        if topic_id is not None:
            result.topic_id = topic_id
        elif self._topic_owners.get(_key(topic)):
            result.topic_mismatch = True
            result.topic_error = (
                f'Topic "{topic.strip()}" does not belong to subject '
                f'"{self._subject_names[subject_id]}"'
            )
        else:
            result.topic_error = f'Topic not found: "{topic.strip()}"'
        return result
