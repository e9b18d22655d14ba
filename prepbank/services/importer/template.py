"""Downloadable CSV template for question imports."""

import csv
import io
from datetime import date

from prepbank.services.importer.import_row import CSV_COLUMNS, REQUIRED_COLUMNS
from prepbank.services.importer.validators import DIFFICULTIES, EXAM_TYPES

OPTIONAL_COLUMNS = tuple(c for c in CSV_COLUMNS if c not in REQUIRED_COLUMNS)

EXAMPLE_ROWS: list[dict[str, str]] = [
    {
        "subject": "Government",
        "topic": "Nigerian Federalism",
        "exam_type": "WAEC",
        "year": "2023",
        "difficulty": "medium",
        "question_text": "What is the capital of Nigeria?",
        "option_a": "Lagos",
        "option_b": "Abuja",
        "option_c": "Kano",
        "option_d": "Port Harcourt",
        "correct_answer": "B",
        "hint": "It became the capital in 1991",
        "solution": "Abuja became the capital of Nigeria on December 12, 1991, replacing Lagos.",
        "further_study_links": "https://example.com/nigerian-history",
    },
    {
        "subject": "English Language",
        "topic": "Comprehension",
        "exam_type": "JAMB",
        "year": "2024",
        "difficulty": "hard",
        "question_text": "What emotion does the boy experience in the passage?",
        "passage": (
            "The young boy ran through the forest, his heart pounding with fear. Behind him, "
            "he could hear the hunters approaching. He knew he had to find shelter before "
            "nightfall."
        ),
        "passage_id": "PASSAGE_ENG_001",
        "option_a": "He was afraid",
        "option_b": "He was excited",
        "option_c": "He was calm",
        "option_d": "He was angry",
        "correct_answer": "A",
        "hint": "Look for emotional descriptors in the text",
        "solution": (
            'The passage explicitly states "his heart pounding with fear", indicating the '
            "boy was afraid."
        ),
        "further_study_links": (
            "https://example.com/reading-comprehension,https://example.com/inference"
        ),
    },
    {
        "subject": "Mathematics",
        "topic": "Geometry",
        "exam_type": "NECO",
        "year": "2023",
        "difficulty": "medium",
        "question_text": "What is the measure of angle ABC in the diagram?",
        "question_image_url": "https://example.com/images/triangle-abc.png",
        "image_alt_text": (
            "Right triangle ABC with angle A marked as 30 degrees and angle C marked as "
            "60 degrees"
        ),
        "image_width": "400",
        "image_height": "300",
        "option_a": "30°",
        "option_b": "60°",
        "option_c": "90°",
        "option_d": "120°",
        "correct_answer": "C",
        "hint": "Remember that angles in a triangle sum to 180°",
        "solution": "30° + 60° + angle B = 180°, therefore angle B = 90°",
        "further_study_links": "https://example.com/triangle-properties",
    },
]

INSTRUCTIONS = [
    "PrepBank Question Import Template",
    "Instructions:",
    "1. Fill in the rows below with your question data",
    f"2. Required fields: {', '.join(REQUIRED_COLUMNS)}",
    f"3. Optional fields: {', '.join(OPTIONAL_COLUMNS)}",
    "4. subject and topic take a name or slug; the topic must belong to the subject",
    f"5. exam_type must be one of: {', '.join(EXAM_TYPES)}",
    f"6. difficulty must be one of: {', '.join(DIFFICULTIES)} (default: medium)",
    "7. correct_answer must be one of: A, B, C, D, E and its option must be filled in",
    "8. passage_id groups questions sharing a passage (letters, numbers, _ and - only)",
    "9. image_alt_text is required if question_image_url is provided (for accessibility)",
    "10. image_width, image_height: optional dimensions in pixels",
    "11. For multiple study links, separate with commas",
    "12. Lines starting with # are ignored; keep the header row below",
]


def build_template() -> str:
    """Render the template CSV: comment block, blank line, header, example rows."""
    output = io.StringIO()
    for line in INSTRUCTIONS:
        output.write(f"# {line}\n")
    output.write("\n")

    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for example in EXAMPLE_ROWS:
        writer.writerow([example.get(column, "") for column in CSV_COLUMNS])
    return output.getvalue()


def template_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"prepbank_question_import_template_{today.isoformat()}.csv"
