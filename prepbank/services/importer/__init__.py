"""Import engine for bulk question imports."""

from prepbank.services.importer.csv_parser import CSVParseError, CSVParser
from prepbank.services.importer.import_row import ImportRow
from prepbank.services.importer.pipeline import process_import, validate_csv
from prepbank.services.importer.reference_resolver import ReferenceResolver
from prepbank.services.importer.template import build_template, template_filename
from prepbank.services.importer.validators import QuestionValidator, ValidationError
from prepbank.services.importer.writer import QuestionWriter, RowOutcome

__all__ = [
    "CSVParseError",
    "CSVParser",
    "ImportRow",
    "QuestionValidator",
    "QuestionWriter",
    "ReferenceResolver",
    "RowOutcome",
    "ValidationError",
    "build_template",
    "process_import",
    "template_filename",
    "validate_csv",
]
