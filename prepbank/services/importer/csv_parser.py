"""CSV parser for the question import engine."""

import csv
import io
from dataclasses import dataclass, field
from typing import Any, Iterator


class CSVParseError(Exception):
    """Structural CSV error: the whole import is rejected."""

    def __init__(self, errors: list["ParseIssue"]):
        self.errors = errors
        super().__init__("; ".join(e.message for e in errors) or "CSV parsing error")


@dataclass
class ParseIssue:
    """One structural problem found while parsing."""

    type: str
    code: str
    message: str
    row: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON responses."""
        return {"type": self.type, "code": self.code, "message": self.message, "row": self.row}


@dataclass
class ParsedCSV:
    """Parser output: header plus (row_number, record) pairs."""

    header: list[str]
    rows: list[tuple[int, dict[str, str]]] = field(default_factory=list)
    errors: list[ParseIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class CSVParser:
    """Parse CSV text with a header row.

    Lines starting with ``#`` and blank lines are skipped when they are not inside a
    quoted field. Data rows are numbered from 2 (the header is row 1).
    """

    COMMENT_PREFIX = "#"

    def __init__(self, delimiter: str = ",", quote_char: str = '"'):
        """
        Initialize CSV parser.

        Args:
            delimiter: Field delimiter
            quote_char: Quote character
        """
        self.delimiter = delimiter
        self.quote_char = quote_char

    def _logical_lines(self, text: str) -> Iterator[str]:
        """Yield physical lines, dropping comments and blanks outside quoted fields.

        Lines end only at ``\\n``, ``\\r`` or ``\\r\\n``; other Unicode line breaks are
        field content.
        """
        in_quotes = False
        for line in io.StringIO(text, newline=""):
            if not in_quotes:
                stripped = line.strip()
                if not stripped or stripped.startswith(self.COMMENT_PREFIX):
                    continue
            in_quotes = self._ends_in_quotes(line, in_quotes)
            yield line

    def _ends_in_quotes(self, line: str, in_quotes: bool) -> bool:
        """Quote state after ``line``, following csv.reader's rules.

        A quote opens a quoted field only as the first character of a field; elsewhere
        in an unquoted field it is literal. Inside a quoted field ``""`` is an escaped
        quote and a lone quote closes the field.
        """
        field_start = not in_quotes
        i = 0
        while i < len(line):
            char = line[i]
            if in_quotes:
                if char == self.quote_char:
                    if line[i + 1 : i + 2] == self.quote_char:
                        i += 1
                    else:
                        in_quotes = False
            elif char == self.quote_char and field_start:
                in_quotes = True
                field_start = False
            else:
                field_start = char == self.delimiter
            i += 1
        return in_quotes

    def parse(self, text: str) -> ParsedCSV:
        """
        Parse CSV text into header-keyed records.

        Args:
            text: Raw CSV content

        Returns:
            ParsedCSV with rows and any structural errors
        """
        if text.startswith("\ufeff"):
            text = text[1:]

        reader = csv.reader(
            self._logical_lines(text),
            delimiter=self.delimiter,
            quotechar=self.quote_char,
            strict=True,
        )

        try:
            raw_header = next(reader, None)
        except csv.Error as e:
            return ParsedCSV(header=[], errors=[self._quote_issue(e, 1)])

        if not raw_header or not any(h.strip() for h in raw_header):
            return ParsedCSV(
                header=[],
                errors=[ParseIssue("Header", "MissingHeader", "CSV has no header row", 1)],
            )

        header = [h.strip().lower() for h in raw_header]
        # Trailing empty header cells come from trailing delimiters
        while header and not header[-1]:
            header.pop()

        parsed = ParsedCSV(header=header)
        seen: set[str] = set()
        for name in header:
            if not name:
                parsed.errors.append(
                    ParseIssue("Header", "EmptyHeader", "Header contains an empty column name", 1)
                )
            elif name in seen:
                parsed.errors.append(
                    ParseIssue("Header", "DuplicateHeader", f"Duplicate column '{name}'", 1)
                )
            seen.add(name)

        row_number = 1
        try:
            for cells in reader:
                row_number += 1
                record = self._to_record(header, cells, row_number, parsed.errors)
                if record is not None:
                    parsed.rows.append((row_number, record))
        except csv.Error as e:
            parsed.errors.append(self._quote_issue(e, row_number + 1))

        return parsed

    def parse_or_raise(self, text: str) -> ParsedCSV:
        """Parse and raise CSVParseError on any structural error."""
        parsed = self.parse(text)
        if parsed.errors:
            raise CSVParseError(parsed.errors)
        return parsed

    def _to_record(
        self,
        header: list[str],
        cells: list[str],
        row_number: int,
        errors: list[ParseIssue],
    ) -> dict[str, str] | None:
        if not any(c.strip() for c in cells):
            # Spreadsheet exports pad empty lines with delimiters
            return None
        width = len(header)
        if len(cells) > width:
            surplus = cells[width:]
            if any(c.strip() for c in surplus):
                errors.append(
                    ParseIssue(
                        "FieldMismatch",
                        "TooManyFields",
                        f"Too many fields: expected {width} but parsed {len(cells)}",
                        row_number,
                    )
                )
                return None
            cells = cells[:width]
        elif len(cells) < width:
            errors.append(
                ParseIssue(
                    "FieldMismatch",
                    "TooFewFields",
                    f"Too few fields: expected {width} but parsed {len(cells)}",
                    row_number,
                )
            )
            return None
        return dict(zip(header, cells))

    @staticmethod
    def _quote_issue(error: csv.Error, row_number: int) -> ParseIssue:
        return ParseIssue("Quotes", "InvalidQuotes", f"Malformed quoting: {error}", row_number)
