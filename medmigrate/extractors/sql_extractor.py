"""SQL dump extractor for legacy hospital tables."""

import re
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .base import BaseExtractor, ExtractionResult
from ..models.record import FieldValue, SourceRecord
from ..models.migration import MigrationSource

logger = logging.getLogger(__name__)

# Quoted strings are matched first so comment markers inside them survive.
COMMENT_PATTERN = re.compile(
    r"'(?:[^'\\]|\\[\s\S]|'')*'"
    r"|\"(?:[^\"\\]|\\[\s\S]|\"\")*\""
    r"|/\*[\s\S]*?\*/"
    r"|--[^\n]*"
)
CREATE_TABLE_PATTERN = re.compile(
    r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(?:[`\"]?\w+[`\"]?\.)?[`\"]?(\w+)[`\"]?\s*\(([\s\S]*?)\)\s*ENGINE",
    re.IGNORECASE,
)
INSERT_HEADER_PATTERN = re.compile(
    r"INSERT\s+(?:IGNORE\s+)?INTO\s+(?:[`\"]?\w+[`\"]?\.)?[`\"]?(\w+)[`\"]?\s*(?:\(([^)]*)\))?\s*VALUES\s*",
    re.IGNORECASE,
)
# A line opening a new INSERT; statements never run past one.
NEXT_INSERT_PATTERN = re.compile(r"^[ \t]*INSERT\s+(?:IGNORE\s+)?INTO\b", re.IGNORECASE | re.MULTILINE)
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
DECIMAL_PATTERN = re.compile(r"^[+-]?\d+\.\d+$")
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

QUOTES = ("'", '"')

# Backslash escapes MySQL writes into dumps; any other escaped char stands for itself.
MYSQL_ESCAPES = {
    "0": "\0",
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "Z": "\x1a",
}


class ScanState(str, Enum):
    """Where the scanner is relative to quoted strings."""
    OUTSIDE = "outside"
    IN_SINGLE_QUOTE = "in-single-quote"
    IN_DOUBLE_QUOTE = "in-double-quote"


QUOTE_STATES = {"'": ScanState.IN_SINGLE_QUOTE, '"': ScanState.IN_DOUBLE_QUOTE}
STATE_QUOTES = {ScanState.IN_SINGLE_QUOTE: "'", ScanState.IN_DOUBLE_QUOTE: '"'}


@dataclass
class Literal:
    """One value literal from a VALUES tuple."""
    text: str
    quoted: bool = False

    @property
    def value(self) -> FieldValue:
        # Quoted content is always a string, even when it looks like a number.
        if self.quoted:
            return self.text
        return coerce_literal(self.text)


def _scan(text: str, start: int = 0, end: Optional[int] = None) -> Iterator[Tuple[int, str, ScanState]]:
    """
    Walk `text`, yielding (index, char, state) for every character that is
    not part of an escape sequence or a doubled quote.

    The state reported with a quote character is the state *before* the
    quote is processed, so callers see an opening quote as OUTSIDE and a
    closing quote as IN_*_QUOTE.
    """
    state = ScanState.OUTSIDE
    i = start
    n = len(text) if end is None else end
    while i < n:
        char = text[i]
        if state is ScanState.OUTSIDE:
            yield i, char, state
            if char in QUOTES:
                state = QUOTE_STATES[char]
            i += 1
            continue

        quote = STATE_QUOTES[state]
        if char == "\\" and i + 1 < n:
            next_char = text[i + 1]
            yield i, MYSQL_ESCAPES.get(next_char, next_char), state
            i += 2
            continue
        if char == quote:
            if i + 1 < n and text[i + 1] == quote:
                yield i, quote, state
                i += 2
                continue
            yield i, "", state
            state = ScanState.OUTSIDE
            i += 1
            continue
        yield i, char, state
        i += 1

    if state is not ScanState.OUTSIDE:
        raise ValueError("Unterminated quoted literal")


def tokenize_tuple(body: str) -> List[Literal]:
    """
    Split the inside of one VALUES tuple into literals.

    Commas only separate values when they are outside quotes and outside
    nested parentheses (function calls such as NOW()).
    """
    literals: List[Literal] = []
    current: List[str] = []
    quoted = False
    depth = 0

    for _, char, state in _scan(body):
        if state is not ScanState.OUTSIDE:
            current.append(char)
            continue

        if char in QUOTES:
            if not quoted and not "".join(current).strip():
                current = []
            quoted = True
        elif char == "(":
            depth += 1
            current.append(char)
        elif char == ")":
            depth -= 1
            current.append(char)
        elif char == "," and depth == 0:
            literals.append(_finish_literal(current, quoted))
            current = []
            quoted = False
        elif quoted and char.isspace():
            continue
        else:
            current.append(char)

    tail = "".join(current)
    if quoted or tail.strip():
        literals.append(_finish_literal(current, quoted))

    return literals


def _finish_literal(chars: List[str], quoted: bool) -> Literal:
    text = "".join(chars)
    if quoted:
        return Literal(text=text, quoted=True)
    return Literal(text=text.strip())


def split_tuples(values_clause: str) -> List[str]:
    """Split `(...),(...)` into the bodies of each parenthesized tuple."""
    tuples: List[str] = []
    depth = 0
    start = 0

    for i, char, state in _scan(values_clause):
        if state is not ScanState.OUTSIDE:
            continue
        if char == "(":
            if depth == 0:
                start = i + 1
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise ValueError("Unbalanced parentheses in VALUES clause")
            if depth == 0:
                tuples.append(values_clause[start:i])
        elif depth == 0 and not (char == "," or char.isspace()):
            raise ValueError(f"Unexpected character {char!r} between VALUES tuples")

    if depth != 0:
        raise ValueError("Unbalanced parentheses in VALUES clause")

    return tuples


def strip_comments(content: str) -> str:
    """Remove `--` and `/* */` comments, leaving quoted strings intact."""
    def replace(match: "re.Match") -> str:
        text = match.group(0)
        return text if text[0] in QUOTES else ""

    return COMMENT_PATTERN.sub(replace, content)


def find_statement_end(content: str, start: int) -> int:
    """
    Index of the `;` ending the statement that begins at `start`.

    The scan stops at the next line opening an INSERT, so a quote left open
    in one statement cannot swallow the statements after it. Without a `;`
    before that line the statement ends there, and parsing it reports the
    open quote.
    """
    boundary = NEXT_INSERT_PATTERN.search(content, start)
    limit = boundary.start() if boundary else len(content)
    try:
        for i, char, state in _scan(content, start, limit):
            if state is ScanState.OUTSIDE and char == ";":
                return i
    except ValueError:
        pass
    return limit


def coerce_literal(literal: str) -> FieldValue:
    """
    Convert a SQL literal to the value it stands for.

    NULL -> None, quoted -> unquoted content, integers -> int, decimals ->
    float, TRUE/FALSE -> bool. ISO dates and anything unrecognised stay
    strings.
    """
    text = literal.strip()

    if text.upper() == "NULL":
        return None

    if len(text) >= 2 and text[0] in QUOTES and text[-1] == text[0]:
        try:
            literals = tokenize_tuple(text)
        except ValueError:
            return text
        if len(literals) == 1 and literals[0].quoted:
            return literals[0].text
        return text

    if INTEGER_PATTERN.match(text):
        return int(text)

    if DECIMAL_PATTERN.match(text):
        return float(text)

    if text.upper() == "TRUE":
        return True
    if text.upper() == "FALSE":
        return False

    if ISO_DATE_PATTERN.match(text):
        # Dates are parsed downstream, by the validator
        return text

    return text


def format_literal(value: FieldValue) -> str:
    """Render a value as a SQL literal that coerce_literal reads back unchanged."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise ValueError(f"Cannot write {value} as a SQL literal")
        text = format(Decimal(repr(value)), "f")
        if "." not in text:
            text += ".0"
        return text
    escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class SqlDumpExtractor(BaseExtractor):
    """
    Extractor for SQL dumps of the legacy hospital database.

    Supports:
    - INSERT statements, single and multi-row, with or without column lists
    - Quoted strings with backslash or doubled-quote escapes
    - Dumps holding only table structure (no rows, not an error)
    - A CSV-like fallback when the text holds no INSERT statements
    """

    def extract(self, content: str) -> ExtractionResult:
        """Extract all records from dump text."""
        self.reset()
        started_at = datetime.utcnow()

        text = strip_comments(content)
        records, parsed, skipped = self._parse_insert_statements(text)

        ddl_only = False
        if parsed == 0 and skipped == 0:
            if NEXT_INSERT_PATTERN.search(text):
                self.add_warning("Dump mentions INSERT INTO but no statement could be read")
            if CREATE_TABLE_PATTERN.search(text):
                logger.info("Dump holds table structure only, no rows to extract")
                ddl_only = True
            else:
                records = self._parse_csv_like(text)

        result = self.get_extraction_result(records)
        result.ddl_only = ddl_only
        result.statements_parsed = parsed
        result.statements_skipped = skipped
        result.started_at = started_at
        result.completed_at = datetime.utcnow()

        logger.info(
            f"Extracted {result.total_extracted} records from {self.source.value} dump "
            f"({parsed} statements parsed, {skipped} skipped) in {result.duration_seconds:.3f}s"
        )
        return result

    def _parse_insert_statements(self, text: str) -> Tuple[List[SourceRecord], int, int]:
        """Parse every INSERT statement; malformed ones are skipped."""
        records: List[SourceRecord] = []
        parsed = 0
        skipped = 0

        for index, (match, values_clause) in enumerate(self._iter_statements(text), start=1):
            table_name = match.group(1)
            try:
                columns = self._parse_columns(match.group(2))
                rows = self._parse_values(values_clause)
            except ValueError as e:
                skipped += 1
                self.add_warning(f"Skipping INSERT statement {index} into {table_name}: {e}")
                continue

            parsed += 1
            for tuple_index, values in enumerate(rows):
                data = self._build_row(columns, values)
                records.append(self.create_record(
                    data=data,
                    table_name=table_name,
                    metadata={"statement": index, "tuple": tuple_index},
                ))

        return records, parsed, skipped

    def _iter_statements(self, text: str) -> Iterator[Tuple["re.Match", str]]:
        """Yield each INSERT header match with the VALUES text that follows it."""
        pos = 0
        while True:
            match = INSERT_HEADER_PATTERN.search(text, pos)
            if not match:
                return
            end = find_statement_end(text, match.end())
            yield match, text[match.end():end]
            pos = end + 1 if text.startswith(";", end) else end

    def _parse_columns(self, column_list: Optional[str]) -> List[str]:
        if not column_list:
            return []
        columns = [col.strip().strip('`"') for col in column_list.split(",")]
        if not all(columns):
            raise ValueError("Empty column name in column list")
        return columns

    def _parse_values(self, values_clause: str) -> List[List[FieldValue]]:
        bodies = split_tuples(values_clause)
        if not bodies:
            raise ValueError("No VALUES tuples found")
        return [[literal.value for literal in tokenize_tuple(body)] for body in bodies]

    def _build_row(self, columns: List[str], values: List[FieldValue]) -> Dict[str, FieldValue]:
        """Zip values against the column list, or key them positionally."""
        if not columns:
            return {f"field{i}": value for i, value in enumerate(values)}

        if len(values) != len(columns):
            logger.debug(f"Tuple has {len(values)} values for {len(columns)} columns")

        return {
            col: values[i] if i < len(values) else None
            for i, col in enumerate(columns)
        }

    def _parse_csv_like(self, text: str) -> List[SourceRecord]:
        """Treat the text as comma-separated lines with a header row."""
        lines = [line for line in text.split("\n") if line.strip()]
        if len(lines) < 2:
            return []

        headers = [header.strip() for header in lines[0].split(",")]
        records = []

        for line_number, line in enumerate(lines[1:], start=2):
            values = [val.strip() for val in line.split(",")]
            data = {
                header: coerce_literal(values[i]) if i < len(values) else None
                for i, header in enumerate(headers)
            }
            records.append(self.create_record(data=data, metadata={"line": line_number}))

        logger.info(f"No INSERT statements found, read {len(records)} CSV-like rows")
        return records
