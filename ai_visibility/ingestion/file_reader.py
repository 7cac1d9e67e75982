"""Query list parsing for uploaded files.

Accepted formats:
  - ``.txt``: one query per line, blank lines dropped
  - ``.csv``: header row with a column whose name contains "query", "prompt"
    or "question" (case-insensitive); date/time columns are dropped

Excel files are rejected with a pointer to CSV. Parsed queries get
sequential ids ``query-1``, ``query-2``... in file order.
"""

import csv
import io
import logging
from dataclasses import dataclass, field

from ai_visibility.core.exceptions import UploadError

logger = logging.getLogger(__name__)

_QUERY_COLUMN_MARKERS = ("query", "prompt", "question")
_DROPPED_COLUMN_MARKERS = ("date", "time")


@dataclass
class ParsedQuery:
    id: str
    text: str
    columns: dict[str, str] = field(default_factory=dict)  # remaining non-date columns


@dataclass
class FileReaderResult:
    queries: list[ParsedQuery]
    headers: list[str]

    @property
    def texts(self) -> list[str]:
        return [q.text for q in self.queries]


def _decode(content: bytes | str) -> str:
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise UploadError("File is not valid UTF-8 text") from e


def read_text(content: bytes | str) -> FileReaderResult:
    lines = [line.strip() for line in _decode(content).splitlines()]
    queries = [ParsedQuery(id=f"query-{i}", text=line) for i, line in enumerate((ln for ln in lines if ln), start=1)]
    return FileReaderResult(queries=queries, headers=["query"])


def find_query_column(headers: list[str]) -> int | None:
    for index, header in enumerate(headers):
        lowered = header.lower()
        if any(marker in lowered for marker in _QUERY_COLUMN_MARKERS):
            return index
    return None


def read_csv(content: bytes | str) -> FileReaderResult:
    rows = [row for row in csv.reader(io.StringIO(_decode(content))) if any(cell.strip() for cell in row)]
    if not rows:
        raise UploadError("CSV file is empty")

    headers = [h.strip() for h in rows[0]]
    query_index = find_query_column(headers)
    if query_index is None:
        raise UploadError('No query column found. Please ensure your CSV has a column named "query", "prompt", or "question"')

    kept_columns = [
        (i, h) for i, h in enumerate(headers) if not any(marker in h.lower() for marker in _DROPPED_COLUMN_MARKERS)
    ]

    queries: list[ParsedQuery] = []
    for row in rows[1:]:
        text = row[query_index].strip() if query_index < len(row) else ""
        if not text:
            continue
        queries.append(
            ParsedQuery(
                id=f"query-{len(queries) + 1}",
                text=text,
                columns={h: (row[i].strip() if i < len(row) else "") for i, h in kept_columns if i != query_index},
            )
        )

    logger.info("Parsed %d queries from CSV (query column: %r)", len(queries), headers[query_index])
    return FileReaderResult(queries=queries, headers=headers)


def read_query_file(filename: str, content: bytes | str) -> FileReaderResult:
    """Dispatch on the file extension."""
    name = filename.lower()
    if name.endswith(".csv"):
        return read_csv(content)
    if name.endswith(".txt"):
        return read_text(content)
    if name.endswith((".xlsx", ".xls")):
        raise UploadError("Excel files are not supported. Please export the sheet as CSV and upload that instead.")
    raise UploadError(f"Unsupported file type: {filename}. Please use CSV or TXT files.")
