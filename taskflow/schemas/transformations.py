"""CSV transformations between TaskCore models and the backup format.

The document is UTF-8 text, ``\\n``-separated, header first::

    id,title,description,dueDate,status,type,parentId,createdAt

Two dialects are supported:

- default: the ``csv`` module with minimal quoting. Rows whose fields hold no
  comma, quote or newline come out byte-for-byte like the legacy format, and
  fields that do are quoted instead of shifting the columns.
- legacy: fields joined with bare commas and read back by splitting on
  commas, exactly like older exports.
"""

import csv
import io
from collections.abc import Iterable

from ..exceptions import CsvFormatError
from .models import (
    BaseBusinessModel,
    TaskCore,
    TaskStatus,
    TaskType,
    format_timestamp,
    parse_timestamp,
)


CSV_HEADER: tuple[str, ...] = (
    "id",
    "title",
    "description",
    "dueDate",
    "status",
    "type",
    "parentId",
    "createdAt",
)

FIELD_COUNT = len(CSV_HEADER)


class CsvTaskRow(BaseBusinessModel):
    """One parsed data row.

    ``source_id`` is the id the task had in the exporting store; it is only
    used to relink sub-tasks to their parents within the same document.
    """

    line_number: int
    source_id: int | None
    task: TaskCore


class TaskCsvCodec:
    """Encode tasks to, and decode tasks from, the CSV backup format."""

    def __init__(self, legacy_format: bool = False):
        self.legacy_format = legacy_format

    # ---- encoding ----

    @staticmethod
    def task_to_fields(task: TaskCore) -> list[str]:
        """Positional fields for one task."""
        return [
            "" if task.id is None else str(task.id),
            task.title,
            task.description,
            "" if task.due_date is None else format_timestamp(task.due_date),
            task.status.value,
            task.type.value,
            "" if task.parent_id is None else str(task.parent_id),
            format_timestamp(task.created_at),
        ]

    def encode(self, tasks: Iterable[TaskCore]) -> str:
        """Render a document without a trailing newline."""
        rows = [list(CSV_HEADER), *(self.task_to_fields(t) for t in tasks)]

        if self.legacy_format:
            return "\n".join(",".join(row) for row in rows)

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        # Minimal quoting only covers the "\n" terminator, so a bare "\r"
        # would be written unquoted and break the reader.
        quote_all_writer = csv.writer(
            buffer, lineterminator="\n", quoting=csv.QUOTE_ALL
        )
        for row in rows:
            if any("\r" in field for field in row):
                quote_all_writer.writerow(row)
            else:
                writer.writerow(row)
        text = buffer.getvalue()
        return text[:-1] if text.endswith("\n") else text

    # ---- decoding ----

    def _iter_rows(self, text: str) -> Iterable[tuple[int, list[str]]]:
        if self.legacy_format:
            for index, line in enumerate(text.split("\n"), start=1):
                yield index, line.rstrip("\r").split(",")
            return

        reader = csv.reader(io.StringIO(text))
        for row in reader:
            yield reader.line_num, row

    def decode(self, text: str) -> list[CsvTaskRow]:
        """Parse every data row; the header is read but not checked.

        Blank lines are skipped.

        Raises:
            CsvFormatError: On the first malformed row.

        """
        rows: list[CsvTaskRow] = []
        header_seen = False

        try:
            for line_number, fields in self._iter_rows(text):
                if not header_seen:
                    header_seen = True
                    continue
                if not fields or (len(fields) == 1 and not fields[0].strip()):
                    continue
                rows.append(self.fields_to_row(fields, line_number))
        except csv.Error as e:
            raise CsvFormatError(f"unreadable CSV: {e}") from e

        return rows

    @staticmethod
    def fields_to_row(fields: list[str], line_number: int) -> CsvTaskRow:
        """Map positional fields onto a task without an id."""
        if len(fields) != FIELD_COUNT:
            raise CsvFormatError(
                f"expected {FIELD_COUNT} fields, got {len(fields)}", line_number
            )

        raw_id, title, description, due, status, task_type, parent, created = fields

        try:
            due_date = parse_timestamp(due) if due.strip() else None
        except ValueError as e:
            raise CsvFormatError(f"invalid dueDate {due!r}", line_number) from e

        if not created.strip():
            raise CsvFormatError("missing createdAt", line_number)
        try:
            created_at = parse_timestamp(created)
        except ValueError as e:
            raise CsvFormatError(f"invalid createdAt {created!r}", line_number) from e

        try:
            status_value = TaskStatus(status.strip())
        except ValueError as e:
            raise CsvFormatError(f"invalid status {status!r}", line_number) from e

        try:
            type_value = TaskType(task_type.strip())
        except ValueError as e:
            raise CsvFormatError(f"invalid type {task_type!r}", line_number) from e

        try:
            parent_id = int(parent) if parent.strip() else None
        except ValueError as e:
            raise CsvFormatError(f"invalid parentId {parent!r}", line_number) from e

        raw_id = raw_id.strip()
        source_id = int(raw_id) if raw_id.isdigit() else None

        return CsvTaskRow(
            line_number=line_number,
            source_id=source_id,
            task=TaskCore(
                title=title,
                description=description,
                due_date=due_date,
                status=status_value,
                type=type_value,
                parent_id=parent_id,
                created_at=created_at,
            ),
        )


__all__ = ["CSV_HEADER", "FIELD_COUNT", "CsvTaskRow", "TaskCsvCodec"]
