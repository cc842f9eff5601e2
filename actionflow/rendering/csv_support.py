"""
CSV export: column detection, humanized headers, value formatting and attachment responses.
"""
import csv as _csv
import io
import json
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from starlette.responses import Response

from actionflow.inflection import humanize
from actionflow.serializers import to_record, to_serializable

CSV_MEDIA_TYPE = "text/csv"


def detect_columns(record: Any) -> List[str]:
    data = to_record(record)
    if isinstance(data, Mapping):
        return [str(k) for k in data.keys()]
    return [k for k in vars(data) if not k.startswith("_")] if hasattr(data, "__dict__") else []


def format_csv_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, Mapping):
        return json.dumps(to_serializable(value))
    return value


def _read(record: Any, data: Any, column: str) -> Any:
    if isinstance(data, Mapping):
        return data.get(column)
    return getattr(record, column, None)


def generate_csv(
    collection: Iterable[Any],
    columns: Optional[Sequence[str]] = None,
    headers: Optional[Sequence[str]] = None,
) -> str:
    """Empty string for an empty collection; columns default to the first record's keys."""
    records = list(collection or [])
    if not records:
        return ""
    columns = list(columns) if columns else detect_columns(records[0])
    headers = list(headers) if headers else [humanize(c) for c in columns]

    buf = io.StringIO()
    writer = _csv.writer(buf, lineterminator="\n")
    writer.writerow(headers)
    for record in records:
        data = to_record(record)
        writer.writerow([format_csv_value(_read(record, data, c)) for c in columns])
    return buf.getvalue()


def send_csv(
    collection: Iterable[Any],
    filename: str = "export.csv",
    columns: Optional[Sequence[str]] = None,
    headers: Optional[Sequence[str]] = None,
    status_code: int = 200,
) -> Response:
    return Response(
        content=generate_csv(collection, columns, headers),
        status_code=status_code,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
