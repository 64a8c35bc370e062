from __future__ import annotations

import csv
import json
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional

from groundwater_chatbot.core.query_executor import QueryResult

EXPORT_FORMATS = ("csv", "json")

_MIME_TYPES = {
    "csv": "text/csv;charset=utf-8",
    "json": "application/json;charset=utf-8",
}


class ExportError(Exception):
    """Raised when a result set cannot be exported in the requested format."""


@dataclass
class ExportFile:
    filename: str
    content: bytes
    mime_type: str


def export_filename(location_text: str, fmt: str) -> str:
    safe = re.sub(r"[^a-zA-Z0-9]", "_", location_text)
    return f"groundwater_data_{safe}.{fmt}"


def _to_csv(result: QueryResult) -> str:
    df = result.to_dataframe()
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n", na_rep="")


def _to_json(result: QueryResult, now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    export_data = {
        "location": result.location_text,
        "query_timestamp": stamp,
        "data": [asdict(r) for r in result.years],
    }
    return json.dumps(export_data, indent=2, ensure_ascii=False)


def export_result(result: QueryResult, fmt: str, now: Optional[datetime] = None) -> ExportFile:
    """
    Build a downloadable CSV or JSON file for the given result set.

    The UI layer is responsible for handing the bytes to the user.
    """
    fmt = fmt.strip().lower()
    if fmt == "csv":
        text = _to_csv(result)
    elif fmt == "json":
        text = _to_json(result, now=now)
    else:
        raise ExportError(f"Unsupported export format: {fmt!r}. Expected one of {EXPORT_FORMATS}.")

    return ExportFile(
        filename=export_filename(result.location_text, fmt),
        content=text.encode("utf-8"),
        mime_type=_MIME_TYPES[fmt],
    )
