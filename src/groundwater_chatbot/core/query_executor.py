from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from groundwater_chatbot.core.data_service import (
    DataServiceClient,
    DataServiceError,
    NotFound,
    ServerFailure,
    TransportFailure,
    UnknownFailure,
)
from groundwater_chatbot.core.presentation import format_result
from groundwater_chatbot.messages import get_message

logger = logging.getLogger(__name__)

# Column labels used for tables and CSV export
RESULT_COLUMNS = [
    "Year",
    "Annual Extractable (BCM)",
    "Total Extraction (BCM)",
    "Groundwater Stage (%)",
    "Category",
]


@dataclass
class QueryPayload:
    """
    Body of POST /query.

    None for state/district/block means "all" at that level.
    years == [] asks the service for the latest available year.
    """
    state: Optional[str]
    district: Optional[str]
    block: Optional[str]
    years: List[int] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LocationSummary:
    state: Optional[str]
    district: Optional[str]
    block: Optional[str]


@dataclass
class YearRecord:
    year: int
    annual_extractable: Optional[float]
    total_extraction: Optional[float]
    stage_percent: Optional[float]
    categorization: Optional[str]


@dataclass
class QueryResult:
    location: LocationSummary
    years: List[YearRecord]

    @property
    def location_text(self) -> str:
        parts = [
            self.location.state or "All states",
            self.location.district,
            self.location.block,
        ]
        return " › ".join(p for p in parts if p)

    def to_dataframe(self) -> pd.DataFrame:
        rows = [
            {
                "Year": r.year,
                "Annual Extractable (BCM)": r.annual_extractable,
                "Total Extraction (BCM)": r.total_extraction,
                "Groundwater Stage (%)": r.stage_percent,
                "Category": r.categorization,
            }
            for r in self.years
        ]
        return pd.DataFrame(rows, columns=RESULT_COLUMNS)


@dataclass
class QueryOutcome:
    """What the conversation shows after a query: a result or a failure message."""
    message: str
    result: Optional[QueryResult] = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def _parse_year_record(raw: Any) -> YearRecord:
    if not isinstance(raw, dict):
        raise UnknownFailure(f"Malformed /query response: year entry is {type(raw).__name__}, expected an object")
    return YearRecord(
        year=int(raw["year"]),
        annual_extractable=raw.get("annual_extractable"),
        total_extraction=raw.get("total_extraction"),
        stage_percent=raw.get("stage_percent"),
        categorization=raw.get("categorization"),
    )


def parse_query_response(data: Dict[str, Any], payload: QueryPayload) -> QueryResult:
    """
    Turn the /query JSON body into a QueryResult.

    A missing locationSummary falls back to the payload that was sent.
    Anything that is not the documented shape raises UnknownFailure.
    """
    summary = data.get("locationSummary") or {}
    if not isinstance(summary, dict):
        raise UnknownFailure(
            f"Malformed /query response: locationSummary is {type(summary).__name__}, expected an object"
        )
    rows = data.get("years") or []
    if not isinstance(rows, list):
        raise UnknownFailure(f"Malformed /query response: years is {type(rows).__name__}, expected a list")

    location = LocationSummary(
        state=summary.get("state", payload.state),
        district=summary.get("district", payload.district),
        block=summary.get("block", payload.block),
    )
    years = [_parse_year_record(y) for y in rows]
    return QueryResult(location=location, years=years)


def failure_message(exc: DataServiceError) -> str:
    if isinstance(exc, TransportFailure):
        return get_message("connection_failed")
    if isinstance(exc, NotFound):
        return get_message("not_found")
    if isinstance(exc, ServerFailure):
        return get_message("server_error")
    if exc.message:
        return get_message("service_error", message=exc.message)
    return get_message("unexpected_error")


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------

class QueryExecutor:
    """
    Runs one resolved query against the data service.

    execute() never raises for service failures: they are logged and turned
    into a user-facing message so the conversation can always complete.
    """

    def __init__(self, client: DataServiceClient) -> None:
        self.client = client

    def execute(self, payload: QueryPayload) -> QueryOutcome:
        logger.info("Running groundwater query with payload=%s", payload)

        try:
            data = self.client.run_query(payload.to_json())
            result = parse_query_response(data, payload)
        except DataServiceError as exc:
            logger.warning("Groundwater query failed (%s): %s", type(exc).__name__, exc.message)
            return QueryOutcome(message=failure_message(exc))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed /query response: %r", exc)
            return QueryOutcome(message=get_message("unexpected_error"))

        if not result.years:
            logger.info("No data for %s", result.location_text)
            return QueryOutcome(message=get_message("no_data"))

        return QueryOutcome(message=format_result(result), result=result)
