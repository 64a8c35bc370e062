from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest

from groundwater_chatbot.conversation.context import Conversation
from groundwater_chatbot.conversation.engine import ChatEngine
from groundwater_chatbot.conversation.state_machine import DialogStateMachine
from groundwater_chatbot.core.data_service import DataServiceError
from groundwater_chatbot.core.metadata_cache import MetadataCache
from groundwater_chatbot.core.query_executor import QueryExecutor

STATES = ["Bihar", "West Bengal", "Punjab", "Uttar Pradesh", "Madhya Pradesh"]
DISTRICTS = {
    "Bihar": ["Patna", "Gaya", "Nalanda"],
    "Punjab": ["Ludhiana", "Amritsar"],
}
BLOCKS = {
    ("Bihar", "Patna"): ["Danapur", "Phulwari"],
    ("Bihar", "Gaya"): ["Bodh Gaya", "Sherghati"],
}


def year_row(year: int, stage: Optional[float] = 80.0) -> Dict[str, Any]:
    return {
        "year": year,
        "annual_extractable": 1234.5,
        "total_extraction": 987.6,
        "stage_percent": stage,
        "categorization": "Semi-Critical",
    }


class FakeDataService:
    """In-memory stand-in for DataServiceClient that records every call."""

    def __init__(self) -> None:
        self.states: List[str] = list(STATES)
        self.districts: Dict[str, List[str]] = {k: list(v) for k, v in DISTRICTS.items()}
        self.blocks: Dict[Tuple[str, str], List[str]] = {k: list(v) for k, v in BLOCKS.items()}
        self.calls: List[Tuple[Any, ...]] = []
        self.queries: List[Dict[str, Any]] = []
        self.meta_error: Optional[DataServiceError] = None
        self.query_error: Optional[DataServiceError] = None
        self.query_response: Optional[Dict[str, Any]] = None

    def fetch_states(self) -> List[str]:
        self.calls.append(("states",))
        if self.meta_error is not None:
            raise self.meta_error
        return list(self.states)

    def fetch_districts(self, state: str) -> List[str]:
        self.calls.append(("districts", state))
        if self.meta_error is not None:
            raise self.meta_error
        return list(self.districts.get(state, []))

    def fetch_blocks(self, state: str, district: str) -> List[str]:
        self.calls.append(("blocks", state, district))
        if self.meta_error is not None:
            raise self.meta_error
        return list(self.blocks.get((state, district), []))

    def run_query(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.queries.append(payload)
        if self.query_error is not None:
            raise self.query_error
        if self.query_response is not None:
            return self.query_response
        years = payload["years"] or [2024]
        return {
            "locationSummary": {
                "state": payload["state"],
                "district": payload["district"],
                "block": payload["block"],
            },
            "years": [year_row(y) for y in years],
        }

    def count(self, *call: Any) -> int:
        return sum(1 for c in self.calls if c == call)


@pytest.fixture
def service() -> FakeDataService:
    return FakeDataService()


@pytest.fixture
def machine(service: FakeDataService) -> DialogStateMachine:
    return DialogStateMachine(
        MetadataCache(service),  # type: ignore[arg-type]
        QueryExecutor(service),  # type: ignore[arg-type]
        known_years=[2023, 2024],
    )


@pytest.fixture
def conversation() -> Conversation:
    return Conversation()


@pytest.fixture
def engine(machine: DialogStateMachine) -> ChatEngine:
    return ChatEngine(machine)
