from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from groundwater_chatbot.core.export import ExportFile
from groundwater_chatbot.core.query_executor import QueryPayload, QueryResult


class DialogState(Enum):
    ASK_STATE = "ASK_STATE"
    ASK_DISTRICT_OR_LEVEL = "ASK_DISTRICT_OR_LEVEL"
    ASK_YEAR = "ASK_YEAR"
    CONFIRM_AND_QUERY = "CONFIRM_AND_QUERY"
    DONE = "DONE"


@dataclass
class ConversationContext:
    """
    Slots resolved so far in the current dialog cycle.

    years:
      - None -> not decided yet
      - []   -> use the latest available year
      - [..] -> explicit assessment years
    """
    state: Optional[str] = None
    district: Optional[str] = None
    block: Optional[str] = None
    years: Optional[List[int]] = None

    def reset(self) -> None:
        self.state = None
        self.district = None
        self.block = None
        self.years = None

    def to_payload(self) -> QueryPayload:
        return QueryPayload(
            state=self.state,
            district=self.district,
            block=self.block,
            years=list(self.years or []),
        )


@dataclass
class Conversation:
    """The explicit session object every transition reads and mutates."""
    state: DialogState = DialogState.ASK_STATE
    context: ConversationContext = field(default_factory=ConversationContext)

    def move_to(self, state: DialogState) -> None:
        self.state = state

    def restart(self) -> None:
        self.context.reset()
        self.state = DialogState.ASK_STATE


@dataclass
class ChatReply:
    """
    Everything one user action produced.

    visited lists the states the conversation passed through while handling
    the action, in order, including the state it ended in.
    """
    messages: List[str] = field(default_factory=list)
    state: DialogState = DialogState.ASK_STATE
    visited: List[DialogState] = field(default_factory=list)
    result: Optional[QueryResult] = None
    export: Optional[ExportFile] = None
    error: Optional[str] = None

    def say(self, message: str) -> None:
        self.messages.append(message)

    def enter(self, state: DialogState) -> None:
        self.visited.append(state)
        self.state = state

    @property
    def text(self) -> str:
        return "\n\n".join(self.messages)
