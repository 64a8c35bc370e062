from __future__ import annotations

import logging
from typing import Optional, Sequence

from groundwater_chatbot.conversation.context import (
    ChatReply,
    Conversation,
    ConversationContext,
    DialogState,
)
from groundwater_chatbot.conversation.extractors import export_format, is_reset_command
from groundwater_chatbot.conversation.state_machine import DialogStateMachine
from groundwater_chatbot.core.data_service import DataServiceClient, DataServiceError
from groundwater_chatbot.core.export import ExportError, export_result
from groundwater_chatbot.core.metadata_cache import MetadataCache
from groundwater_chatbot.core.query_executor import QueryExecutor, QueryResult
from groundwater_chatbot.messages import get_message

logger = logging.getLogger(__name__)


class ChatEngine:
    """
    One chat session: the surface the UI talks to.

    Reset and export commands are handled here, before the state machine
    sees the message. The last successful result lives on the engine, not
    in the conversation context, so it survives the reset at the end of
    every query cycle and stays exportable.
    """

    def __init__(self, machine: DialogStateMachine, conversation: Optional[Conversation] = None) -> None:
        self.machine = machine
        self.conversation = conversation if conversation is not None else Conversation()
        self.last_result: Optional[QueryResult] = None

    @property
    def state(self) -> DialogState:
        return self.conversation.state

    @property
    def context(self) -> ConversationContext:
        return self.conversation.context

    @property
    def metadata(self) -> MetadataCache:
        return self.machine.cache

    def start_message(self) -> str:
        return get_message("start")

    def handle_user_input(self, text: Optional[str]) -> ChatReply:
        message = (text or "").strip()
        if not message:
            return ChatReply(state=self.state)

        if is_reset_command(message):
            return self.reset_conversation()

        fmt = export_format(message)
        if fmt is not None:
            return self._export(fmt)

        try:
            reply = self.machine.handle(self.conversation, message)
        except DataServiceError as exc:
            logger.warning("Metadata lookup failed in %s: %s", self.state.value, exc.message)
            reply = ChatReply(state=self.state)
            reply.say(get_message("connection_failed"))

        self._remember(reply)
        return reply

    def reset_conversation(self) -> ChatReply:
        return self.machine.reset(self.conversation)

    def apply_assisted_selection(
        self,
        state: Optional[str],
        district: Optional[str] = None,
        block: Optional[str] = None,
        years: Optional[Sequence[int]] = None,
    ) -> ChatReply:
        try:
            reply = self.machine.apply_assisted_selection(
                self.conversation, state, district=district, block=block, years=years
            )
        except DataServiceError as exc:
            logger.warning("Metadata lookup failed during assisted selection: %s", exc.message)
            reply = ChatReply(state=self.state, error=get_message("connection_failed"))

        self._remember(reply)
        return reply

    def _remember(self, reply: ChatReply) -> None:
        if reply.result is not None:
            self.last_result = reply.result

    def _export(self, fmt: str) -> ChatReply:
        reply = ChatReply(state=self.state)
        if self.last_result is None:
            reply.say(get_message("export_none"))
            return reply

        try:
            reply.export = export_result(self.last_result, fmt)
        except ExportError as exc:
            logger.warning("Export failed: %s", exc)
            reply.say(get_message("export_failed"))
            return reply

        reply.say(get_message(f"export_{fmt}_ok"))
        return reply


def build_engine(client: Optional[DataServiceClient] = None) -> ChatEngine:
    """Wire a ChatEngine against the configured data service."""
    client = client if client is not None else DataServiceClient()
    cache = MetadataCache(client)
    machine = DialogStateMachine(cache, QueryExecutor(client))
    return ChatEngine(machine)
