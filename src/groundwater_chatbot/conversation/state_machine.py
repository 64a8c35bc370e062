from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from groundwater_chatbot.config import KNOWN_YEARS, SUGGESTION_LIMIT
from groundwater_chatbot.conversation.context import (
    ChatReply,
    Conversation,
    ConversationContext,
    DialogState,
)
from groundwater_chatbot.conversation.extractors import parse_years, wants_higher_level
from groundwater_chatbot.conversation.matcher import Matcher, suggest
from groundwater_chatbot.core.metadata_cache import MetadataCache
from groundwater_chatbot.core.query_executor import QueryExecutor
from groundwater_chatbot.messages import get_message

logger = logging.getLogger(__name__)


class ValidationFailure(Exception):
    """An assisted-selection value is not one of the offered candidates."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class DialogStateMachine:
    """
    Slot-filling dialog: state -> district (or state level) -> year -> query.

    Every entry point takes the Conversation it should act on and returns
    a ChatReply; the machine itself holds no per-conversation state. A single
    message may fill several slots at once, in which case the machine moves
    forward through the states without prompting for what it already knows.

    Metadata lookups go through the MetadataCache and may raise
    DataServiceError; query failures never do, and every query (successful
    or not) ends the cycle back in ASK_STATE with an empty context.
    """

    def __init__(
        self,
        cache: MetadataCache,
        executor: QueryExecutor,
        matcher: Optional[Matcher] = None,
        known_years: Sequence[int] = KNOWN_YEARS,
        suggestion_limit: int = SUGGESTION_LIMIT,
    ) -> None:
        self.cache = cache
        self.executor = executor
        self.matcher = matcher if matcher is not None else Matcher()
        self.known_years = sorted(set(known_years))
        self.suggestion_limit = suggestion_limit

    # ---------------------------------------------------------------------
    # Public entry points
    # ---------------------------------------------------------------------

    def handle(self, conversation: Conversation, text: str) -> ChatReply:
        reply = ChatReply(state=conversation.state)
        state = conversation.state

        if state is DialogState.ASK_STATE:
            self._handle_ask_state(conversation, text, reply)
        elif state is DialogState.ASK_DISTRICT_OR_LEVEL:
            self._handle_ask_district(conversation, text, reply)
        elif state is DialogState.ASK_YEAR:
            self._handle_ask_year(conversation, text, reply)
        elif state in (DialogState.CONFIRM_AND_QUERY, DialogState.DONE):
            # Transient states only survive an interrupted query; start over.
            logger.warning("Conversation found in transient state %s; restarting.", state.value)
            self._move(conversation, reply, DialogState.ASK_STATE)
            conversation.context.reset()
            self._handle_ask_state(conversation, text, reply)
        else:
            raise ValueError(f"Unhandled dialog state: {state!r}")

        return reply

    def reset(self, conversation: Conversation) -> ChatReply:
        reply = ChatReply()
        conversation.restart()
        reply.enter(DialogState.ASK_STATE)
        reply.say(get_message("start"))
        return reply

    def validate_selection(
        self,
        state: Optional[str],
        district: Optional[str] = None,
        block: Optional[str] = None,
        years: Optional[Sequence[int]] = None,
    ) -> ConversationContext:
        """
        Check a picker selection level by level, exact matches only.

        Returns the context the selection describes, or raises
        ValidationFailure naming the first offending field. years=None
        means latest; an explicit empty selection is rejected.
        """
        state_value = (state or "").strip()
        if not state_value:
            raise ValidationFailure("state", get_message("choose_state"))

        resolved_state = self.matcher.exact(state_value, self.cache.get_states())
        if resolved_state is None:
            raise ValidationFailure("state", get_message("pick_state"))

        resolved_district: Optional[str] = None
        district_value = (district or "").strip()
        if district_value:
            resolved_district = self.matcher.exact(district_value, self.cache.get_districts(resolved_state))
            if resolved_district is None:
                raise ValidationFailure("district", get_message("pick_district"))

        resolved_block: Optional[str] = None
        block_value = (block or "").strip()
        if block_value:
            if resolved_district is None:
                raise ValidationFailure("block", get_message("district_before_block"))
            blocks = self.cache.get_blocks(resolved_state, resolved_district)
            resolved_block = self.matcher.exact(block_value, blocks)
            if resolved_block is None:
                raise ValidationFailure("block", get_message("pick_block"))

        return ConversationContext(
            state=resolved_state,
            district=resolved_district,
            block=resolved_block,
            years=self._validate_years(years),
        )

    def apply_assisted_selection(
        self,
        conversation: Conversation,
        state: Optional[str],
        district: Optional[str] = None,
        block: Optional[str] = None,
        years: Optional[Sequence[int]] = None,
    ) -> ChatReply:
        reply = ChatReply(state=conversation.state)
        try:
            selected = self.validate_selection(state, district, block, years)
        except ValidationFailure as exc:
            logger.info("Assisted selection rejected (%s): %s", exc.field, exc.message)
            reply.error = exc.message
            return reply

        conversation.context = selected
        location = ", ".join(p for p in (selected.state, selected.district, selected.block) if p)
        reply.say(get_message("selection", location=location))
        self._run_query(conversation, reply)
        return reply

    # ---------------------------------------------------------------------
    # State handlers
    # ---------------------------------------------------------------------

    def _handle_ask_state(self, conversation: Conversation, text: str, reply: ChatReply) -> None:
        ctx = conversation.context
        states = self.cache.get_states()
        state = self.matcher.resolve(text, states)

        if state is None:
            reply.say(get_message("invalid_state", suggestions=self._suggestions(text, states)))
            return

        # Districts are needed next anyway; the same message may already
        # name one, and may carry the year too.
        districts = self.cache.get_districts(state)
        ctx.state = state
        district = self.matcher.resolve(text, districts)
        years = parse_years(text, self.known_years)

        if district is not None:
            ctx.district = district
        if years is not None:
            ctx.years = years

        if ctx.district is not None or wants_higher_level(text):
            self._enter_ask_year(conversation, reply)
        else:
            self._move(conversation, reply, DialogState.ASK_DISTRICT_OR_LEVEL)
            reply.say(f"{get_message('confirm_state', state=state)} {get_message('ask_district')}")

    def _handle_ask_district(self, conversation: Conversation, text: str, reply: ChatReply) -> None:
        ctx = conversation.context
        if ctx.state is None:
            logger.warning("No state in context while asking for a district; restarting.")
            conversation.restart()
            self._move(conversation, reply, DialogState.ASK_STATE)
            self._handle_ask_state(conversation, text, reply)
            return

        districts = self.cache.get_districts(ctx.state)

        if wants_higher_level(text):
            ctx.district = None
            self._ask_year(conversation, reply)
            return

        district = self.matcher.resolve(text, districts)
        if district is None:
            reply.say(get_message("invalid_district", suggestions=self._suggestions(text, districts)))
            return

        ctx.district = district
        self._ask_year(conversation, reply)

    def _handle_ask_year(
        self,
        conversation: Conversation,
        text: Optional[str],
        reply: ChatReply,
        use_known_years: bool = False,
    ) -> None:
        ctx = conversation.context
        if use_known_years:
            years = ctx.years
        else:
            years = parse_years(text or "", self.known_years)

        if years is None:
            reply.say(self._year_prompt())
            return

        ctx.years = years
        self._run_query(conversation, reply)

    # ---------------------------------------------------------------------
    # Transitions
    # ---------------------------------------------------------------------

    def _enter_ask_year(self, conversation: Conversation, reply: ChatReply) -> None:
        self._move(conversation, reply, DialogState.ASK_YEAR)
        if conversation.context.years is not None:
            self._handle_ask_year(conversation, None, reply, use_known_years=True)
        else:
            reply.say(self._year_prompt())

    def _ask_year(self, conversation: Conversation, reply: ChatReply) -> None:
        # Reached from the district step: always prompt, whatever the first message said.
        self._move(conversation, reply, DialogState.ASK_YEAR)
        reply.say(self._year_prompt())

    def _run_query(self, conversation: Conversation, reply: ChatReply) -> None:
        self._move(conversation, reply, DialogState.CONFIRM_AND_QUERY)
        payload = conversation.context.to_payload()
        try:
            outcome = self.executor.execute(payload)
            reply.say(outcome.message)
            reply.result = outcome.result
        finally:
            self._finish(conversation, reply)

    def _finish(self, conversation: Conversation, reply: ChatReply) -> None:
        self._move(conversation, reply, DialogState.DONE)
        reply.say(get_message("done"))
        conversation.context.reset()
        self._move(conversation, reply, DialogState.ASK_STATE)

    def _move(self, conversation: Conversation, reply: ChatReply, state: DialogState) -> None:
        logger.debug("Dialog transition %s -> %s", conversation.state.value, state.value)
        conversation.move_to(state)
        reply.enter(state)

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------

    def _suggestions(self, text: str, candidates: Sequence[str]) -> str:
        picks: List[str] = suggest(text, candidates, limit=self.suggestion_limit)
        if not picks:
            picks = list(candidates[: self.suggestion_limit])
        return ", ".join(picks)

    def _year_prompt(self) -> str:
        return get_message("ask_year", years=", ".join(str(y) for y in self.known_years))

    def _validate_years(self, years: Optional[Sequence[int]]) -> List[int]:
        if years is None:
            return []
        known = ", ".join(str(y) for y in self.known_years)
        picked = set()
        for raw in years:
            try:
                picked.add(int(raw))
            except (TypeError, ValueError):
                raise ValidationFailure("years", get_message("unknown_year", year=raw, years=known)) from None
        selected = sorted(picked)
        if not selected:
            raise ValidationFailure("years", get_message("select_years"))
        for year in selected:
            if year not in self.known_years:
                raise ValidationFailure("years", get_message("unknown_year", year=year, years=known))
        return selected
