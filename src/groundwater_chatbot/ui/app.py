from __future__ import annotations

import logging
import traceback
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from groundwater_chatbot.config import APP_NAME, APP_VERSION, KNOWN_YEARS
from groundwater_chatbot.conversation.context import ChatReply
from groundwater_chatbot.conversation.engine import ChatEngine, build_engine
from groundwater_chatbot.core.data_service import DataServiceError

logger = logging.getLogger(__name__)

ENGINE_KEY = "engine"
HISTORY_KEY = "history"
EXPORT_KEY = "pending_export"

NO_SELECTION = ""


def _get_engine() -> ChatEngine:
    if ENGINE_KEY not in st.session_state:
        engine = build_engine()
        st.session_state[ENGINE_KEY] = engine
        st.session_state[HISTORY_KEY] = [{"role": "assistant", "content": engine.start_message()}]
        st.session_state[EXPORT_KEY] = None
    return st.session_state[ENGINE_KEY]


def _history() -> List[Dict[str, Any]]:
    return st.session_state[HISTORY_KEY]


def _record_reply(reply: ChatReply) -> None:
    history = _history()
    for message in reply.messages:
        history.append({"role": "assistant", "content": message})
    if reply.result is not None:
        history.append({"role": "assistant", "table": reply.result.to_dataframe()})
    if reply.export is not None:
        st.session_state[EXPORT_KEY] = reply.export


def _render_history() -> None:
    for entry in _history():
        with st.chat_message(entry["role"]):
            table: Optional[pd.DataFrame] = entry.get("table")
            if table is not None:
                st.dataframe(table, use_container_width=True, hide_index=True)
            else:
                st.markdown(entry["content"])


def _render_export() -> None:
    export = st.session_state.get(EXPORT_KEY)
    if export is None:
        return
    st.download_button(
        f"Download {export.filename}",
        data=export.content,
        file_name=export.filename,
        mime=export.mime_type,
        key="download_export",
    )


def _render_chat_input(engine: ChatEngine) -> None:
    text = st.chat_input("Type a state, district or year...")
    if not text:
        return

    _history().append({"role": "user", "content": text})
    try:
        reply = engine.handle_user_input(text)
        _record_reply(reply)
    except Exception as e:
        logger.exception("Unexpected error while handling chat input.")
        _history().append({"role": "assistant", "content": "Unexpected error while handling your message."})
        st.error("Unexpected error while handling your message.")
        st.code(repr(e))
        st.text_area("Traceback", value=traceback.format_exc(), height=220)
        return
    st.rerun()


def _selectbox_options(values: List[str]) -> List[str]:
    return [NO_SELECTION] + list(values)


def _render_assisted_picker(engine: ChatEngine) -> None:
    with st.sidebar:
        st.subheader("Pick a location")

        try:
            states = engine.metadata.get_states()
        except DataServiceError as exc:
            st.warning(f"Unable to load states right now: {exc.message}")
            return

        state = st.selectbox("State", options=_selectbox_options(states), key="pick_state")

        districts: List[str] = []
        if state:
            try:
                districts = engine.metadata.get_districts(state)
            except DataServiceError as exc:
                st.warning(f"Failed to load districts: {exc.message}")
        district = st.selectbox(
            "District (optional)",
            options=_selectbox_options(districts),
            key="pick_district",
            disabled=not state,
        )

        blocks: List[str] = []
        if state and district:
            try:
                blocks = engine.metadata.get_blocks(state, district)
            except DataServiceError as exc:
                st.warning(f"Failed to load blocks: {exc.message}")
        block = st.selectbox(
            "Block (optional)",
            options=_selectbox_options(blocks),
            key="pick_block",
            disabled=not district,
        )

        use_latest = st.checkbox("Latest available year", value=True, key="pick_latest")
        years: Optional[List[int]] = None
        if not use_latest:
            years = st.multiselect("Assessment years", options=list(KNOWN_YEARS), key="pick_years")

        if st.button("Apply", key="pick_apply"):
            reply = engine.apply_assisted_selection(state, district or None, block or None, years=years)
            if reply.error:
                st.error(reply.error)
                return
            _record_reply(reply)
            st.rerun()


def _render_reset(engine: ChatEngine) -> None:
    with st.sidebar:
        if st.button("Reset conversation", key="reset_conversation"):
            reply = engine.reset_conversation()
            st.session_state[HISTORY_KEY] = []
            st.session_state[EXPORT_KEY] = None
            _record_reply(reply)
            st.rerun()


def run_app() -> None:
    st.set_page_config(page_title=APP_NAME, page_icon="💧", layout="wide")
    st.title(APP_NAME)
    st.caption(f"Prototype version {APP_VERSION}")

    engine = _get_engine()

    _render_assisted_picker(engine)
    _render_reset(engine)
    _render_history()
    _render_export()
    _render_chat_input(engine)
