from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Tuple

from groundwater_chatbot.core.data_service import DataServiceClient

logger = logging.getLogger(__name__)


class MetadataCache:
    """
    In-memory cache over the state → district → block reference hierarchy.

    Each level is fetched from the data service on first access and served
    from memory thereafter. Reference data is static for a session, so
    entries never expire; call clear() to force a reload.

    Block lists are keyed by (state, district): block names are only unique
    within their district.

    Failed fetches propagate DataServiceError and leave nothing cached.
    """

    def __init__(self, client: DataServiceClient) -> None:
        self.client = client
        self._states: Optional[List[str]] = None
        self._districts: Dict[str, List[str]] = {}
        self._blocks: Dict[Tuple[str, str], List[str]] = {}
        # Guards map writes only; two callers may still fetch the same key.
        self._lock = threading.Lock()

    # ---------------------------------------------------------------------
    # States
    # ---------------------------------------------------------------------

    def get_states(self) -> List[str]:
        if self._states is not None:
            logger.debug("States served from cache (%d).", len(self._states))
            return self._states

        states = self.client.fetch_states()
        logger.info("Loaded %d states from data service.", len(states))
        with self._lock:
            self._states = states
        return states

    # ---------------------------------------------------------------------
    # Districts
    # ---------------------------------------------------------------------

    def get_districts(self, state: str) -> List[str]:
        cached = self._districts.get(state)
        if cached is not None:
            logger.debug("Districts for %s served from cache (%d).", state, len(cached))
            return cached

        districts = self.client.fetch_districts(state)
        logger.info("Loaded %d districts for state=%s.", len(districts), state)
        with self._lock:
            self._districts[state] = districts
        return districts

    # ---------------------------------------------------------------------
    # Blocks
    # ---------------------------------------------------------------------

    def get_blocks(self, state: str, district: str) -> List[str]:
        key = (state, district)
        cached = self._blocks.get(key)
        if cached is not None:
            logger.debug("Blocks for %s/%s served from cache (%d).", state, district, len(cached))
            return cached

        blocks = self.client.fetch_blocks(state, district)
        logger.info("Loaded %d blocks for state=%s, district=%s.", len(blocks), state, district)
        with self._lock:
            self._blocks[key] = blocks
        return blocks

    def clear(self) -> None:
        with self._lock:
            self._states = None
            self._districts.clear()
            self._blocks.clear()
