"""
Slot extractors: pure keyword/substring rules over a raw chat message.

None / False means "no signal"; the state machine re-prompts on that.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from groundwater_chatbot.config import KNOWN_YEARS

LATEST_KEYWORD = "latest"
ALL_YEARS_KEYWORDS = ("both", "all")

HIGHER_LEVEL_PHRASES = ("state level", "no district", "skip")

RESET_COMMANDS = ("reset", "start over")
EXPORT_COMMANDS = {"export csv": "csv", "export json": "json"}


def parse_years(text: str, known_years: Sequence[int] = KNOWN_YEARS) -> Optional[List[int]]:
    """
    Pull an assessment-year selection out of a message.

    Rules, first hit wins:
      1. 'latest' anywhere        -> []  (service resolves the latest year)
      2. 'both' or 'all'          -> every known year
      3. known year literals      -> those years, ascending, de-duplicated
      4. otherwise                -> None
    """
    lower = text.lower()
    if LATEST_KEYWORD in lower:
        return []
    if any(k in lower for k in ALL_YEARS_KEYWORDS):
        return sorted(set(known_years))

    found = sorted({y for y in known_years if str(y) in lower})
    if found:
        return found
    return None


def wants_higher_level(text: str) -> bool:
    lower = text.lower()
    return any(p in lower for p in HIGHER_LEVEL_PHRASES)


def is_reset_command(text: str) -> bool:
    return text.strip().lower() in RESET_COMMANDS


def export_format(text: str) -> Optional[str]:
    return EXPORT_COMMANDS.get(text.strip().lower())
