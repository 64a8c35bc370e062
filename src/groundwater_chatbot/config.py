from __future__ import annotations

import os
from typing import List

# ---------------------------------------------------------------------------
# App identity
# ---------------------------------------------------------------------------

APP_NAME = "JalSathi Groundwater Assistant"
APP_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Groundwater data service
#
# The metadata and query endpoints live under one base URL:
#   GET  {base}/meta/states
#   GET  {base}/meta/districts?state=...
#   GET  {base}/meta/blocks?state=...&district=...
#   POST {base}/query
# ---------------------------------------------------------------------------

GROUNDWATER_API_BASE_URL = os.getenv(
    "GROUNDWATER_API_BASE_URL",
    "http://localhost:3000/api",
).strip().rstrip("/")

GROUNDWATER_API_TIMEOUT = int(os.getenv("GROUNDWATER_API_TIMEOUT", "30"))


def _parse_years(raw: str) -> List[int]:
    years: List[int] = []
    for part in raw.split(","):
        p = part.strip()
        if p:
            years.append(int(p))
    return sorted(set(years))


# Assessment years the service publishes. "both"/"all" in a chat message
# expands to this list.
KNOWN_YEARS: List[int] = _parse_years(os.getenv("GROUNDWATER_KNOWN_YEARS", "2023,2024"))

# ---------------------------------------------------------------------------
# Conversation tuning
# ---------------------------------------------------------------------------

# Minimum fuzzy score for a non-exact location match.
MATCH_THRESHOLD = 0.6

# How many candidate names to offer when a location is not recognised.
SUGGESTION_LIMIT = 4
