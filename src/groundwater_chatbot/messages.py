"""
User-facing chat strings.

Only English ships with the engine. get_message() falls back to the key
itself when a string is missing so a typo shows up in the chat instead of
raising mid-conversation.
"""
from __future__ import annotations

from typing import Dict

MESSAGES: Dict[str, str] = {
    # Conversation flow
    "start": "Hi! I'm JalSathi, your groundwater assistant. Which state would you like data for?",
    "invalid_state": "I couldn't recognise that state. Try one of: {suggestions}.",
    "confirm_state": "Got it: {state}.",
    "ask_district": 'Which district? Say "state level" or "skip" to see the whole state.',
    "invalid_district": "I couldn't recognise that district. Try one of: {suggestions}.",
    "ask_year": 'Which assessment year? You can say {years}, "both", or "latest".',
    "done": 'Anything else? Name another state, or type "reset" to start over.',
    "selection": "Using selection: {location}",
    # Query outcomes
    "no_data": "📊 No groundwater data available for this location. Try a different state or district.",
    "connection_failed": "🔌 Connection failed. Please check your internet and try again.",
    "not_found": (
        "📍 The requested location data could not be found. "
        "Please verify the state/district names and try again."
    ),
    "server_error": "🛠️ Server temporarily unavailable. Please try again in a few minutes.",
    "unexpected_error": "An unexpected error occurred. Please try again.",
    "service_error": "❌ {message}",
    # Export
    "export_none": "No data available to export. Please run a query first.",
    "export_csv_ok": "📊 CSV file ready to download.",
    "export_json_ok": "📊 JSON file ready to download.",
    "export_failed": "Failed to export data. Please try again.",
    # Assisted selection
    "choose_state": "Please choose a state.",
    "pick_state": "Please pick a state from the list.",
    "pick_district": "Pick a district from the list.",
    "pick_block": "Pick a block from the list.",
    "district_before_block": "Select a district before choosing a block.",
    "select_years": "Select at least one year.",
    "unknown_year": "Year {year} is not available. Choose from {years}.",
}


def get_message(key: str, **kwargs: object) -> str:
    template = MESSAGES.get(key)
    if template is None:
        return key
    return template.format(**kwargs) if kwargs else template
