"""
Conversational layer.

This package contains:
- matcher: exact + fuzzy resolution of free text against candidate names
- extractors: year / level-skip / command signals from raw text
- context: dialog states, conversation context, chat replies
- state_machine: the slot-filling dialog and assisted selection
- engine: the session object the UI drives
"""
