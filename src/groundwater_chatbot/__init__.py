"""
JalSathi groundwater assistant.

Conversational slot filling (state -> district -> year) over the groundwater
assessment data service.
"""
