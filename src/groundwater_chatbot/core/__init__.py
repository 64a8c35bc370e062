"""
Core data layer.

This package contains:
- data_service: HTTP client for the metadata/query service and its errors
- metadata_cache: in-memory cache over the state/district/block hierarchy
- query_executor: payload/result types and the one-shot query runner
- presentation: number formatting, stage interpretation, result messages
- export: CSV/JSON file content for the last result set
"""
