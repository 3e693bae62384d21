"""
Core data layer.

This package contains:
- schema: startup validation of the four CPIA tables, question-column discovery
- data_loader: read the CPIA tables (local CSV or URL) and selector choices
- data_prep: selected-country, group-average and peer extractors, and compose()
- table: long -> wide reshaping for tabular display, empty-state placeholders
- metadata_loader: question labels for the selector
- query_engine: per-request entry point used by the UI
"""
