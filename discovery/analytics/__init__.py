"""
Search analytics.

Responsibilities:
- Keep an append-only in-process log of search events.
- Record query, filter-usage and latency events without blocking searches.
- Summarise the log for the admin search analytics report.
"""
