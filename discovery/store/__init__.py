"""
Record store for the discovery service.

Responsibilities:
- Load contractor, user, event and job records from JSON files.
- Normalise contractors into a pandas DataFrame with derived match columns.
- Serve time-windowed reads of the user/event/job streams.
"""
