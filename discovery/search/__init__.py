"""
Contractor search.

Responsibilities:
- Parse raw query parameters leniently into typed filter criteria.
- Compose conjunctive filters and pick the advanced or basic ranking strategy.
- Page the ranked identifiers and project contractor details in ranked order.
- Serve facet data and type-ahead suggestions for the search UI.
"""
