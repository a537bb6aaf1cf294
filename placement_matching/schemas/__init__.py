"""
Schemas module - Matching data model and API response schemas.

- Candidate / Job: read-only snapshots built from MongoDB documents
- MatchData / MatchResult: scoring output and the persisted value object
- MatchRunSummary / RefreshSummary: what the entry points return
"""
