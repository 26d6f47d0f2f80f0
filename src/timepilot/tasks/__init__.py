"""
Task subsystem.

Components:
- task_models.py: data structures (HistoricalTask, ScheduledTask, EstimationSuggestion)
- task_store.py: SQLite-backed storage + query/update helpers
- task_api.py: small high-level helpers used by the shell
"""
