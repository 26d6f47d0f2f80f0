"""
timepilot: day planning with adaptive duration estimates.

Components:
- estimation/: similarity matcher, robust statistics, duration estimator
- timeline/: lane layout for a day's tasks
- tasks/: data model, SQLite store, high-level task helpers
- llm/: classification oracle over an OpenAI-compatible client (or offline)
- cli/: composition root and console shell
"""

__version__ = "0.1.0"
