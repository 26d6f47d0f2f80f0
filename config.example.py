# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets.

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TIMEPILOT_APP_NAME": "App display name (default: timepilot).",
    "TIMEPILOT_LOG_LEVEL": "Console logging level (default: INFO).",
    "TIMEPILOT_USER_ID": "User id the console shell acts as (default: local).",
    # LLM / OpenRouter (optional: without a key the estimator uses local similarity)
    "TIMEPILOT_OPENROUTER_API_KEY": "OpenRouter API key.",
    "TIMEPILOT_OPENROUTER_BASE_URL": "OpenRouter base URL (default: https://openrouter.ai/api/v1).",
    "TIMEPILOT_LLM_MODELS": "Comma/space separated list of models to try in order.",
    "TIMEPILOT_HTTP_REFERER": "Optional OpenRouter metadata header.",
    "TIMEPILOT_APP_TITLE": "Optional OpenRouter metadata header title.",
    "TIMEPILOT_LLM_CONNECT_TIMEOUT_SECONDS": "Connect timeout (default: 5).",
    "TIMEPILOT_LLM_READ_TIMEOUT_SECONDS": "Read timeout (default: 12).",
    "TIMEPILOT_LLM_FIRST_TOKEN_TIMEOUT_SECONDS": "Give up on a model without a first token (default: 10).",
    # Paths (gitignored)
    "TIMEPILOT_DATA_DIR": "Local data directory (default: .local/timepilot).",
    "TIMEPILOT_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    # Estimator tuning
    "TIMEPILOT_HISTORY_LIMIT": "Completed tasks read per estimate (default: 200).",
    "TIMEPILOT_ORACLE_HISTORY_LIMIT": "Completed tasks shown to the oracle (default: 40).",
    "TIMEPILOT_LOCAL_TOP_N": "Similar tasks kept by the local matcher (default: 12).",
    "TIMEPILOT_ESTIMATE_TIMEOUT_SECONDS": "Deadline for async estimates (default: 12).",
    # Rendering
    "TIMEPILOT_PX_PER_MINUTE": "Timeline pixels per minute (default: 2).",
}
