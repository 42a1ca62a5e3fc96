# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Use .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKMATE_APP_NAME": "App display name (default: taskmate).",
    "TASKMATE_LOG_LEVEL": "Console logging level (default: INFO).",
    # Identity
    "TASKMATE_USER_ID": "User id to sign in with at startup (empty => guest list).",
    # Paths (gitignored)
    "TASKMATE_DATA_DIR": "Local data directory (default: .local/taskmate).",
    "TASKMATE_TASKS_DB_PATH": "Local task store SQLite path (default: <data_dir>/tasks.sqlite3).",
    # Reminders
    "TASKMATE_REMINDER_OFFSET_SECONDS": "Delay of the reminder set on new tasks (default: 300).",
    # Remote store
    "TASKMATE_SUPABASE_URL": "Supabase project URL (empty => local-only).",
    "TASKMATE_SUPABASE_KEY": "Supabase API key.",
    "TASKMATE_SUPABASE_TABLE": "Table holding tasks (default: tasks).",
    # Connectivity probe
    "TASKMATE_CONNECTIVITY_HOST": "Host probed for reachability (default: 1.1.1.1).",
    "TASKMATE_CONNECTIVITY_PORT": "Port probed for reachability (default: 443).",
    "TASKMATE_CONNECTIVITY_INTERVAL_SECONDS": "Probe interval (default: 10).",
    "TASKMATE_CONNECTIVITY_TIMEOUT_SECONDS": "Probe connect timeout (default: 3).",
    # Matrix reminder delivery
    "TASKMATE_MATRIX_ENABLED": "Deliver reminders to a Matrix room instead of the console (true/false).",
    "TASKMATE_MATRIX_HOMESERVER": "Matrix homeserver URL.",
    "TASKMATE_MATRIX_USER_ID": "Matrix user ID used to send reminders.",
    "TASKMATE_MATRIX_PASSWORD": "Password for first login (session stored locally).",
    "TASKMATE_MATRIX_ROOM_ID": "Room that receives reminders.",
    "TASKMATE_MATRIX_STORE_PATH": "Matrix session directory (default: <data_dir>/matrix_store).",
}
