"""
Task subsystem.

Components:
- task_models.py: data structures (Task, EditForm)
- local_store.py: SQLite key-value store holding the full collection per user
- remote_store.py: Supabase-backed store of record (+ offline fallback)
- reminders.py: asyncio reminder scheduler, one timer per task id
- connectivity.py: TCP-probe connectivity monitor
- sync_engine.py: the orchestrator (fan-out, reconciliation, reminder coupling)
"""
