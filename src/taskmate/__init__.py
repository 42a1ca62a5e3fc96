"""taskmate: offline-first personal task tracker with reminders."""

__version__ = "0.1.0"
