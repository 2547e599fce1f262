"""In-process scheduling engine for reminders, recurring prompts and weather polling."""

__version__ = "1.0.0"
