"""ICSForge - iCalendar generation with human-friendly alarm and duration input."""

__version__ = "1.0.0"
__author__ = "ICSForge Team"
__description__ = "Generate RFC 5545 calendar files from events with human-friendly reminders"

# Package metadata
__all__ = [
    "__author__",
    "__description__",
    "__version__",
]
