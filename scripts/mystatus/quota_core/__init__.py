"""Terminal dashboard for AI account quota reports."""

__version__ = "1.0.0"
