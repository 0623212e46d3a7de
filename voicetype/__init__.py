"""Speech-to-text dictation for the Linux desktop: record, transcribe and type."""

__version__ = "1.0.0"