"""JamSync — song sheet alignment and live rehearsal session sync."""

__version__ = "0.1.0"
