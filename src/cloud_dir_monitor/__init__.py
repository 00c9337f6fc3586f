"""Cloud directory monitoring with a typed synchronization error taxonomy."""

__version__ = "0.1.0"
