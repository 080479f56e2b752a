"""Daily activity logs stored in a remote file-backed object store."""

__version__ = "0.1.0"
