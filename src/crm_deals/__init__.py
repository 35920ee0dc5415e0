"""Normalize deal data from third-party CRMs into one canonical schema."""

__version__ = "0.1.0"
