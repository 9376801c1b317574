"""CSAF advisory models and fetchers, advisory database records and queries, OVAL id helpers."""

__version__ = "1.0.0"