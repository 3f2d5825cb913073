"""Asynchronous processing pipeline for uploaded data files."""

__version__ = "0.1.0"
