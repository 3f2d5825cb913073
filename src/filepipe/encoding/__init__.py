"""Encoder contract and the default tabular implementation."""

from filepipe.encoding.base import FileEncoder
from filepipe.encoding.tabular import TabularFileEncoder

__all__ = [
    "FileEncoder",
    "TabularFileEncoder",
]
