"""Importing this package registers every ORM table on SQLModel.metadata."""
from filepipe.models.core import UploadedFile

__all__ = ["UploadedFile"]
