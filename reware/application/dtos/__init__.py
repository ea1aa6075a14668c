"""Application DTOs."""

from reware.application.dtos.writes import Write, WriteKind

__all__ = ["Write", "WriteKind"]
