from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

"""UploadedFile model: the raw bytes of one user upload plus its file name."""

__all__ = [
    "UploadedFile",
]


@dataclass(frozen=True)
class UploadedFile:
    name: str  # Original file name including extension
    content: bytes

    @classmethod
    def from_path(cls, path: Path) -> UploadedFile:
        return cls(name=path.name, content=path.read_bytes())

    @property
    def stem(self) -> str:
        """File name with the last extension stripped ("q.v2.xlsx" -> "q.v2")."""
        head, dot, _ = self.name.rpartition(".")
        return head if dot else self.name

    @property
    def extension(self) -> str:
        _, dot, ext = self.name.rpartition(".")
        return f".{ext.lower()}" if dot else ""
