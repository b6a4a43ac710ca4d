"""Backing stores that hold the serialized ledger document."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class LedgerBackend(Protocol):
    """Raw document storage used by `LedgerStore`."""

    def ensure_location(self) -> None:
        """Create the storage location if it does not exist yet."""

    def read(self) -> str | None:
        """Return the stored document text, or `None` when nothing is stored."""

    def write(self, text: str) -> None:
        """Replace the stored document with `text`."""

    def archive(self, suffix: str) -> str:
        """Move the stored document aside under `suffix`; return where it went."""


class FileLedgerBackend:
    """Ledger document stored as one JSON file on disk."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def ensure_location(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def read(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text("utf-8")

    def write(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(text, "utf-8")

    def archive(self, suffix: str) -> str:
        archive_path = self.path.with_name(f"{self.path.stem}.{suffix}.json")
        self.path.rename(archive_path)
        return str(archive_path)


class MemoryLedgerBackend:
    """In-memory document store for tests and dry runs."""

    def __init__(self, text: str | None = None) -> None:
        self.text = text
        self.archived: dict[str, str] = {}
        self.writes = 0

    def ensure_location(self) -> None:
        return None

    def read(self) -> str | None:
        return self.text

    def write(self, text: str) -> None:
        self.text = text
        self.writes += 1

    def archive(self, suffix: str) -> str:
        if self.text is None:
            raise FileNotFoundError("No ledger document to archive")
        key = f"memory://task_ledger.{suffix}.json"
        self.archived[key] = self.text
        self.text = None
        return key
