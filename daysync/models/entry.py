"""Diary entry filename helpers."""

import re
from dataclasses import dataclass

ENTRY_EXTENSION = ".md"


def sanitize_title(title: str) -> str:
    """Sanitize an entry title for use in a filename.

    Every character outside [A-Za-z0-9] becomes an underscore.
    """
    sanitized = re.sub(r"[^a-zA-Z0-9]", "_", title.strip())
    return sanitized or "untitled"


def entry_filename(date: str, title: str) -> str:
    """Build the filename for an entry, e.g. ``2024-05-01_Morning_walk.md``."""
    return f"{date}_{sanitize_title(title)}{ENTRY_EXTENSION}"


def is_entry_filename(name: str) -> bool:
    """Check whether a name carries the entry extension."""
    return name.endswith(ENTRY_EXTENSION)


def is_safe_filename(name: str) -> bool:
    """Check that a name stays inside a single directory."""
    return bool(name) and "/" not in name and "\\" not in name and name not in (".", "..")


@dataclass(frozen=True)
class EntryName:
    """Date and display title recovered from an entry filename."""

    date: str
    title: str

    @classmethod
    def parse(cls, filename: str) -> "EntryName":
        """Split a filename into its date token and human-readable title."""
        stem = filename[: -len(ENTRY_EXTENSION)] if is_entry_filename(filename) else filename
        parts = stem.split("_")
        title = "_".join(parts[1:]).replace("_", " ")
        return cls(date=parts[0], title=title or "Untitled")


def parse_entry_filename(filename: str) -> EntryName:
    """Parse an entry filename into date and title."""
    return EntryName.parse(filename)
