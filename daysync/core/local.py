"""Local diary directory."""

from pathlib import Path

from ..models.entry import entry_filename, is_entry_filename, is_safe_filename
from .settings import StorageError


class LocalStore:
    """Flat directory of markdown entries keyed by filename."""

    def __init__(self, diary_dir: Path) -> None:
        self.diary_dir = Path(diary_dir)

    def _path(self, filename: str) -> Path:
        if not is_safe_filename(filename):
            raise StorageError(f"Invalid entry filename: {filename!r}")
        return self.diary_dir / filename

    def list_files(self) -> set[str]:
        """Names of all entry files currently on disk."""
        if not self.diary_dir.exists():
            return set()
        try:
            return {
                p.name for p in self.diary_dir.iterdir()
                if p.is_file() and is_entry_filename(p.name)
            }
        except OSError as e:
            raise StorageError(f"Error listing {self.diary_dir}: {e}") from e

    def exists(self, filename: str) -> bool:
        return self._path(filename).exists()

    def read(self, filename: str) -> str:
        try:
            return self._path(filename).read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Error reading {filename}: {e}") from e

    def write(self, filename: str, content: str) -> None:
        """Write an entry, replacing any file with the same name."""
        try:
            self.diary_dir.mkdir(parents=True, exist_ok=True)
            self._path(filename).write_text(content, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Error writing {filename}: {e}") from e

    def delete(self, filename: str) -> None:
        try:
            self._path(filename).unlink()
        except OSError as e:
            raise StorageError(f"Error deleting {filename}: {e}") from e

    def save_entry(
        self,
        date: str,
        title: str,
        content: str,
        previous_filename: str | None = None,
    ) -> str:
        """Write an entry under its computed filename.

        When a renamed entry is saved, the file under its previous name is
        removed.

        Returns:
            The filename the entry was written to
        """
        if not content.strip():
            raise ValueError("Entry cannot be empty")

        filename = entry_filename(date, title)
        self.write(filename, content)

        if previous_filename and previous_filename != filename and self.exists(previous_filename):
            self.delete(previous_filename)

        return filename

    def wipe(self) -> int:
        """Delete every local entry. Files on the server are not touched.

        Returns:
            Number of entries deleted
        """
        names = self.list_files()
        for name in names:
            self.delete(name)
        return len(names)
