"""Tests for the local diary directory."""

import pytest

from daysync.core.local import LocalStore
from daysync.core.settings import StorageError


class TestLocalStore:
    """Tests for LocalStore class."""

    def test_empty_when_missing(self, local_store: LocalStore) -> None:
        assert local_store.list_files() == set()

    def test_write_read_list(self, local_store: LocalStore) -> None:
        local_store.write("2024-05-01_Walk.md", "# Walk")
        local_store.write("notes.txt", "ignored")

        assert local_store.list_files() == {"2024-05-01_Walk.md"}
        assert local_store.read("2024-05-01_Walk.md") == "# Walk"

    def test_last_write_wins(self, local_store: LocalStore) -> None:
        local_store.write("a.md", "first")
        local_store.write("a.md", "second")

        assert local_store.read("a.md") == "second"

    def test_delete(self, local_store: LocalStore) -> None:
        local_store.write("a.md", "x")

        local_store.delete("a.md")

        assert not local_store.exists("a.md")

    def test_delete_missing_raises(self, local_store: LocalStore) -> None:
        with pytest.raises(StorageError):
            local_store.delete("missing.md")

    def test_read_missing_raises(self, local_store: LocalStore) -> None:
        with pytest.raises(StorageError):
            local_store.read("missing.md")

    def test_rejects_paths(self, local_store: LocalStore) -> None:
        with pytest.raises(StorageError):
            local_store.write("../escape.md", "x")

    def test_wipe(self, local_store: LocalStore) -> None:
        local_store.write("a.md", "x")
        local_store.write("b.md", "y")
        (local_store.diary_dir / "notes.txt").write_text("kept")

        assert local_store.wipe() == 2
        assert local_store.list_files() == set()
        assert (local_store.diary_dir / "notes.txt").exists()

    def test_wipe_empty(self, local_store: LocalStore) -> None:
        assert local_store.wipe() == 0


class TestSaveEntry:
    """Tests for saving entries by date and title."""

    def test_save_entry(self, local_store: LocalStore) -> None:
        filename = local_store.save_entry("2024-05-01", "Morning walk", "Sunny.")

        assert filename == "2024-05-01_Morning_walk.md"
        assert local_store.read(filename) == "Sunny."

    def test_rename_removes_previous(self, local_store: LocalStore) -> None:
        old = local_store.save_entry("2024-05-01", "Draft", "text")

        new = local_store.save_entry("2024-05-01", "Final", "text", previous_filename=old)

        assert local_store.list_files() == {new}

    def test_empty_content_rejected(self, local_store: LocalStore) -> None:
        with pytest.raises(ValueError, match="cannot be empty"):
            local_store.save_entry("2024-05-01", "Nothing", "   \n")
