import pytest

from vault_links.core.vault_operations import (
    construct_note_path,
    list_note_files,
    note_display_name,
    note_identity,
    notes_named,
    resolve_note_path,
)
from vault_links.data_models import VaultMetadata


def test_construct_preserves_dot_in_basename():
    """Dots within the note name are preserved before the .md suffix."""
    path = construct_note_path("v1.4 Release Changelog")
    assert path.as_posix() == "v1.4 Release Changelog.md"


def test_construct_nested_path():
    path = construct_note_path("Projects/v1.4 Release Notes")
    assert path.as_posix() == "Projects/v1.4 Release Notes.md"


def test_resolve_stays_inside_vault(vault):
    resolved = resolve_note_path(vault, "Folder/Note")
    assert resolved == vault.path / "Folder" / "Note.md"


def test_resolve_rejects_symlink_escape(tmp_path):
    root = tmp_path / "vault"
    outside = tmp_path / "outside"
    root.mkdir()
    outside.mkdir()
    (root / "link").symlink_to(outside, target_is_directory=True)
    vault = VaultMetadata(name="v", path=root.resolve(), description="", exists=True)

    with pytest.raises(ValueError):
        resolve_note_path(vault, "link/Secret")


def test_identity_and_display_name(vault):
    path = vault.path / "People" / "Ada.md"
    assert note_identity(vault.path, path) == "People/Ada"
    assert note_display_name("People/Ada") == "Ada"
    assert note_display_name("Ada") == "Ada"


def test_identity_outside_vault_falls_back_to_stem(vault, tmp_path_factory):
    other = tmp_path_factory.mktemp("other") / "Stray.md"
    assert note_identity(vault.path, other) == "Stray"


def test_list_note_files_is_sorted_and_markdown_only(vault, write_note):
    b = write_note("b", "")
    a = write_note("Sub/a", "")
    (vault.path / "image.png").write_bytes(b"")

    files = list_note_files(vault)

    assert files == sorted([a, b])
    assert notes_named(files, "a") == [a]


def test_missing_vault_directory(tmp_path):
    vault = VaultMetadata(name="gone", path=tmp_path / "gone", description="", exists=False)
    with pytest.raises(FileNotFoundError):
        list_note_files(vault)
