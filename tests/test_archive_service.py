from __future__ import annotations

from pathlib import Path

import pytest

from conftest import make_zip
from modlib.core.exceptions import InvalidArchive
from modlib.services.archive_service import ArchiveService


def test_is_zip_checks_magic_header() -> None:
    assert ArchiveService.is_zip(make_zip({"a.txt": b"x"}))
    assert not ArchiveService.is_zip(b"Rar!\x1a\x07\x00")
    assert not ArchiveService.is_zip(b"PK")
    assert not ArchiveService.is_zip(b"")


def test_single_root_classification() -> None:
    layout = ArchiveService.classify_roots(["pkg/a.txt", "pkg/sub/b.txt"])
    assert layout.is_single_root
    assert layout.root == "pkg"


def test_multi_root_classification() -> None:
    layout = ArchiveService.classify_roots(["a.txt", "b.txt"])
    assert not layout.is_single_root
    assert layout.root is None


def test_classification_stops_at_second_root() -> None:
    def entries():
        yield "first/a.txt"
        yield "second/b.txt"
        raise AssertionError("iterated past the second distinct root")

    assert not ArchiveService.classify_roots(entries()).is_single_root


def test_directory_entries_count_towards_their_root() -> None:
    layout = ArchiveService.classify_roots(["pkg/", "pkg/a.txt"])
    assert layout.root == "pkg"


def test_root_is_folder_requires_nested_entry() -> None:
    assert ArchiveService.root_is_folder(["pkg/", "pkg/a.txt"], "pkg")
    assert not ArchiveService.root_is_folder(["readme.txt"], "readme.txt")


def test_dot_components_are_ignored_when_classifying() -> None:
    assert not ArchiveService.classify_roots(["./", "./a.txt", "./b.txt"]).is_single_root

    layout = ArchiveService.classify_roots(["./pkg/", "./pkg/a.txt"])
    assert layout.root == "pkg"
    assert ArchiveService.root_is_folder(["./pkg/a.txt"], "pkg")
    assert ArchiveService.wrapper_name(["./", "./a.txt", "./b.txt"]) == "mod_a.txt_b.txt"


def test_wrapper_name_uses_first_entry_names() -> None:
    names = ["alpha.txt", "beta/", "beta/gamma.txt", "delta.txt"]
    assert ArchiveService.wrapper_name(names) == "mod_alpha.txt_beta_gamma.txt"


def test_wrapper_name_falls_back_to_generated_id() -> None:
    name = ArchiveService.wrapper_name(["/", "//"])
    assert name.startswith("mod_")
    assert len(name) == len("mod_") + 8


def test_open_zip_rejects_garbage() -> None:
    with pytest.raises(InvalidArchive, match="Invalid ZIP archive"):
        ArchiveService.open_zip(b"PK\x03\x04not really a zip")


def test_extract_writes_directories_and_files(tmp_path: Path) -> None:
    data = make_zip({"pkg/": None, "pkg/empty/": None, "pkg/sub/b.txt": b"bee"})
    with ArchiveService.open_zip(data) as archive:
        written = ArchiveService.extract(archive, tmp_path / "out")

    assert written == 1
    assert (tmp_path / "out" / "pkg" / "empty").is_dir()
    assert (tmp_path / "out" / "pkg" / "sub" / "b.txt").read_bytes() == b"bee"


def test_extract_rejects_entries_leaving_the_target(tmp_path: Path) -> None:
    data = make_zip({"../escape.txt": b"x"})
    with ArchiveService.open_zip(data) as archive:
        with pytest.raises(InvalidArchive, match="outside"):
            ArchiveService.extract(archive, tmp_path / "out")
    assert not (tmp_path / "escape.txt").exists()
