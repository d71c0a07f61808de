import os

import pytest

from ustream.staticfiles import find_static_file_path


@pytest.fixture
def root(tmp_path):
    (tmp_path / "a.txt").write_text("hello")
    site = tmp_path / "site"
    site.mkdir()
    (site / "index.html").write_text("<html></html>")
    (tmp_path / "empty").mkdir()
    return tmp_path


def test_regular_file_is_found(root):
    found = find_static_file_path(str(root), "/a.txt")
    assert found == f"{root}//a.txt"
    assert os.path.samefile(found, root / "a.txt")


def test_directory_resolves_to_index(root):
    found = find_static_file_path(str(root), "/site")
    assert found.endswith("/index.html")
    assert os.path.samefile(found, root / "site" / "index.html")


def test_root_request_without_index(root):
    assert find_static_file_path(str(root), "/") is None


def test_directory_without_index(root):
    assert find_static_file_path(str(root), "/empty/") is None


def test_missing_file(root):
    assert find_static_file_path(str(root), "/nope.txt") is None


@pytest.mark.parametrize("request_path", ["", ".", ".."])
def test_empty_simplified_path(root, request_path):
    assert find_static_file_path(str(root), request_path) is None


def test_traversal_stays_under_root(root):
    found = find_static_file_path(str(root), "/../../a.txt")
    assert found == f"{root}//a.txt"
    assert os.path.samefile(found, root / "a.txt")


def test_symlink_is_rejected(root):
    (root / "link.txt").symlink_to(root / "a.txt")
    assert find_static_file_path(str(root), "/link.txt") is None


def test_dotted_segments_are_collapsed(root):
    found = find_static_file_path(str(root), "/site/./../a.txt")
    assert found == f"{root}//a.txt"
    assert os.path.samefile(found, root / "a.txt")