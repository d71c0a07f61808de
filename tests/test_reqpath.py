import pytest

from ustream.reqpath import simplify_request_path


@pytest.mark.parametrize(
    ("sample", "expected"),
    [
        ("", ""),
        ("   ", ""),
        ("/", "/"),
        ("//", "/"),
        ("abc", "abc"),
        ("abc//", "abc/"),
        ("abc/./xyz", "abc/xyz"),
        ("abc/.//xyz", "abc/xyz"),
        ("abc/../xyz", "/xyz"),
        ("/abc/./xyz", "/abc/xyz"),
        ("/abc//./xyz", "/abc/xyz"),
        ("/abc/../xyz", "/xyz"),
        ("abc/../xyz/.", "/xyz/"),
        ("/abc/../xyz/.", "/xyz/"),
        ("abc/./xyz/..", "abc/"),
        ("/abc/./xyz/..", "/abc/"),
        (".", ""),
        ("..", ""),
        ("...", "..."),
        ("....", "...."),
        (".../", ".../"),
        ("./xyz/..", "/"),
        (".//xyz/..", "/"),
        ("/./xyz/..", "/"),
        (".././xyz/..", "/"),
        ("/.././xyz/..", "/"),
        ("../../../etc/passwd", "/etc/passwd"),
        ("/../../../etc/passwd", "/etc/passwd"),
        ("   ../../../etc/passwd", "/etc/passwd"),
        ("   /../../../etc/passwd", "/etc/passwd"),
        ("   /foo/bar/../../../etc/passwd", "/etc/passwd"),
    ],
)
def test_simplify_request_path(sample, expected):
    assert simplify_request_path(sample) == expected


@pytest.mark.parametrize(
    "sample",
    ["/abc/../xyz/.", "abc//./def/../", "/../../../etc/passwd", "/a/b/c"],
)
def test_simplify_is_idempotent(sample):
    once = simplify_request_path(sample)
    assert simplify_request_path(once) == once


@pytest.mark.parametrize(
    "sample",
    ["../../../etc/passwd", "/a/../../..", "x/../../y/../.."],
)
def test_no_parent_segments_remain(sample):
    result = simplify_request_path(sample)
    assert "/../" not in result
    assert not result.endswith("/..")