import pytest

from ustream.mime import guess_mime_type


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("index.html", "text/html"),
        ("index.htm", "text/html"),
        ("style.css", "text/css"),
        ("app.js", "text/javascript"),
        ("notes.txt", "text/plain"),
        ("photo.jpg", "image/jpeg"),
        ("photo.jpeg", "image/jpeg"),
        ("image.png", "image/png"),
        ("anim.gif", "image/gif"),
        ("favicon.ico", "image/x-icon"),
        ("pic.bmp", "image/bmp"),
        ("logo.svg", "image/svg+xml"),
        ("movie.swf", "application/x-shockwave-flash"),
        ("pack.cab", "application/x-shockwave-flash"),
        ("lib.jar", "application/java-archive"),
        ("state.json", "application/json"),
    ],
)
def test_known_extensions(path, expected):
    assert guess_mime_type(path) == expected


@pytest.mark.parametrize("path", ["INDEX.HTML", "/www/Index.Html", "a/b/c.HtM"])
def test_extension_is_case_insensitive(path):
    assert guess_mime_type(path) == "text/html"


@pytest.mark.parametrize(
    "path",
    ["noext", "/dir.d/file", "archive.unknown", "trailing.", ""],
)
def test_unknown_gives_misc(path):
    assert guess_mime_type(path) == "application/misc"


def test_only_last_extension_counts():
    assert guess_mime_type("/www/page.html.json") == "application/json"
    assert guess_mime_type("/www/data.json.bak") == "application/misc"