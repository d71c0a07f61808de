"""Guessing of MIME types from file names."""

from __future__ import annotations

__all__ = ["guess_mime_type"]

_DEFAULT_MIME = "application/misc"

_MIME_TYPES = {
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "txt": "text/plain",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "ico": "image/x-icon",
    "bmp": "image/bmp",
    "svg": "image/svg+xml",
    "swf": "application/x-shockwave-flash",
    "cab": "application/x-shockwave-flash",
    "jar": "application/java-archive",
    "json": "application/json",
}


def guess_mime_type(path: str) -> str:
    """Return the MIME type for the extension of ``path``.

    The extension is matched case-insensitively; unknown extensions and
    names without one give "application/misc".
    """
    _, dot, ext = path.rpartition(".")
    if not dot or "/" in ext or not ext.isascii():
        return _DEFAULT_MIME
    return _MIME_TYPES.get(ext.lower(), _DEFAULT_MIME)