"""Normalisation of HTTP request paths."""

from __future__ import annotations

__all__ = ["simplify_request_path"]


def _strip_leading_dots(path: str) -> str:
    if path.startswith("."):
        if path[1:2] in ("/", ""):
            return path[1:]
        if path[1:2] == "." and path[2:3] in ("/", ""):
            return path[2:]
    return path


def simplify_request_path(path: str) -> str:
    """Collapse "//", "/./" and "/../" segments of a request path.

    The result never climbs above its root, so "../../etc/passwd"
    becomes "/etc/passwd". A trailing slash is kept.
    """
    if not path:
        return ""

    path = _strip_leading_dots(path.lstrip(" "))

    # The output is rewritten in place: segments are dropped by moving
    # the write position back, and characters behind it may be reused.
    out: list[str] = []
    pos = 0
    slash = 0
    pre1 = ""

    for current, following in zip(path, path[1:] + "\0"):
        pre2, pre1 = pre1, current
        if pos < len(out):
            out[pos] = current
        else:
            out.append(current)
        pos += 1

        if following not in ("/", "\0"):
            continue

        at_end = following == "\0"
        token_len = pos - slash
        if token_len == 3 and pre2 == "." and pre1 == "." and out[slash] == "/":
            # "/../" or "/.." at the end: drop the previous component too
            pos = slash
            if pos > 0:
                pos -= 1
                while pos > 0 and out[pos] != "/":
                    pos -= 1
            if at_end:
                pos += 1
        elif token_len == 1 or (pre2 == "/" and pre1 == "."):
            # "//" or "/./", or "/" and "/." at the end
            pos = slash
            if at_end:
                pos += 1
        slash = pos

    return "".join(out[:pos])