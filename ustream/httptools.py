"""Helpers for the HTTP server: listening sockets, client addresses and parameters."""

from __future__ import annotations

import enum
import errno
import logging
import os
import socket
from collections.abc import Mapping
from urllib.parse import quote

__all__ = [
    "BufferEventFlag",
    "bind_unix",
    "bind_systemd",
    "get_hostport",
    "get_true",
    "get_string",
    "format_bufferevent_reason",
]

_log = logging.getLogger(__name__)

# sizeof(sockaddr_un.sun_path) minus the terminating NUL
_MAX_SUN_PATH = 107
_LISTEN_BACKLOG = 128
_LISTEN_FDS_START = 3
_MAX_XFF_LENGTH = 1024
_MAX_ERROR_LENGTH = 1023


class BufferEventFlag(enum.IntFlag):
    """Event flags reported for a buffered connection."""

    READING = 0x01
    WRITING = 0x02
    EOF = 0x10
    ERROR = 0x20
    TIMEOUT = 0x40
    CONNECTED = 0x80


_REASON_NAMES = (
    (BufferEventFlag.READING, "reading"),
    (BufferEventFlag.WRITING, "writing"),
    (BufferEventFlag.ERROR, "error"),
    (BufferEventFlag.TIMEOUT, "timeout"),
    (BufferEventFlag.EOF, "eof"),
)


def bind_unix(path: str, rm: bool = False, mode: int = 0) -> socket.socket:
    """Create a non-blocking listening UNIX socket bound to ``path``.

    With ``rm`` an old socket file is removed first; a non-zero ``mode``
    is applied to the socket file. Raises ValueError for a path that is
    too long and OSError when the socket can't be set up.
    """
    if len(os.fsencode(path)) > _MAX_SUN_PATH:
        raise ValueError(f"HTTP: UNIX socket path is too long; max={_MAX_SUN_PATH}")

    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.setblocking(False)
        if rm:
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass
        sock.bind(path)
        if mode:
            os.chmod(path, mode)
        sock.listen(_LISTEN_BACKLOG)
    except OSError as err:
        sock.close()
        _log.error("HTTP: Can't set up UNIX socket '%s': %s", path, err)
        raise
    return sock


def _listen_fds(unset_environment: bool) -> int:
    """Return the number of sockets passed by the service manager."""
    try:
        pid_text = os.environ.get("LISTEN_PID")
        if not pid_text:
            return 0
        try:
            pid = int(pid_text)
        except ValueError:
            return -errno.EINVAL
        if pid != os.getpid():
            return 0
        try:
            count = int(os.environ.get("LISTEN_FDS", ""))
        except ValueError:
            return -errno.EINVAL
        if count <= 0:
            return 0 if count == 0 else -errno.EINVAL
        for fd in range(_LISTEN_FDS_START, _LISTEN_FDS_START + count):
            try:
                os.set_inheritable(fd, False)
            except OSError as err:
                return -(err.errno or errno.EBADF)
        return count
    finally:
        if unset_environment:
            for name in ("LISTEN_PID", "LISTEN_FDS", "LISTEN_FDNAMES"):
                os.environ.pop(name, None)


def bind_systemd() -> socket.socket:
    """Take over the first socket passed by socket activation.

    Any further passed sockets are closed. Raises RuntimeError when no
    socket was passed.
    """
    count = _listen_fds(unset_environment=True)
    if count < 1:
        _log.error("HTTP: No available systemd sockets")
        raise RuntimeError("HTTP: No available systemd sockets")

    for fd in range(_LISTEN_FDS_START + 1, _LISTEN_FDS_START + count):
        try:
            os.close(fd)
        except OSError:
            pass

    sock = socket.socket(fileno=_LISTEN_FDS_START)
    sock.setblocking(False)
    return sock


def _find(items: Mapping[str, str], key: str) -> str | None:
    """Case-insensitive lookup of the first matching key."""
    wanted = key.lower()
    for name, value in items.items():
        if name.lower() == wanted:
            return value
    return None


def get_hostport(peer: str | None, port: int, headers: Mapping[str, str]) -> str:
    """Describe a client as "[address]:port".

    The first address of an X-Forwarded-For header takes the place of the
    peer address; with neither the address is "???".
    """
    addr = peer
    xff = _find(headers, "X-Forwarded-For")
    if xff is not None:
        addr = xff[:_MAX_XFF_LENGTH].split(",", 1)[0]
    if addr is None:
        addr = "???"
    return f"[{addr}]:{port}"


def get_true(params: Mapping[str, str], key: str) -> bool:
    """Tell whether a parameter is set to "1...", "true" or "yes"."""
    value = _find(params, key)
    if value is None:
        return False
    return value.startswith("1") or value.lower() in ("true", "yes")


def get_string(params: Mapping[str, str], key: str) -> str | None:
    """Return a parameter percent-encoded, or None when it is absent."""
    value = _find(params, key)
    if value is None:
        return None
    return quote(value, safe="")


def format_bufferevent_reason(what: int, error: int | str) -> str:
    """Describe why a connection was closed.

    ``error`` is an errno value or a ready message; it is followed by the
    names of the flags set in ``what``.
    """
    message = os.strerror(error) if isinstance(error, int) else error
    names = ",".join(name for flag, name in _REASON_NAMES if what & flag)
    return f"{message[:_MAX_ERROR_LENGTH]} ({names})"