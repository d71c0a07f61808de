"""Command-line options of the streamer."""

from __future__ import annotations

import enum
import os
import re
import sys
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

__all__ = [
    "OptionsError",
    "Action",
    "CtlMode",
    "Control",
    "SinkOptions",
    "Options",
    "parse_resolution",
    "check_instance_id",
    "parse_options",
    "features",
]

VIDEO_MIN_WIDTH = 160
VIDEO_MAX_WIDTH = 15360
VIDEO_MIN_HEIGHT = 120
VIDEO_MAX_HEIGHT = 8640
VIDEO_MAX_FPS = 120

LOG_LEVEL_INFO = 0
LOG_LEVEL_PERF = 1
LOG_LEVEL_VERBOSE = 2
LOG_LEVEL_DEBUG = 3

FORMATS = ("YUYV", "YVYU", "UYVY", "YUV420", "YVU420", "RGB565", "RGB24", "BGR24", "GREY", "MJPEG", "JPEG")
STANDARDS = ("PAL", "NTSC", "SECAM")
IO_METHODS = ("MMAP", "USERPTR")
ENCODER_TYPES = ("CPU", "HW", "M2M-VIDEO", "M2M-IMAGE")

CONTROL_NAMES = (
    "brightness",
    "contrast",
    "saturation",
    "hue",
    "gamma",
    "sharpness",
    "backlight_compensation",
    "white_balance",
    "gain",
    "color_effect",
    "rotate",
    "flip_vertical",
    "flip_horizontal",
)
_AUTO_CONTROLS = frozenset({"brightness", "hue", "white_balance", "gain"})

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1
_LLONG_MIN = -(2**63)
_LLONG_MAX = 2**63 - 1


class OptionsError(Exception):
    """Invalid command line."""


class Action(enum.Enum):
    """What the program should do after parsing the command line."""

    RUN = "run"
    HELP = "help"
    VERSION = "version"
    FEATURES = "features"


class CtlMode(enum.Enum):
    """How an image control of the capture device is to be set."""

    NONE = "none"
    VALUE = "value"
    AUTO = "auto"
    DEFAULT = "default"


@dataclass
class Control:
    """Requested setting of one image control."""

    mode: CtlMode = CtlMode.NONE
    value: int = 0


@dataclass
class SinkOptions:
    """Settings of a shared-memory sink."""

    name: str | None = None
    mode: int = 0o660
    rm: bool = False
    client_ttl: int = 10
    timeout: int = 1

    @property
    def enabled(self) -> bool:
        return bool(self.name)


def _cores() -> int:
    return min(os.cpu_count() or 1, 4)


@dataclass
class Options:
    """All settings taken from the command line, with their defaults."""

    action: Action = Action.RUN

    device: str = "/dev/video0"
    input: int = 0
    width: int = 640
    height: int = 480
    format: str = "YUYV"
    format_swap_rgb: bool = False
    tv_standard: str | None = None
    io_method: str = "MMAP"
    desired_fps: int = 0
    min_frame_size: int = 128
    allow_truncated_frames: bool = False
    persistent: bool = False
    dv_timings: bool = False
    buffers: int = field(default_factory=lambda: _cores() + 1)
    workers: int = field(default_factory=_cores)
    quality: int = 80
    encoder: str = "CPU"
    slowdown: bool = False
    device_timeout: int = 1
    device_error_delay: int = 1
    m2m_device: str | None = None
    controls: dict[str, Control] = field(
        default_factory=lambda: {name: Control() for name in CONTROL_NAMES}
    )

    host: str = "127.0.0.1"
    port: int = 8080
    unix_path: str | None = None
    unix_rm: bool = False
    unix_mode: int = 0
    systemd: bool = False
    user: str | None = None
    passwd: str | None = None
    static_path: str | None = None
    drop_same_frames: int = 0
    fake_width: int = 0
    fake_height: int = 0
    allow_origin: str | None = None
    instance_id: str = ""
    tcp_nodelay: bool = False
    server_timeout: int = 10

    jpeg_sink: SinkOptions = field(default_factory=SinkOptions)
    raw_sink: SinkOptions = field(default_factory=SinkOptions)
    h264_sink: SinkOptions = field(default_factory=SinkOptions)
    h264_bitrate: int = 5000
    h264_gop: int = 30
    h264_m2m_device: str | None = None

    exit_on_no_clients: int = 0
    notify_parent: bool = False

    log_level: int = LOG_LEVEL_INFO
    log_colored: bool | None = None


class _ResolutionError(ValueError):
    def __init__(self, part: str, message: str) -> None:
        super().__init__(message)
        self.part = part


_RESOLUTION_RE = re.compile(r"\s*([+-]?\d+)x\s*([+-]?\d+)")


def parse_resolution(text: str, limited: bool) -> tuple[int, int]:
    """Parse "WxH" into (width, height).

    Text after the height is ignored. With ``limited`` both sides must lie
    within the supported video size. Raises ValueError otherwise.
    """
    match = _RESOLUTION_RE.match(text)
    if match is None:
        raise _ResolutionError("format", f"Invalid resolution format: {text}")
    width = int(match.group(1)) % 2**32
    height = int(match.group(2)) % 2**32
    if limited:
        if not VIDEO_MIN_WIDTH <= width <= VIDEO_MAX_WIDTH:
            raise _ResolutionError(
                "width", f"Invalid width: min={VIDEO_MIN_WIDTH}, max={VIDEO_MAX_WIDTH}"
            )
        if not VIDEO_MIN_HEIGHT <= height <= VIDEO_MAX_HEIGHT:
            raise _ResolutionError(
                "height", f"Invalid height: min={VIDEO_MIN_HEIGHT}, max={VIDEO_MAX_HEIGHT}"
            )
    return width, height


_INSTANCE_ID_RE = re.compile(r"[a-zA-Z0-9./+_-]*")


def check_instance_id(text: str) -> bool:
    """Tell whether ``text`` matches ^[a-zA-Z0-9./+_-]*$."""
    return _INSTANCE_ID_RE.fullmatch(text) is not None


def features() -> list[str]:
    """Return the optional features, one "+ NAME" or "- NAME" line each."""
    enabled = {"WITH_SYSTEMD"}
    names = (
        "WITH_PYTHON",
        "WITH_JANUS",
        "WITH_V4P",
        "WITH_GPIO",
        "WITH_SYSTEMD",
        "WITH_LIBX264",
        "WITH_PTHREAD_NP",
        "WITH_SETPROCTITLE",
        "WITH_PDEATHSIG",
    )
    return [f"{'+' if name in enabled else '-'} {name}" for name in names]


# Long option name -> (takes an argument, short letter)
_LONG: dict[str, tuple[bool, str | None]] = {
    "device": (True, "d"),
    "input": (True, "i"),
    "resolution": (True, "r"),
    "format": (True, "m"),
    "format-swap-rgb": (True, None),
    "tv-standard": (True, "a"),
    "io-method": (True, "I"),
    "desired-fps": (True, "f"),
    "min-frame-size": (True, "z"),
    "allow-truncated-frames": (False, "T"),
    "persistent": (False, "n"),
    "dv-timings": (False, "t"),
    "buffers": (True, "b"),
    "workers": (True, "w"),
    "quality": (True, "q"),
    "encoder": (True, "c"),
    "glitched-resolutions": (True, "g"),
    "blank": (True, "k"),
    "last-as-blank": (True, "K"),
    "slowdown": (False, "l"),
    "device-timeout": (True, None),
    "device-error-delay": (True, None),
    "m2m-device": (True, None),
    "image-default": (False, None),
    **{name.replace("_", "-"): (True, None) for name in CONTROL_NAMES},
    "host": (True, "s"),
    "port": (True, "p"),
    "unix": (True, "U"),
    "unix-rm": (False, "D"),
    "unix-mode": (True, "M"),
    "systemd": (False, "S"),
    "user": (True, None),
    "passwd": (True, None),
    "static": (True, None),
    "drop-same-frames": (True, "e"),
    "allow-origin": (True, None),
    "instance-id": (True, None),
    "fake-resolution": (True, "R"),
    "tcp-nodelay": (False, None),
    "server-timeout": (True, None),
    **{
        f"{prefix}-sink{suffix}": (has_arg, None)
        for prefix in ("jpeg", "raw", "h264")
        for suffix, has_arg in (
            ("", True),
            ("-mode", True),
            ("-rm", False),
            ("-client-ttl", True),
            ("-timeout", True),
        )
    },
    "h264-bitrate": (True, None),
    "h264-gop": (True, None),
    "h264-m2m-device": (True, None),
    "exit-on-no-clients": (True, None),
    "notify-parent": (False, None),
    "log-level": (True, None),
    "perf": (False, None),
    "verbose": (False, None),
    "debug": (False, None),
    "force-log-colors": (False, None),
    "no-log-colors": (False, None),
    "help": (False, "h"),
    "version": (False, "v"),
    "features": (False, None),
}

_ALIASES = {
    "sink": "jpeg-sink",
    "sink-mode": "jpeg-sink-mode",
    "sink-rm": "jpeg-sink-rm",
    "sink-client-ttl": "jpeg-sink-client-ttl",
    "sink-timeout": "jpeg-sink-timeout",
}

_SHORT = {short: name for name, (_, short) in _LONG.items() if short is not None}

_ALL_NAMES = {**{name: name for name in _LONG}, **_ALIASES}


def _match_long(name: str) -> str:
    if name in _ALL_NAMES:
        return _ALL_NAMES[name]
    candidates = {key for alias, key in _ALL_NAMES.items() if alias.startswith(name)}
    if not candidates:
        raise OptionsError(f"unrecognized option '--{name}'")
    if len(candidates) > 1:
        raise OptionsError(f"option '--{name}' is ambiguous")
    return candidates.pop()


def _iter_args(args: Sequence[str]) -> Iterator[tuple[str, str | None]]:
    """Yield (long name, argument) pairs in command-line order."""
    index = 0
    while index < len(args):
        arg = args[index]
        index += 1
        if arg == "--":
            return
        if arg.startswith("--"):
            name, eq, value = arg[2:].partition("=")
            key = _match_long(name)
            has_arg = _LONG[key][0]
            if has_arg:
                if not eq:
                    if index >= len(args):
                        raise OptionsError(f"option '--{name}' requires an argument")
                    value = args[index]
                    index += 1
                yield key, value
            else:
                if eq:
                    raise OptionsError(f"option '--{name}' doesn't allow an argument")
                yield key, None
        elif arg.startswith("-") and arg != "-":
            rest = arg[1:]
            while rest:
                letter, rest = rest[0], rest[1:]
                key = _SHORT.get(letter)
                if key is None:
                    raise OptionsError(f"invalid option -- '{letter}'")
                if not _LONG[key][0]:
                    yield key, None
                    continue
                if rest:
                    value = rest
                elif index < len(args):
                    value = args[index]
                    index += 1
                else:
                    raise OptionsError(f"option requires an argument -- '{letter}'")
                yield key, value
                break
        # Anything else is not an option and is left alone


_SPACE = " \t\n\v\f\r"
_INT_RE = {
    0: re.compile(r"([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)"),
    8: re.compile(r"([+-]?)([0-7]+)"),
}


def _parse_number(name: str, text: str, minimum: int, maximum: int, base: int = 0) -> int:
    error = OptionsError(f"Invalid value for '{name}={text}': min={minimum}, max={maximum}")
    if text == "":
        value = 0
    else:
        match = _INT_RE[base].fullmatch(text.lstrip(_SPACE))
        if match is None:
            raise error
        sign, digits = match.groups()
        if base == 8:
            value = int(digits, 8)
        elif digits[:2] in ("0x", "0X"):
            value = int(digits[2:], 16)
        elif digits.startswith("0"):
            value = int(digits, 8)
        else:
            value = int(digits)
        if sign == "-":
            value = -value
        if not _LLONG_MIN <= value <= _LLONG_MAX:
            raise error
    if not minimum <= value <= maximum:
        raise error
    return value


def _parse_choice(label: str, text: str, choices: Sequence[str]) -> str:
    wanted = text.upper()
    if wanted not in choices:
        raise OptionsError(f"Unknown {label}: {text}; available: {', '.join(choices)}")
    return wanted


def _parse_resolution_option(name: str, text: str, limited: bool) -> tuple[int, int]:
    try:
        return parse_resolution(text, limited)
    except _ResolutionError as err:
        if err.part == "width":
            raise OptionsError(
                f"Invalid width of '{name}={text}': min={VIDEO_MIN_WIDTH}, max={VIDEO_MAX_WIDTH}"
            ) from None
        if err.part == "height":
            raise OptionsError(
                f"Invalid height of '{name}={text}': min={VIDEO_MIN_HEIGHT}, max={VIDEO_MAX_HEIGHT}"
            ) from None
        raise OptionsError(f"Invalid resolution format for '{name}={text}'") from None


def _set_control(options: Options, name: str, text: str) -> None:
    control = options.controls[name]
    lowered = text.lower()
    if lowered == "default":
        control.mode = CtlMode.DEFAULT
    elif lowered == "auto" and name in _AUTO_CONTROLS:
        control.mode = CtlMode.AUTO
    else:
        control.mode = CtlMode.VALUE
        control.value = _parse_number(f"--{name}", text, _INT_MIN, _INT_MAX)


# Option -> (attribute, minimum, maximum, base)
_NUMBERS = {
    "input": ("input", 0, 128, 0),
    "desired-fps": ("desired_fps", 0, VIDEO_MAX_FPS, 0),
    "min-frame-size": ("min_frame_size", 1, 8192, 0),
    "buffers": ("buffers", 1, 32, 0),
    "workers": ("workers", 1, 32, 0),
    "quality": ("quality", 1, 100, 0),
    "device-timeout": ("device_timeout", 1, 60, 0),
    "device-error-delay": ("device_error_delay", 1, 60, 0),
    "port": ("port", 1, 65535, 0),
    "unix-mode": ("unix_mode", _INT_MIN, _INT_MAX, 8),
    "drop-same-frames": ("drop_same_frames", 0, VIDEO_MAX_FPS, 0),
    "server-timeout": ("server_timeout", 1, 60, 0),
    "h264-bitrate": ("h264_bitrate", 25, 20000, 0),
    "h264-gop": ("h264_gop", 0, 60, 0),
    "exit-on-no-clients": ("exit_on_no_clients", 0, 86400, 0),
    "log-level": ("log_level", LOG_LEVEL_INFO, LOG_LEVEL_DEBUG, 0),
}

# String options whose attribute has the same name as the option
_SAME_NAMED_STRINGS = ("device", "host", "user", "passwd")

_STRINGS = {
    **{name: name for name in _SAME_NAMED_STRINGS},
    "m2m-device": "m2m_device",
    "unix": "unix_path",
    "static": "static_path",
    "allow-origin": "allow_origin",
    "h264-m2m-device": "h264_m2m_device",
}

# Option -> (attribute, value)
_FIXED = {
    "format-swap-rgb": ("format_swap_rgb", True),
    "allow-truncated-frames": ("allow_truncated_frames", True),
    "persistent": ("persistent", True),
    "dv-timings": ("dv_timings", True),
    "slowdown": ("slowdown", True),
    "unix-rm": ("unix_rm", True),
    "systemd": ("systemd", True),
    "tcp-nodelay": ("tcp_nodelay", True),
    "notify-parent": ("notify_parent", True),
    "perf": ("log_level", LOG_LEVEL_PERF),
    "verbose": ("log_level", LOG_LEVEL_VERBOSE),
    "debug": ("log_level", LOG_LEVEL_DEBUG),
    "force-log-colors": ("log_colored", True),
    "no-log-colors": ("log_colored", False),
}

_CHOICES = {
    "format": ("format", "pixel format", FORMATS),
    "tv-standard": ("tv_standard", "TV standard", STANDARDS),
    "io-method": ("io_method", "IO method", IO_METHODS),
    "encoder": ("encoder", "encoder type", ENCODER_TYPES),
}

_ACTIONS = {"help": Action.HELP, "version": Action.VERSION, "features": Action.FEATURES}

_DEPRECATED = frozenset({"glitched-resolutions", "blank", "last-as-blank"})

_CONTROL_OPTIONS = {name.replace("_", "-"): name for name in CONTROL_NAMES}


def _apply_sink(options: Options, key: str, value: str | None) -> bool:
    for prefix in ("jpeg", "raw", "h264"):
        base = f"{prefix}-sink"
        if key != base and not key.startswith(base + "-"):
            continue
        sink: SinkOptions = getattr(options, f"{prefix}_sink")
        suffix = key[len(base):]
        if suffix == "":
            sink.name = value
        elif suffix == "-mode":
            sink.mode = _parse_number(f"--{key}", value or "", _INT_MIN, _INT_MAX, 8)
        elif suffix == "-rm":
            sink.rm = True
        elif suffix == "-client-ttl":
            sink.client_ttl = _parse_number(f"--{key}", value or "", 1, 60)
        elif suffix == "-timeout":
            sink.timeout = _parse_number(f"--{key}", value or "", 1, 60)
        return True
    return False


def parse_options(argv: Sequence[str] | None = None) -> Options:
    """Parse a command line whose first item is the program name.

    Parsing stops at --help, --version or --features, which are reported
    through ``Options.action``. Raises OptionsError on a bad option.
    """
    if argv is None:
        argv = sys.argv
    options = Options()

    for key, value in _iter_args(list(argv[1:])):
        text = value if value is not None else ""
        if key in _ACTIONS:
            options.action = _ACTIONS[key]
            return options
        if key in _DEPRECATED:
            continue
        if key in _NUMBERS:
            attr, minimum, maximum, base = _NUMBERS[key]
            setattr(options, attr, _parse_number(f"--{key}", text, minimum, maximum, base))
        elif key in _STRINGS:
            setattr(options, _STRINGS[key], text)
        elif key in _FIXED:
            attr, fixed = _FIXED[key]
            setattr(options, attr, fixed)
        elif key in _CHOICES:
            attr, label, choices = _CHOICES[key]
            setattr(options, attr, _parse_choice(label, text, choices))
        elif key in _CONTROL_OPTIONS:
            _set_control(options, _CONTROL_OPTIONS[key], text)
        elif key == "image-default":
            for control in options.controls.values():
                control.mode = CtlMode.DEFAULT
        elif key == "resolution":
            options.width, options.height = _parse_resolution_option("--resolution", text, True)
        elif key == "fake-resolution":
            options.fake_width, options.fake_height = _parse_resolution_option(
                "--fake-resolution", text, False
            )
        elif key == "instance-id":
            if not check_instance_id(text):
                raise OptionsError(
                    "Invalid instance ID, it should be like: ^[a-zA-Z0-9\\./+_-]*$"
                )
            options.instance_id = text
        elif not _apply_sink(options, key, value):
            raise OptionsError(f"unrecognized option '--{key}'")

    return options