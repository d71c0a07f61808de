"""The text printed for --help."""

from __future__ import annotations

from .options import FORMATS, IO_METHODS, STANDARDS, Options

__all__ = ["render_help"]

_SINKS = (("JPEG", "jpeg"), ("RAW", "raw"), ("H264", "h264"))


def _capturing(options: Options) -> list[str]:
    return [
        "Capturing options:",
        "══════════════════",
        f"    -d|--device </dev/path>  ───────────── Path to V4L2 device. Default: {options.device}.\n",
        f"    -i|--input <N>  ────────────────────── Input channel. Default: {options.input}.\n",
        "    -r|--resolution <WxH>  ─────────────── Initial image resolution. "
        f"Default: {options.width}x{options.height}.\n",
        "    -m|--format <fmt>  ─────────────────── Image format.",
        f"                                           Available: {', '.join(FORMATS)}; default: YUYV.\n",
        "       --format-swap-rgb  ──────────────── Enable R-G-B order swapping: RGB to BGR and vice versa.",
        "                                           Default: disabled.\n",
        "    -a|--tv-standard <std>  ────────────── Force TV standard.",
        f"                                           Available: {', '.join(STANDARDS)}; default: disabled.\n",
        "    -I|--io-method <method>  ───────────── Set V4L2 IO method (see kernel documentation).",
        "                                           Changing of this parameter may increase the performance. Or not.",
        f"                                           Available: {', '.join(IO_METHODS)}; default: MMAP.\n",
        "    -f|--desired-fps <N>  ──────────────── Desired FPS. Default: maximum possible.\n",
        "    -z|--min-frame-size <N>  ───────────── Drop frames smaller then this limit. Useful if the device",
        "                                           produces small-sized garbage frames. "
        f"Default: {options.min_frame_size} bytes.\n",
        "    -T|--allow-truncated-frames  ───────── Allows to handle truncated frames. Useful if the device",
        "                                           produces incorrect but still acceptable frames. Default: disabled.\n",
        "    -n|--persistent  ───────────────────── Don't re-initialize device on timeout. Default: disabled.\n",
        "    -t|--dv-timings  ───────────────────── Enable DV-timings querying and events processing",
        "                                           to automatic resolution change. Default: disabled.\n",
        "    -b|--buffers <N>  ──────────────────── The number of buffers to receive data from the device.",
        "                                           Each buffer may processed using an independent thread.",
        f"                                           Default: {options.buffers} "
        "(the number of CPU cores (but not more than 4) + 1).\n",
        "    -w|--workers <N>  ──────────────────── The number of worker threads but not more than buffers.",
        f"                                           Default: {options.workers} "
        "(the number of CPU cores (but not more than 4)).\n",
        "    -q|--quality <N>  ──────────────────── Set quality of JPEG encoding from 1 to 100 (best). "
        f"Default: {options.quality}.",
        "                                           Note: If HW encoding is used (JPEG source format selected),",
        "                                           this parameter attempts to configure the camera",
        "                                           or capture device hardware's internal encoder.",
        "                                           It does not re-encode MJPEG to MJPEG to change the quality level",
        "                                           for sources that already output MJPEG.\n",
        "    -c|--encoder <type>  ───────────────── Use specified encoder. It may affect the number of workers.",
        "                                           Available:",
        "                                             * CPU  ──────── Software MJPEG encoding (default);",
        "                                             * HW  ───────── Use pre-encoded MJPEG frames directly "
        "from camera hardware;",
        "                                             * M2M-VIDEO  ── GPU-accelerated MJPEG encoding "
        "using V4L2 M2M video interface;",
        "                                             * M2M-IMAGE  ── GPU-accelerated JPEG encoding "
        "using V4L2 M2M image interface.\n",
        "                                             * M2M-IMAGE  ── GPU-accelerated JPEG encoding "
        "using V4L2 M2M image interface.",
        "    -g|--glitched-resolutions <WxH,...>  ─ It doesn't do anything. Still here for compatibility.\n",
        "    -k|--blank <path>  ─────────────────── It doesn't do anything. Still here for compatibility.\n",
        "    -K|--last-as-blank <sec>  ──────────── It doesn't do anything. Still here for compatibility.\n",
        "    -l|--slowdown  ─────────────────────── Slowdown capturing to 1 FPS or less when no stream or sink clients",
        "                                           are connected. Useful to reduce CPU consumption. Default: disabled.\n",
        f"    --device-timeout <sec>  ────────────── Timeout for device querying. Default: {options.device_timeout}.\n",
        "    --device-error-delay <sec>  ────────── Delay before trying to connect to the device again",
        "                                           after an error (timeout for example). "
        f"Default: {options.device_error_delay}.\n",
        "    --m2m-device </dev/path>  ──────────── Path to V4L2 M2M encoder device. Default: auto select.\n",
    ]


def _image_controls() -> list[str]:
    return [
        "Image control options:",
        "══════════════════════",
        "    --image-default  ────────────────────── Reset all image settings below to default. Default: no change.\n",
        "    --brightness <N|auto|default>  ──────── Set brightness. Default: no change.\n",
        "    --contrast <N|default>  ─────────────── Set contrast. Default: no change.\n",
        "    --saturation <N|default>  ───────────── Set saturation. Default: no change.\n",
        "    --hue <N|auto|default>  ─────────────── Set hue. Default: no change.\n",
        "    --gamma <N|default> ─────────────────── Set gamma. Default: no change.\n",
        "    --sharpness <N|default>  ────────────── Set sharpness. Default: no change.\n",
        "    --backlight-compensation <N|default>  ─ Set backlight compensation. Default: no change.\n",
        "    --white-balance <N|auto|default>  ───── Set white balance. Default: no change.\n",
        "    --gain <N|auto|default>  ────────────── Set gain. Default: no change.\n",
        "    --color-effect <N|default>  ─────────── Set color effect. Default: no change.\n",
        "    --rotate <N|default>  ───────────────── Set rotation. Default: no change.\n",
        "    --flip-vertical <1|0|default>  ──────── Set vertical flip. Default: no change.\n",
        "    --flip-horizontal <1|0|default>  ────── Set horizontal flip. Default: no change.\n",
        "    Hint: use v4l2-ctl --list-ctrls-menus to query available controls of the device.\n",
    ]


def _http_server(options: Options) -> list[str]:
    return [
        "HTTP server options:",
        "════════════════════",
        f"    -s|--host <address>  ──────── Listen on Hostname or IP. Default: {options.host}.\n",
        f"    -p|--port <N>  ────────────── Bind to this TCP port. Default: {options.port}.\n",
        "    -U|--unix <path>  ─────────── Bind to UNIX domain socket. Default: disabled.\n",
        "    -D|--unix-rm  ─────────────── Try to remove old UNIX socket file before binding. Default: disabled.\n",
        "    -M|--unix-mode <mode>  ────── Set UNIX socket file permissions (like 777). Default: disabled.\n",
        "    -S|--systemd  ─────────────── Bind to systemd socket for socket activation.\n",
        "    --user <name>  ────────────── HTTP basic auth user. Default: disabled.\n",
        "    --passwd <str>  ───────────── HTTP basic auth passwd. Default: empty.\n",
        "    --static <path> ───────────── Path to dir with static files instead of embedded root index page.",
        "                                  Symlinks are not supported for security reasons. Default: disabled.\n",
        "    -e|--drop-same-frames <N>  ── Don't send identical frames to clients, but no more than specified number.",
        "                                  It can significantly reduce the outgoing traffic, but will increase",
        "                                  the CPU loading. Don't use this option with analog signal sources",
        "                                  or webcams, it's useless. Default: disabled.\n",
        "    -R|--fake-resolution <WxH>  ─ Override image resolution for the /state. Default: disabled.\n",
        "    --tcp-nodelay  ────────────── Set TCP_NODELAY flag to the client /stream socket. Only for TCP socket.",
        "                                  Default: disabled.\n",
        "    --allow-origin <str>  ─────── Set Access-Control-Allow-Origin header. Default: disabled.\n",
        "    --instance-id <str>  ──────── A short string identifier to be displayed in the /state handle.",
        "                                  It must satisfy regexp ^[a-zA-Z0-9\\./+_-]*$. Default: an empty string.\n",
        f"    --server-timeout <sec>  ───── Timeout for client connections. Default: {options.server_timeout}.\n",
    ]


def _sink(label: str, opt: str) -> list[str]:
    return [
        f"{label} sink options:",
        "══════════════════",
        f"    --{opt}-sink <name>  ──────────── Use the shared memory to sink {label} frames. Default: disabled.",
        f'                                     The name should end with a suffix ".{opt}" or ".{opt}".',
        "                                     Default: disabled.\n",
        f"    --{opt}-sink-mode <mode>  ─────── Set {label} sink permissions (like 777). Default: 660.\n",
        f"    --{opt}-sink-rm  ──────────────── Remove shared memory on stop. Default: disabled.\n",
        f"    --{opt}-sink-client-ttl <sec>  ── Client TTL. Default: 10.\n",
        f"    --{opt}-sink-timeout <sec>  ───── Timeout for lock. Default: 1.\n",
    ]


def _h264(options: Options) -> list[str]:
    return [
        f"    --h264-bitrate <kbps>  ───────── H264 bitrate in Kbps. Default: {options.h264_bitrate}.\n",
        f"    --h264-gop <N>  ──────────────── Interval between keyframes. Default: {options.h264_gop}.\n",
        "    --h264-m2m-device </dev/path>  ─ Path to V4L2 M2M encoder device. Default: auto select.\n",
    ]


def _process() -> list[str]:
    return [
        "    --exit-on-no-clients <sec> ──── Exit the program if there have been no stream or sink clients",
        "                                    or any HTTP requests in the last N seconds. Default: 0 (disabled)\n",
    ]


def _logging(options: Options) -> list[str]:
    return [
        "Logging options:",
        "════════════════",
        "    --log-level <N>  ──── Verbosity level of messages from 0 (info) to 3 (debug).",
        "                          Enabling debugging messages can slow down the program.",
        "                          Available levels: 0 (info), 1 (performance), 2 (verbose), 3 (debug).",
        f"                          Default: {options.log_level}.\n",
        "    --perf  ───────────── Enable performance messages (same as --log-level=1). Default: disabled.\n",
        "    --verbose  ────────── Enable verbose messages and lower (same as --log-level=2). Default: disabled.\n",
        "    --debug  ──────────── Enable debug messages and lower (same as --log-level=3). Default: disabled.\n",
        "    --force-log-colors  ─ Force color logging. Default: colored if stderr is a TTY.\n",
        "    --no-log-colors  ──── Disable color logging. Default: ditto.\n",
    ]


def _help_options() -> list[str]:
    return [
        "Help options:",
        "═════════════",
        "    -h|--help  ─────── Print this text and exit.\n",
        "    -v|--version  ──── Print version and exit.\n",
        "    --features  ────── Print list of supported features.\n",
    ]


def render_help(options: Options) -> str:
    """Return the help text, showing the defaults held by ``options``."""
    lines = [
        "\nustream - Lightweight and fast MJPEG-HTTP streamer",
        "═══════════════════════════════════════════════════\n",
    ]
    lines += _capturing(options)
    lines += _image_controls()
    lines += _http_server(options)
    for label, opt in _SINKS:
        lines += _sink(label, opt)
    lines += _h264(options)
    lines += _process()
    lines += _logging(options)
    lines += _help_options()
    return "".join(line + "\n" for line in lines)