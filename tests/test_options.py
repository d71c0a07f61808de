import pytest

from ustream.options import (
    Action,
    CtlMode,
    OptionsError,
    check_instance_id,
    features,
    parse_options,
    parse_resolution,
)


def parse(*args):
    return parse_options(["ustreamer", *args])


def test_defaults_from_stream_and_sinks():
    opts = parse()
    assert opts.action is Action.RUN
    assert opts.h264_bitrate == 5000
    assert opts.h264_gop == 30
    assert opts.device_error_delay == 1
    for sink in (opts.jpeg_sink, opts.raw_sink, opts.h264_sink):
        assert (sink.mode, sink.rm, sink.client_ttl, sink.timeout) == (0o660, False, 10, 1)
        assert not sink.enabled
    assert all(c.mode is CtlMode.NONE for c in opts.controls.values())


def test_workers_not_more_than_buffers_by_default():
    opts = parse()
    assert opts.buffers == opts.workers + 1


def test_parse_resolution_unlimited():
    assert parse_resolution("1x1", False) == (1, 1)
    assert parse_resolution("1280x720", True) == (1280, 720)


def test_parse_resolution_ignores_trailing_text():
    assert parse_resolution("800x600junk", True) == (800, 600)


@pytest.mark.parametrize("text", ["abc", "800", "800*600", ""])
def test_parse_resolution_bad_format(text):
    with pytest.raises(ValueError):
        parse_resolution(text, False)


def test_parse_resolution_limited_width_and_height():
    with pytest.raises(ValueError, match="width"):
        parse_resolution("1x720", True)
    with pytest.raises(ValueError, match="height"):
        parse_resolution("1280x1", True)


@pytest.mark.parametrize("text", ["", "abc", "a.b/c+d_e-f", "XYZ019"])
def test_check_instance_id_valid(text):
    assert check_instance_id(text) is True


@pytest.mark.parametrize("text", ["a b", "a:b", "é", "x*"])
def test_check_instance_id_invalid(text):
    assert check_instance_id(text) is False


def test_short_options_with_separate_arguments():
    opts = parse("-d", "/dev/video1", "-r", "800x600", "-p", "9000")
    assert opts.device == "/dev/video1"
    assert (opts.width, opts.height) == (800, 600)
    assert opts.port == 9000


def test_short_combined_flags_and_attached_argument():
    opts = parse("-nTl", "-q50")
    assert opts.persistent and opts.allow_truncated_frames and opts.slowdown
    assert opts.quality == 50


def test_long_option_with_equals_and_abbreviation():
    opts = parse("--port=9000", "--qual", "42")
    assert opts.port == 9000
    assert opts.quality == 42


def test_ambiguous_abbreviation():
    with pytest.raises(OptionsError, match="ambiguous"):
        parse("--h264", "x")


def test_unknown_options():
    with pytest.raises(OptionsError):
        parse("--no-such-option")
    with pytest.raises(OptionsError):
        parse("-X")


def test_missing_argument():
    with pytest.raises(OptionsError):
        parse("--port")
    with pytest.raises(OptionsError):
        parse("-q")


def test_flag_rejects_argument():
    with pytest.raises(OptionsError):
        parse("--persistent=yes")


def test_number_out_of_range():
    with pytest.raises(OptionsError, match="min=1, max=100"):
        parse("--quality", "101")
    with pytest.raises(OptionsError):
        parse("--port", "0")


def test_number_not_a_number():
    with pytest.raises(OptionsError):
        parse("--input", "12abc")
    with pytest.raises(OptionsError):
        parse("--input", "0x")


def test_number_bases():
    assert parse("--input", "0x10").input == 0x10
    assert parse("--input", "010").input == 0o10
    assert parse("--unix-mode", "777").unix_mode == 0o777
    with pytest.raises(OptionsError):
        parse("--unix-mode", "8")


def test_choices_case_insensitive():
    opts = parse("-m", "mjpeg", "-c", "m2m-video", "-I", "userptr")
    assert opts.format == "MJPEG"
    assert opts.encoder == "M2M-VIDEO"
    assert opts.io_method == "USERPTR"


def test_unknown_choice():
    with pytest.raises(OptionsError, match="Unknown pixel format: bogus"):
        parse("-m", "bogus")
    with pytest.raises(OptionsError, match="Unknown encoder type"):
        parse("--encoder", "gpu")


def test_sinks_and_compat_aliases():
    opts = parse("--sink", "demo.jpeg", "--sink-rm", "--raw-sink", "demo.raw",
                 "--raw-sink-client-ttl", "5", "--h264-sink-mode", "600")
    assert opts.jpeg_sink.name == "demo.jpeg"
    assert opts.jpeg_sink.rm is True
    assert opts.jpeg_sink.enabled
    assert opts.raw_sink.name == "demo.raw"
    assert opts.raw_sink.client_ttl == 5
    assert opts.h264_sink.mode == 0o600
    assert not opts.h264_sink.enabled


def test_sink_ttl_out_of_range():
    with pytest.raises(OptionsError):
        parse("--raw-sink-client-ttl", "61")


def test_controls():
    opts = parse("--brightness", "auto", "--gain", "-5", "--contrast", "DEFAULT")
    assert opts.controls["brightness"].mode is CtlMode.AUTO
    assert opts.controls["gain"].mode is CtlMode.VALUE
    assert opts.controls["gain"].value == -5
    assert opts.controls["contrast"].mode is CtlMode.DEFAULT


def test_manual_control_rejects_auto():
    with pytest.raises(OptionsError, match="--contrast"):
        parse("--contrast", "auto")


def test_image_default_resets_all():
    opts = parse("--hue", "3", "--image-default")
    assert all(c.mode is CtlMode.DEFAULT for c in opts.controls.values())


def test_actions_stop_parsing():
    assert parse("--help", "--quality", "500").action is Action.HELP
    assert parse("-v").action is Action.VERSION
    assert parse("--features").action is Action.FEATURES


def test_error_before_help_is_reported():
    with pytest.raises(OptionsError):
        parse("--quality", "500", "--help")


def test_double_dash_ends_options():
    opts = parse("--", "--quality", "500")
    assert opts.quality == parse().quality


def test_non_option_arguments_ignored():
    opts = parse("stray", "-q", "30", "another")
    assert opts.quality == 30


def test_logging_options():
    assert parse("--debug").log_level == 3
    assert parse("--perf").log_level == 1
    assert parse("--log-level", "2").log_level == 2
    assert parse("--no-log-colors").log_colored is False
    assert parse("--force-log-colors").log_colored is True
    with pytest.raises(OptionsError):
        parse("--log-level", "4")


def test_instance_id_option():
    assert parse("--instance-id", "cam.1").instance_id == "cam.1"
    with pytest.raises(OptionsError, match="Invalid instance ID"):
        parse("--instance-id", "bad id")


def test_resolution_option_errors():
    with pytest.raises(OptionsError, match="Invalid resolution format"):
        parse("-r", "big")
    with pytest.raises(OptionsError, match="Invalid width of '--resolution=1x720'"):
        parse("-r", "1x720")
    opts = parse("-R", "1x1")
    assert (opts.fake_width, opts.fake_height) == (1, 1)


def test_format_swap_rgb_consumes_argument():
    opts = parse("--format-swap-rgb", "x", "-q", "33")
    assert opts.format_swap_rgb is True
    assert opts.quality == 33


def test_deprecated_options_accepted():
    opts = parse("-g", "1x1,2x2", "-k", "/tmp/blank.jpg", "-K", "3")
    assert opts.action is Action.RUN
    assert opts == parse()


def test_features_lines():
    lines = features()
    assert [line[2:] for line in lines] == [
        "WITH_PYTHON",
        "WITH_JANUS",
        "WITH_V4P",
        "WITH_GPIO",
        "WITH_SYSTEMD",
        "WITH_LIBX264",
        "WITH_PTHREAD_NP",
        "WITH_SETPROCTITLE",
        "WITH_PDEATHSIG",
    ]
    assert all(line[:2] in ("+ ", "- ") for line in lines)
    assert "+ WITH_SYSTEMD" in lines
    assert parse("-S").systemd is True