# ustream

Building blocks for a lightweight MJPEG-over-HTTP streamer. The package
holds the parts that sit around a capture and encoding pipeline.

## Modules

- `ustream.reqpath.simplify_request_path(path)` normalises an HTTP request
  path. It strips leading spaces, collapses `//` and `/./`, and resolves
  `..` without ever climbing above the root. A trailing slash is kept.
  For example, `"../../../etc/passwd"` becomes `"/etc/passwd"`.
- `ustream.mime.guess_mime_type(path)` maps a file extension to a MIME type.
  Case does not matter. An unknown extension, or a name with no extension,
  gives `application/misc`.
- `ustream.staticfiles.find_static_file_path(root_path, request_path)`
  returns the path of the readable regular file that a request path refers
  to under `root_path`. A directory falls back to its `index.html`. Symbolic
  links are not followed. When no such file exists it returns `None`.
- `ustream.httptools` holds the HTTP helpers:
  - `bind_unix(path, rm, mode)` returns a non-blocking listening UNIX socket.
    It raises `ValueError` if the path is too long and `OSError` if the
    socket cannot be set up.
  - `bind_systemd()` takes over the first socket passed through socket
    activation (`LISTEN_PID` / `LISTEN_FDS`) and closes any further ones. It
    raises `RuntimeError` when no socket was passed.
  - `get_hostport(peer, port, headers)` gives a `[address]:port` label for a
    client. The first address in an `X-Forwarded-For` header replaces the
    peer address. With no address at all the label uses `???`.
  - `get_true(params, key)` is true for values starting with `1`, and for
    `true` or `yes`.
  - `get_string(params, key)` returns a value percent-encoded, or `None`
    when the key is absent.
  - `format_bufferevent_reason(what, error)` describes a closed connection,
    for example `"Connection reset by peer (reading,eof)"`. `what` is made of
    `BufferEventFlag` values.
- `ustream.workers.WorkersPool` is a pool of threads, each holding one job
  object:
  - `wait()` hands out a free `Worker`.
  - `assign(worker)` starts the worker on its job.
  - `get_fluency_delay(worker)` returns how long to wait before grabbing the
    next frame.
  - `close()` stops the threads. The pool is also a context manager.
- `ustream.options.parse_options(argv)` parses a command line into an
  `Options` dataclass. The first item of `argv` is the program name. Bad
  input raises `OptionsError`. `--help`, `--version` and `--features` stop
  parsing and are reported through `Options.action`, an `Action` value.
  Other helpers in the module:
  - `parse_resolution(text, limited)`
  - `check_instance_id(text)`
  - `features()`, which lists optional features as `+ NAME` / `- NAME` lines.
  - `Control`, `CtlMode` and `SinkOptions`, which describe image-control and
    sink settings.
- `ustream.helptext.render_help(options)` returns the full help text, with
  the defaults taken from an `Options` value.

## Example

```python
from ustream.reqpath import simplify_request_path
from ustream.mime import guess_mime_type

path = simplify_request_path("/foo/bar/../../../index.html")
assert path == "/index.html"
assert guess_mime_type(path) == "text/html"
```

A worker pool that runs jobs in the background:

```python
from ustream.workers import WorkersPool

def run_job(worker):
    # worker.job is the object made by the job factory
    return True

with WorkersPool("JPEG", "jpeg", 2, 0.0, dict, run_job, lambda job: None) as pool:
    worker = pool.wait()
    pool.assign(worker)
    delay = pool.get_fluency_delay(worker)
```

Parsing a command line:

```python
from ustream.options import Action, OptionsError, parse_options
from ustream.helptext import render_help

try:
    options = parse_options(["ustream", "--resolution", "1280x720", "--port", "8080"])
except OptionsError as err:
    print(err)
else:
    if options.action is Action.HELP:
        print(render_help(options))
```

## What the package does not do

It does not capture video from a device, encode frames or serve streams
over HTTP. There is no streaming server and no command to run. The options
parser and help text describe such a program's settings, but nothing in
the package acts on them.

The package needs Python 3.10 or newer and has no runtime dependencies.