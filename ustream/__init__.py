"""Building blocks for an MJPEG-HTTP streamer: request paths, MIME types, static files, HTTP helpers, worker pools and command-line options."""

__version__ = "0.1.0"