"""RTMP URL handling: default port, app/stream path splitting and URL rebuilding."""

from __future__ import annotations

from urllib.parse import SplitResult, quote, urlsplit

DEFAULT_PORT = 1935

_PATH_SAFE = "/$&+,:;=@"


def _as_split(url: str | SplitResult) -> SplitResult:
    return urlsplit(url) if isinstance(url, str) else url


def _split_userinfo(netloc: str) -> tuple[str, str]:
    """Split ``netloc`` into its ``user@`` prefix (may be empty) and host."""
    userinfo, sep, host = netloc.rpartition("@")
    return (userinfo + sep, host)


def _has_port(host: str) -> bool:
    if host.startswith("["):
        end = host.find("]")
        return end != -1 and host[end + 1:end + 2] == ":"
    return host.count(":") == 1


def _to_string(url: SplitResult) -> str:
    out = ""
    if url.scheme:
        out += url.scheme + ":"
    if url.scheme or url.netloc:
        if url.netloc or url.path:
            out += "//"
        out += url.netloc
    if url.path and not url.path.startswith("/") and url.netloc:
        out += "/"
    out += url.path
    if url.query:
        out += "?" + url.query
    if url.fragment:
        out += "#" + url.fragment
    return out


def _request_uri(url: SplitResult) -> str:
    uri = url.path or "/"
    if url.query:
        uri += "?" + url.query
    return uri


def parse_url(uri: str) -> SplitResult:
    """Parse an RTMP URL, adding port 1935 when the host has none."""
    url = urlsplit(uri)
    userinfo, host = _split_userinfo(url.netloc)
    if not _has_port(host):
        url = url._replace(netloc=f"{userinfo}{host}:{DEFAULT_PORT}")
    return url


def split_path(url: str | SplitResult) -> tuple[str, str]:
    """Return the application name and the stream name of an RTMP URL."""
    segments = _request_uri(_as_split(url)).split("/", 2)
    app = segments[1] if len(segments) > 1 else ""
    stream = segments[2] if len(segments) > 2 else ""
    return app, stream


def get_tc_url(url: str | SplitResult) -> str:
    """Build the ``tcUrl`` sent in ``connect``: the URL cut down to its application."""
    url = _as_split(url)
    app, _ = split_path(url)
    return _to_string(url._replace(path=quote("/" + app, safe=_PATH_SAFE)))


def create_url(tc_url: str, app: str, play: str) -> SplitResult:
    """Build the stream URL from a peer's ``tcUrl``, application and stream names."""
    parts = [""] + [s for s in f"{app}/{play}".split("/") if s]
    if len(parts) < 2:
        parts.append("")
    url = urlsplit("/".join(parts), allow_fragments=False)

    if tc_url:
        try:
            base = urlsplit(tc_url)
        except ValueError:
            base = None
        if base is not None:
            _, host = _split_userinfo(base.netloc)
            url = url._replace(scheme=base.scheme, netloc=host)
    return url