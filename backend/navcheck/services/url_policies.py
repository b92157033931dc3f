"""URL comparison policies.

The site appends tracking parameters (utm_*, gclid, its own ``_ga`` relays)
in no particular order, so a link is judged by a canonical key rather than by
raw URL equality. Each check picks the loosest policy that still proves the
click went to the right place.
"""

from dataclasses import dataclass
from typing import Iterable, Tuple, Union
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit


def resolve_reference(reference: str, base_url: str) -> str:
    """Resolve an href-like string against the page it was read from."""
    return urljoin(base_url, reference.strip())


def _origin(parts) -> str:
    return f"{parts.scheme}://{parts.netloc.lower()}"


def _path(parts) -> str:
    return parts.path or "/"


def origin_path(url: str) -> str:
    parts = urlsplit(url)
    if not parts.netloc:
        return url
    return _origin(parts) + _path(parts)


def origin_path_query(url: str) -> str:
    parts = urlsplit(url)
    if not parts.netloc:
        return url
    key = _origin(parts) + _path(parts)
    if parts.query:
        key += "?" + parts.query
    return key


def origin_path_selected_params(url: str, names: Iterable[str]) -> str:
    parts = urlsplit(url)
    if not parts.netloc:
        return url
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    selected = [(name, value) for name in names for key, value in pairs if key == name]
    key = _origin(parts) + _path(parts)
    if selected:
        key += "?" + urlencode(selected)
    return key


def exact(url: str) -> str:
    parts = urlsplit(url)
    if not parts.netloc:
        return url
    path = parts.path
    if not path:
        path = "/"
    elif path != "/" and path.endswith("/"):
        path = path.rstrip("/")
    return urlunsplit((parts.scheme, parts.netloc.lower(), path, parts.query, parts.fragment))


@dataclass(frozen=True)
class Exact:
    """The whole URL, query and fragment included.

    Only case-insensitive parts and the trailing slash are normalised: scheme
    and host are lower-cased (urlsplit already lower-cases the scheme), an
    empty path becomes ``/`` and a non-root path loses its trailing ``/``.
    """

    name = "exact"

    def key(self, url: str) -> str:
        return exact(url)


@dataclass(frozen=True)
class OriginPath:
    name = "origin_path"

    def key(self, url: str) -> str:
        return origin_path(url)


@dataclass(frozen=True)
class OriginPathQuery:
    name = "origin_path_query"

    def key(self, url: str) -> str:
        return origin_path_query(url)


@dataclass(frozen=True)
class OriginPathSelectedParams:
    names: Tuple[str, ...]

    def __post_init__(self):
        # Accept any iterable (a list is the common call site) but stay hashable
        object.__setattr__(self, "names", tuple(self.names))

    @property
    def name(self) -> str:
        return f"origin_path_selected_params({','.join(self.names)})"

    def key(self, url: str) -> str:
        return origin_path_selected_params(url, self.names)


ComparisonPolicy = Union[Exact, OriginPath, OriginPathQuery, OriginPathSelectedParams]

DEFAULT_POLICY = OriginPath()
