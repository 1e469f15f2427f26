"""Cache key derivation for the timetable API namespace.

Only two request shapes are cacheable:

- ``GET .../getOptimizedMatchingCourseTitles?term=...&sessions=...``
  keyed as ``titles:<TERM>:<SESSIONS>``
- ``POST .../getPageableCourses`` with a JSON body carrying
  ``courseCodeAndTitleProps.courseCode`` and ``sessions``,
  keyed as ``courses:<CODE>:<SESSIONS>``

Everything else yields no key and is forwarded without caching.
"""

from collections.abc import Iterable
from typing import Any

from ttb_cachex.types import CACHE_KEY_SEPARATOR
from ttb_cachex.types import ProxyRequest

TITLE_SEARCH_ENDPOINT = "getOptimizedMatchingCourseTitles"
COURSE_DETAIL_ENDPOINT = "getPageableCourses"

TITLES_NAMESPACE = "titles"
COURSES_NAMESPACE = "courses"


def _split_list(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        items: list[str] = []
        for item in raw:
            if item is not None:
                items.extend(str(item).split(","))
        return items
    return str(raw).split(",")


def normalize_sessions(raw: Any) -> list[str]:
    """Normalize a session list so formatting never changes cache identity.

    Accepts a comma-separated string, a list of strings (each of which may
    itself be comma-separated) or None. Items are trimmed, upper-cased,
    de-duplicated and sorted; empty items are dropped.
    """
    sessions = {item.strip().upper() for item in _split_list(raw)}
    sessions.discard("")
    return sorted(sessions)


def normalize_code(raw: Any) -> str:
    """Trim and upper-case a search term or course code."""
    if raw is None or isinstance(raw, (dict, list)):
        return ""
    return str(raw).strip().upper()


def make_key(namespace: str, *fields: str | Iterable[str]) -> str | None:
    """Join a namespace and normalized fields into a cache key.

    Returns None if any field contains the key separator.
    """
    parts = [namespace]
    for value in fields:
        items = [value] if isinstance(value, str) else list(value)
        if any(CACHE_KEY_SEPARATOR in item for item in items):
            return None
        parts.append(",".join(items))
    return CACHE_KEY_SEPARATOR.join(parts)


def _title_search_key(request: ProxyRequest) -> str | None:
    term = normalize_code(request.get_last("term"))
    sessions = normalize_sessions(request.get_all("sessions"))
    if not term or not sessions:
        return None
    return make_key(TITLES_NAMESPACE, term, sessions)


def _course_detail_key(request: ProxyRequest) -> str | None:
    body = request.json()
    if not isinstance(body, dict):
        return None

    props = body.get("courseCodeAndTitleProps")
    course_code = normalize_code(props.get("courseCode")) if isinstance(props, dict) else ""
    sessions = normalize_sessions(body.get("sessions"))
    if not course_code or not sessions:
        return None
    return make_key(COURSES_NAMESPACE, course_code, sessions)


def derive_key(request: ProxyRequest) -> str | None:
    """Return the cache key for a request, or None if it is not cacheable."""
    method = request.method.upper()

    if method == "GET" and TITLE_SEARCH_ENDPOINT in request.path:
        return _title_search_key(request)

    if method == "POST" and COURSE_DETAIL_ENDPOINT in request.path:
        return _course_detail_key(request)

    return None
