"""URL matching rules shared by stub lookup and tracker queries."""

import re

import httpx

__all__ = ["UrlMatcher", "method_matches", "target_matches", "url_matches"]

UrlMatcher = str | re.Pattern[str]


def _relative_targets(matcher: httpx.URL, base_path: str | None) -> set[bytes]:
    targets = {matcher.raw_path}
    if base_path and base_path != "/":
        # merged the way httpx joins a relative URL onto a client's base URL
        targets.add(base_path.encode("ascii").rstrip(b"/") + b"/" + matcher.raw_path.lstrip(b"/"))
    return targets


def url_matches(
    matcher: UrlMatcher,
    url: str,
    path: str | None = None,
    base_path: str | None = None,
) -> bool:
    """
    Check whether ``matcher`` accepts a request.

    Patterns are searched against the full URL and then the path. Strings are
    normalized by ``httpx.URL`` first, so they may be written unencoded.
    Absolute strings must equal the full URL. Relative strings must equal the
    path, either as written or joined onto the client's base path.

    Args:
        matcher: Exact URL or compiled pattern.
        url: The fully resolved request URL.
        path: Raw path plus query string of the request, if known.
        base_path: Raw path of the client's base URL, if any.
    """
    if isinstance(matcher, re.Pattern):
        if matcher.search(url) is not None:
            return True
        return path is not None and matcher.search(path) is not None

    target = httpx.URL(matcher)
    if path is not None and target.is_relative_url:
        return path.encode("ascii") in _relative_targets(target, base_path)
    return target == httpx.URL(url)


def method_matches(expected: str | None, actual: str | None) -> bool:
    """``None`` on either side stands for any method."""
    if expected is None or actual is None:
        return True
    return expected.upper() == actual.upper()


def target_matches(
    item_url: UrlMatcher,
    item_path: str | None,
    query: UrlMatcher,
    item_base_path: str | None = None,
) -> bool:
    """Compare a tracked item's URL (string or pattern) against a lookup query."""
    if isinstance(item_url, re.Pattern):
        if isinstance(query, re.Pattern):
            return item_url == query
        return url_matches(item_url, query, str(httpx.URL(query)))
    return url_matches(query, item_url, item_path, item_base_path)
