"""Canonical URL resolution for documentation pages."""


def site_root(site_url: str) -> str:
    """Bare site root: the only canonical URL that keeps a trailing slash."""
    return site_url.rstrip("/") + "/"


def normalize_route(relative_path: str) -> str:
    """
    Reduce a docs-relative path to its route.

    - Trailing ``index.md`` / ``index`` segments are dropped, repeatedly.
    - Any remaining ``.md`` suffix is dropped.
    - Leading and trailing slashes are removed.
    """
    route = relative_path.replace("\\", "/").strip("/")
    # Nested index directories ("api/index/index.md") collapse fully
    stripped = True
    while stripped and route:
        stripped = False
        for suffix in ("index.md", "index"):
            if route == suffix:
                return ""
            if route.endswith("/" + suffix):
                route = route[: -len(suffix) - 1].rstrip("/")
                stripped = True
                break
    if route.endswith(".md"):
        route = route[: -len(".md")]
    return route.strip("/")


def resolve_canonical_url(site_url: str, relative_path: str) -> str:
    """
    Resolve the canonical absolute URL of a page.

    ``resolve_canonical_url("https://example.com", "guide/index.md")``
    gives ``https://example.com/guide``; the home page resolves to the
    bare root ``https://example.com/``.
    """
    route = normalize_route(relative_path)
    return site_root(site_url) + route
