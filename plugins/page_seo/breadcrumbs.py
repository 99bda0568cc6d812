from typing import Tuple

from plugins.page_seo.models import Breadcrumb
from plugins.page_seo.urls import site_root


def humanize_segment(segment: str) -> str:
    """Turn a path segment into a display name ("shell-completions" -> "Shell Completions")."""
    return " ".join(word[:1].upper() + word[1:] for word in segment.split("-"))


def build_breadcrumbs(
    site_url: str,
    relative_path: str,
    canonical_url: str,
    home_label: str = "Home",
) -> Tuple[Breadcrumb, ...]:
    """
    Build the Home -> ... -> current page trail for a page.

    One entry per path segment follows the Home entry. The last entry
    always points at ``canonical_url`` rather than the accumulated prefix,
    so the trail ends on the page's own canonical identity.
    """
    root = site_root(site_url)
    trail = [Breadcrumb(position=1, name=home_label, url=root)]

    if relative_path == "index.md":
        return tuple(trail)

    route = relative_path
    if route.endswith(".md"):
        route = route[: -len(".md")]
    if not route:
        return tuple(trail)

    # Empty segments (e.g. "a//b") are kept as-is
    segments = route.split("/")
    last = len(segments) - 1
    for index, segment in enumerate(segments):
        url = root + "/".join(segments[: index + 1])
        if index == last:
            url = canonical_url
        trail.append(
            Breadcrumb(position=index + 2, name=humanize_segment(segment), url=url)
        )

    return tuple(trail)
