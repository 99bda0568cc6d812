"""
Structured-data (JSON-LD) graph synthesis and the matching head tags.
"""

from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Tuple

from plugins.page_seo.breadcrumbs import humanize_segment
from plugins.page_seo.models import (
    ArticleEntity,
    Breadcrumb,
    BreadcrumbListNode,
    HeadTag,
    PageContext,
    PrimaryEntity,
    Publisher,
    SiteIdentity,
    SoftwareEntity,
    StructuredDataGraph,
    WebSiteNode,
)
from plugins.page_seo.urls import site_root

LD_JSON_TYPE = "application/ld+json"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_from_millis(timestamp: int) -> Optional[str]:
    """ISO-8601 UTC form of epoch milliseconds, or ``None`` when out of range."""
    try:
        return datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc).isoformat()
    except (OverflowError, ValueError, OSError):
        return None


def absolute_url(root: str, url: Optional[str]) -> Optional[str]:
    """Join a site-relative asset path onto the site root; absolute URLs pass through."""
    if not url:
        return None
    if "://" in url or url.startswith("//"):
        return url
    return root + url.lstrip("/")


def section_label(relative_path: str) -> str:
    first = relative_path.split("/", 1)[0]
    if first.endswith(".md"):
        first = first[: -len(".md")]
    return humanize_segment(first)


def _publisher(identity: SiteIdentity, root: str) -> Publisher:
    if identity.publisher is not None:
        return identity.publisher
    return Publisher(name=identity.name, url=root)


def build_primary_entity(
    page: PageContext,
    canonical_url: str,
    identity: SiteIdentity,
    now: Callable[[], datetime] = _utc_now,
) -> PrimaryEntity:
    root = site_root(identity.url)
    description = page.description or identity.description
    image = absolute_url(root, page.image or identity.image)
    publisher = _publisher(identity, root)

    if page.is_home:
        return SoftwareEntity(
            name=identity.name,
            description=description,
            url=canonical_url,
            author=identity.author,
            publisher=publisher,
            image=image,
            license=identity.license,
            application_category=identity.application_category,
            operating_system=identity.operating_system,
            price=identity.price,
            price_currency=identity.price_currency,
        )

    modified = None
    if page.last_updated_timestamp is not None:
        modified = iso_from_millis(page.last_updated_timestamp)
    if modified is None:
        modified = now().isoformat()

    return ArticleEntity(
        name=page.title or identity.name,
        description=description,
        url=canonical_url,
        author=identity.author,
        publisher=publisher,
        image=image,
        section=section_label(page.relative_path),
        date_published=modified,
        date_modified=modified,
    )


def build_head_tags(
    page: PageContext,
    canonical_url: str,
    identity: SiteIdentity,
    graph: StructuredDataGraph,
) -> Tuple[HeadTag, ...]:
    """Canonical link, Open Graph meta and the JSON-LD script, in emission order."""
    primary = graph.primary
    tags = [
        HeadTag("link", (("rel", "canonical"), ("href", canonical_url))),
        HeadTag.meta_property("og:type", "website" if page.is_home else "article"),
        HeadTag.meta_property("og:site_name", identity.name),
        HeadTag.meta_property("og:title", page.title or identity.name),
        HeadTag.meta_property("og:description", primary.description),
        HeadTag.meta_property("og:url", canonical_url),
    ]
    if primary.image:
        tags.append(HeadTag.meta_property("og:image", primary.image))
    tags.append(HeadTag("script", (("type", LD_JSON_TYPE),), graph.serialize()))
    return tuple(tags)


def synthesize(
    page: PageContext,
    canonical_url: str,
    breadcrumbs: Tuple[Breadcrumb, ...],
    identity: SiteIdentity,
    head: Iterable[HeadTag] = (),
    now: Optional[Callable[[], datetime]] = None,
) -> Tuple[StructuredDataGraph, Tuple[HeadTag, ...]]:
    """
    Assemble the linked-data graph for a page and extend its head metadata.

    Args:
        page: Routing facts for the page being rendered.
        canonical_url: Output of ``resolve_canonical_url`` for the page.
        breadcrumbs: Output of ``build_breadcrumbs`` for the page.
        identity: Site-wide identity constants.
        head: Head tags already collected for the page. Not modified.
        now: Clock used when the page has no last-updated timestamp.

    Returns:
        The graph and a new head-tag tuple: ``head`` followed by the
        canonical link, Open Graph meta and the serialized graph.
    """
    root = site_root(identity.url)

    website = None
    if page.is_home:
        website = WebSiteNode(
            url=root,
            name=identity.name,
            description=identity.description,
            author=identity.author,
            language=identity.language,
        )

    primary = build_primary_entity(page, canonical_url, identity, now or _utc_now)
    graph = StructuredDataGraph(
        primary=primary,
        breadcrumb_list=BreadcrumbListNode(url=canonical_url, items=tuple(breadcrumbs)),
        website=website,
    )

    new_head = tuple(head) + build_head_tags(page, canonical_url, identity, graph)
    return graph, new_head
