from datetime import datetime
from typing import Callable, Iterable, Optional

from plugins.page_seo.breadcrumbs import build_breadcrumbs
from plugins.page_seo.graph import synthesize
from plugins.page_seo.models import HeadTag, PageContext, PageMetadata, SiteIdentity
from plugins.page_seo.urls import resolve_canonical_url


def transform_page(
    page: PageContext,
    identity: SiteIdentity,
    head: Iterable[HeadTag] = (),
    now: Optional[Callable[[], datetime]] = None,
) -> PageMetadata:
    """Run URL resolution, breadcrumb building and graph synthesis for one page."""
    canonical_url = resolve_canonical_url(identity.url, page.relative_path)
    breadcrumbs = build_breadcrumbs(
        identity.url, page.relative_path, canonical_url, identity.home_label
    )
    graph, new_head = synthesize(
        page, canonical_url, breadcrumbs, identity, head=head, now=now
    )
    return PageMetadata(
        canonical_url=canonical_url,
        breadcrumbs=breadcrumbs,
        graph=graph,
        head=new_head,
    )
