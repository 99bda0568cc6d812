from typing import Iterable, Optional

from bs4 import BeautifulSoup

from plugins.page_seo.models import HeadTag


def _remove_conflicting(head, tag: HeadTag) -> None:
    """Drop existing elements that the new tag supersedes (theme canonical, og:* meta)."""
    if tag.tag == "link" and tag.attr("rel") == "canonical":
        for existing in head.find_all("link", rel="canonical"):
            existing.decompose()
    elif tag.tag == "meta" and tag.attr("property"):
        for existing in head.find_all("meta", attrs={"property": tag.attr("property")}):
            existing.decompose()


def inject_head_tags(html: str, tags: Iterable[HeadTag]) -> Optional[str]:
    """
    Append ``tags`` to the ``<head>`` of a rendered page.

    Returns ``None`` when the document has no ``<head>`` so callers can
    leave the page untouched.
    """
    soup = BeautifulSoup(html, "html.parser")
    head = soup.find("head")
    if head is None:
        return None

    for tag in tags:
        _remove_conflicting(head, tag)
        element = soup.new_tag(tag.tag, attrs=dict(tag.attrs))
        if tag.content is not None:
            element.string = tag.content
        head.append(element)

    return str(soup)
