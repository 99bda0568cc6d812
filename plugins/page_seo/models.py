"""
Value types shared by the page_seo pipeline.

Everything here is a frozen dataclass: values are built fresh for every
rendered page and thrown away once the page HTML has been written.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

SCHEMA_CONTEXT = "https://schema.org"


@dataclass(frozen=True)
class PageContext:
    """Routing and front-matter facts for one page, supplied per render."""

    relative_path: str
    title: Optional[str] = None
    description: Optional[str] = None
    last_updated_timestamp: Optional[int] = None  # epoch milliseconds
    image: Optional[str] = None

    @property
    def is_home(self) -> bool:
        return self.relative_path == "index.md"


@dataclass(frozen=True)
class Breadcrumb:
    position: int
    name: str
    url: str

    def to_json_ld(self) -> Dict[str, Any]:
        return {
            "@type": "ListItem",
            "position": self.position,
            "name": self.name,
            "item": self.url,
        }


@dataclass(frozen=True)
class Author:
    name: str
    url: Optional[str] = None
    type: str = "Person"

    def to_json_ld(self) -> Dict[str, Any]:
        node: Dict[str, Any] = {"@type": self.type, "name": self.name}
        if self.url:
            node["url"] = self.url
        return node


@dataclass(frozen=True)
class Publisher:
    name: str
    url: Optional[str] = None
    logo: Optional[str] = None

    def to_json_ld(self) -> Dict[str, Any]:
        node: Dict[str, Any] = {"@type": "Organization", "name": self.name}
        if self.url:
            node["url"] = self.url
        if self.logo:
            node["logo"] = {"@type": "ImageObject", "url": self.logo}
        return node


@dataclass(frozen=True)
class SiteIdentity:
    """Site-wide constants, read-only for the lifetime of a build."""

    url: str
    name: str
    description: str = ""
    author: Author = field(default_factory=lambda: Author(name=""))
    publisher: Optional[Publisher] = None
    image: Optional[str] = None
    license: str = ""
    application_category: str = "DeveloperApplication"
    operating_system: str = ""
    price: str = "0"
    price_currency: str = "USD"
    language: Optional[str] = None
    home_label: str = "Home"


@dataclass(frozen=True)
class HeadTag:
    """A single `<head>` element descriptor: tag name, attributes, text."""

    tag: str
    attrs: Tuple[Tuple[str, str], ...] = ()
    content: Optional[str] = None

    @classmethod
    def meta_property(cls, prop: str, content: str) -> "HeadTag":
        return cls("meta", (("property", prop), ("content", content)))

    def attr(self, name: str) -> Optional[str]:
        for key, value in self.attrs:
            if key == name:
                return value
        return None


# ------------------------------------------------------------------
# Graph nodes
# ------------------------------------------------------------------


@dataclass(frozen=True)
class WebSiteNode:
    url: str
    name: str
    description: str
    author: Author
    language: Optional[str] = None

    def to_json_ld(self) -> Dict[str, Any]:
        node: Dict[str, Any] = {
            "@type": "WebSite",
            "@id": f"{self.url}#website",
            "name": self.name,
            "url": self.url,
            "description": self.description,
            "author": self.author.to_json_ld(),
        }
        if self.language:
            node["inLanguage"] = self.language
        return node


@dataclass(frozen=True)
class PrimaryEntity:
    """Fields shared by every primary content node."""

    name: str
    description: str
    url: str
    author: Author
    publisher: Publisher
    image: Optional[str] = None

    schema_type = "Thing"
    id_suffix = "thing"

    def _base_json_ld(self) -> Dict[str, Any]:
        node: Dict[str, Any] = {
            "@type": self.schema_type,
            "@id": f"{self.url}#{self.id_suffix}",
            "name": self.name,
            "description": self.description,
            "url": self.url,
        }
        if self.image:
            node["image"] = self.image
        node["author"] = self.author.to_json_ld()
        node["publisher"] = self.publisher.to_json_ld()
        return node

    def to_json_ld(self) -> Dict[str, Any]:
        return self._base_json_ld()


@dataclass(frozen=True)
class SoftwareEntity(PrimaryEntity):
    license: str = ""
    application_category: str = ""
    operating_system: str = ""
    price: str = "0"
    price_currency: str = "USD"

    schema_type = "SoftwareApplication"
    id_suffix = "software"

    def to_json_ld(self) -> Dict[str, Any]:
        node = self._base_json_ld()
        if self.license:
            node["license"] = self.license
        if self.application_category:
            node["applicationCategory"] = self.application_category
        if self.operating_system:
            node["operatingSystem"] = self.operating_system
        node["offers"] = {
            "@type": "Offer",
            "price": self.price,
            "priceCurrency": self.price_currency,
        }
        return node


@dataclass(frozen=True)
class ArticleEntity(PrimaryEntity):
    section: str = ""
    date_published: str = ""
    date_modified: str = ""

    schema_type = "Article"
    id_suffix = "article"

    def to_json_ld(self) -> Dict[str, Any]:
        node = self._base_json_ld()
        node["headline"] = self.name
        if self.section:
            node["articleSection"] = self.section
        node["datePublished"] = self.date_published
        node["dateModified"] = self.date_modified
        node["mainEntityOfPage"] = {"@type": "WebPage", "@id": self.url}
        return node


@dataclass(frozen=True)
class BreadcrumbListNode:
    url: str
    items: Tuple[Breadcrumb, ...]

    def to_json_ld(self) -> Dict[str, Any]:
        return {
            "@type": "BreadcrumbList",
            "@id": f"{self.url}#breadcrumb",
            "itemListElement": [item.to_json_ld() for item in self.items],
        }


@dataclass(frozen=True)
class StructuredDataGraph:
    primary: PrimaryEntity
    breadcrumb_list: BreadcrumbListNode
    website: Optional[WebSiteNode] = None

    def nodes(self) -> List[Any]:
        ordered: List[Any] = []
        if self.website is not None:
            ordered.append(self.website)
        ordered.append(self.primary)
        ordered.append(self.breadcrumb_list)
        return ordered

    def to_json_ld(self) -> Dict[str, Any]:
        return {
            "@context": SCHEMA_CONTEXT,
            "@graph": [node.to_json_ld() for node in self.nodes()],
        }

    def serialize(self) -> str:
        """Return the graph as JSON that is safe inside a ``<script>`` element."""
        text = json.dumps(self.to_json_ld(), ensure_ascii=False)
        return text.replace("</", "<\\/")


@dataclass(frozen=True)
class PageMetadata:
    canonical_url: str
    breadcrumbs: Tuple[Breadcrumb, ...]
    graph: StructuredDataGraph
    head: Tuple[HeadTag, ...]
