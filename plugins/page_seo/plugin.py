"""
An MkDocs plugin that adds canonical URLs, Open Graph tags and a schema.org
JSON-LD graph (site, primary entity, breadcrumbs) to every rendered page.
"""

import fnmatch
import logging
import os
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from mkdocs.config import config_options as c
from mkdocs.config.defaults import MkDocsConfig
from mkdocs.plugins import BasePlugin
from mkdocs.structure.pages import Page

from plugins.page_seo.graph import iso_from_millis
from plugins.page_seo.head import inject_head_tags
from plugins.page_seo.models import Author, PageContext, Publisher, SiteIdentity
from plugins.page_seo.pipeline import transform_page

# MkDocs' plugin logger namespace: debug output only shows with `--verbose`.
logger = logging.getLogger("mkdocs.plugins.page_seo")

# Identity keys that may come from the plugin options or the identity file.
IDENTITY_KEYS = (
    "site_url",
    "site_name",
    "description",
    "author",
    "publisher",
    "image",
    "license",
    "application_category",
    "operating_system",
    "price",
    "price_currency",
    "home_label",
)


class PageSeoPlugin(BasePlugin):
    """MkDocs plugin that injects per-page SEO metadata into ``<head>``.

    Configuration options (all optional):
    - site_url / site_name / description: override the matching MkDocs settings.
    - author (dict): ``name``, ``url`` and ``type`` (Person or Organization).
    - publisher (dict): ``name``, ``url`` and ``logo``.
    - image (str): representative image, absolute or relative to the site root.
    - license, application_category, operating_system, price, price_currency:
      SoftwareApplication fields used on the home page.
    - home_label (str): name of the first breadcrumb.
    - identity_file (str): YAML file, relative to mkdocs.yml, holding any of the
      keys above. Plugin options take precedence over it.
    - timestamp_key (str): front-matter key holding the last-updated time.
    - exclude (list): glob patterns of source paths to skip.
    - debug (bool): verbose per-page logging.
    """

    config_scheme = (
        ("site_url", c.Type(str, default="")),
        ("site_name", c.Type(str, default="")),
        ("description", c.Type(str, default="")),
        ("author", c.Type(dict, default={})),
        ("publisher", c.Type(dict, default={})),
        ("image", c.Type(str, default="")),
        ("license", c.Type(str, default="")),
        ("application_category", c.Type(str, default="")),
        ("operating_system", c.Type(str, default="")),
        ("price", c.Type(str, default="")),
        ("price_currency", c.Type(str, default="")),
        ("home_label", c.Type(str, default="")),
        ("identity_file", c.Type(str, default="")),
        ("timestamp_key", c.Type(str, default="last_updated")),
        ("exclude", c.Type(list, default=["404.html"])),
        ("debug", c.Type(bool, default=False)),
    )

    def __init__(self):
        super().__init__()
        self.identity: Optional[SiteIdentity] = None
        self._warned_missing_site_url = False

    # -------------------------------
    # Helpers
    # -------------------------------

    def _dbg(self, msg: str) -> None:
        if not self.config.get("debug", False):
            return
        logger.debug(f"[page_seo] {msg}")

    @staticmethod
    def load_identity_file(path: Path) -> Dict[str, Any]:
        """Load the YAML identity file; a parse error yields an empty mapping."""
        if not path.exists():
            raise FileNotFoundError(f"identity_file not found at {path}")
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            logger.warning(f"[page_seo] unable to parse identity file {path}: {exc}")
            return {}
        if not isinstance(data, dict):
            return {}
        return data

    def _identity_settings(self, config: MkDocsConfig) -> Dict[str, Any]:
        """Merge identity file and plugin options; plugin options win."""
        settings: Dict[str, Any] = {}

        identity_file = self.config.get("identity_file")
        if identity_file:
            base = Path(config.get("config_file_path") or "mkdocs.yml").resolve().parent
            loaded = self.load_identity_file((base / identity_file).resolve())
            settings.update({k: v for k, v in loaded.items() if k in IDENTITY_KEYS and v})
            logger.info(f"[page_seo] loaded site identity from {identity_file}")

        for key in IDENTITY_KEYS:
            value = self.config.get(key)
            if value:
                settings[key] = value
        return settings

    @staticmethod
    def _entity_settings(settings: Dict[str, Any], key: str) -> Dict[str, Any]:
        """Read an author/publisher entry: a bare string is taken as its name."""
        value = settings.get(key) or {}
        if isinstance(value, str):
            return {"name": value}
        if not isinstance(value, dict):
            logger.warning(f"[page_seo] ignoring {key}: expected a name or a mapping, got {type(value).__name__}")
            return {}
        return value

    def build_identity(self, config: MkDocsConfig) -> Optional[SiteIdentity]:
        settings = self._identity_settings(config)

        site_url = settings.get("site_url") or config.get("site_url") or ""
        if not site_url:
            return None

        site_name = settings.get("site_name") or config.get("site_name") or ""

        author_cfg = self._entity_settings(settings, "author")
        author = Author(
            name=author_cfg.get("name") or config.get("site_author") or site_name,
            url=author_cfg.get("url"),
            type=author_cfg.get("type") or "Person",
        )

        publisher = None
        publisher_cfg = self._entity_settings(settings, "publisher")
        if publisher_cfg.get("name"):
            publisher = Publisher(
                name=publisher_cfg["name"],
                url=publisher_cfg.get("url"),
                logo=publisher_cfg.get("logo"),
            )

        theme = config.get("theme")
        language = None
        if theme is not None:
            try:
                language = theme["language"]
            except (KeyError, TypeError):
                language = None

        return SiteIdentity(
            url=site_url,
            name=site_name,
            description=settings.get("description") or config.get("site_description") or "",
            author=author,
            publisher=publisher,
            image=settings.get("image") or None,
            license=settings.get("license", ""),
            application_category=settings.get("application_category", "DeveloperApplication"),
            operating_system=settings.get("operating_system", ""),
            price=str(settings.get("price", "0")),
            price_currency=settings.get("price_currency", "USD"),
            language=language,
            home_label=settings.get("home_label", "Home"),
        )

    @staticmethod
    def coerce_timestamp(value: Any) -> Optional[int]:
        """Convert a front-matter date value to epoch milliseconds.

        Accepts epoch milliseconds, YAML dates/datetimes and ISO-8601 strings
        (e.g. ``git-revision-date-localized`` raw datetimes). Naive values are
        treated as UTC.
        """
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            if iso_from_millis(value) is None:
                logger.warning(f"[page_seo] timestamp {value!r} out of range; using build time")
                return None
            return int(value)
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value.strip())
            except ValueError:
                logger.warning(f"[page_seo] unrecognised timestamp {value!r}; using build time")
                return None
        if isinstance(value, date) and not isinstance(value, datetime):
            value = datetime.combine(value, time.min)
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            try:
                return int(value.timestamp() * 1000)
            except (OverflowError, ValueError, OSError):
                logger.warning(f"[page_seo] timestamp {value!r} out of range; using build time")
                return None
        logger.warning(f"[page_seo] unsupported timestamp type {type(value).__name__}; using build time")
        return None

    @staticmethod
    def source_route(src_uri: str) -> str:
        """Map ``README.md`` to ``index.md`` in the same directory, as MkDocs serves it."""
        directory, _, filename = src_uri.rpartition("/")
        if filename == "README.md":
            return f"{directory}/index.md" if directory else "index.md"
        return src_uri

    def page_context(self, page: Page) -> PageContext:
        meta = page.meta or {}
        src_uri = getattr(page.file, "src_uri", None) or page.file.src_path.replace(os.sep, "/")
        return PageContext(
            relative_path=self.source_route(src_uri),
            title=page.title or None,
            description=meta.get("description") or None,
            last_updated_timestamp=self.coerce_timestamp(meta.get(self.config["timestamp_key"])),
            image=meta.get("image") or None,
        )

    def is_excluded(self, page: Page) -> bool:
        if (page.meta or {}).get("hide_structured_data"):
            return True
        src = page.file.src_path.replace(os.sep, "/")
        return any(fnmatch.fnmatch(src, pattern) for pattern in self.config["exclude"])

    # -------------------------------
    # Hooks
    # -------------------------------

    def on_config(self, config: MkDocsConfig, **kwargs):
        self.identity = self.build_identity(config)
        self._warned_missing_site_url = False
        if self.identity is None:
            logger.warning(
                "[page_seo] no site_url configured; canonical URLs and structured data are disabled"
            )
            self._warned_missing_site_url = True
        return config

    def on_post_page(self, output: str, *, page: Page, config: MkDocsConfig) -> Optional[str]:
        if self.identity is None:
            if not self._warned_missing_site_url:
                logger.warning(f"[page_seo] plugin not configured; skipping {page.file.src_path}")
                self._warned_missing_site_url = True
            return output

        if self.is_excluded(page):
            self._dbg(f"skipping excluded page {page.file.src_path}")
            return output

        context = self.page_context(page)
        metadata = transform_page(context, self.identity)

        result = inject_head_tags(output, metadata.head)
        if result is None:
            self._dbg(f"no <head> in {page.file.src_path}; leaving output untouched")
            return output

        self._dbg(
            f"{context.relative_path} -> {metadata.canonical_url} "
            f"({len(metadata.breadcrumbs)} breadcrumbs, {len(metadata.graph.nodes())} graph nodes)"
        )
        return result
