import json
import logging
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest
from bs4 import BeautifulSoup

from plugins.page_seo.plugin import PageSeoPlugin

HTML = (
    "<html><head><title>Page</title>"
    '<link rel="canonical" href="https://example.com/guide/installation/">'
    "</head><body><h1>Page</h1></body></html>"
)

MKDOCS_CONFIG = {
    "site_url": "https://example.com/",
    "site_name": "Example CLI",
    "site_description": "A command line tool.",
    "site_author": "Jane Doe",
}


def make_page(src, title=None, meta=None):
    return SimpleNamespace(
        file=SimpleNamespace(src_uri=src, src_path=src),
        title=title,
        meta=meta or {},
    )


def make_plugin(options=None, config=None):
    plugin = PageSeoPlugin()
    errors, warnings = plugin.load_config(options or {})
    assert errors == []
    plugin.on_config(dict(config if config is not None else MKDOCS_CONFIG))
    return plugin


def graph_of(output):
    soup = BeautifulSoup(output, "html.parser")
    scripts = soup.find_all("script", attrs={"type": "application/ld+json"})
    assert len(scripts) == 1
    return soup, json.loads(scripts[0].string)


class TestPageSeoPlugin:
    """Test for the hooks and configuration of the plugin."""

    def test_plugin_init(self):
        """Test: The plugin is initialized without an identity."""
        plugin = PageSeoPlugin()
        assert plugin.identity is None

    def test_identity_from_mkdocs_config(self):
        """Test: Site identity falls back to the MkDocs settings."""
        plugin = make_plugin()
        assert plugin.identity.url == "https://example.com/"
        assert plugin.identity.name == "Example CLI"
        assert plugin.identity.description == "A command line tool."
        assert plugin.identity.author.name == "Jane Doe"
        assert plugin.identity.home_label == "Home"
        assert plugin.identity.price == "0"

    def test_plugin_options_override_mkdocs_config(self):
        """Test: Plugin options take precedence over MkDocs settings."""
        plugin = make_plugin(
            {
                "site_name": "Override",
                "author": {"name": "Acme", "type": "Organization"},
                "publisher": {"name": "Acme Inc", "logo": "https://acme.test/logo.png"},
                "price": "9.99",
            }
        )
        assert plugin.identity.name == "Override"
        assert plugin.identity.author.type == "Organization"
        assert plugin.identity.publisher.name == "Acme Inc"
        assert plugin.identity.price == "9.99"

    def test_identity_file(self, tmp_path):
        """Test: The YAML identity file is merged below plugin options."""
        (tmp_path / "seo.yml").write_text(
            "site_name: From File\n"
            "author: File Author\n"
            "license: https://opensource.org/licenses/MIT\n",
            encoding="utf-8",
        )
        config = dict(MKDOCS_CONFIG, config_file_path=str(tmp_path / "mkdocs.yml"))
        plugin = make_plugin({"identity_file": "seo.yml", "site_name": "Option"}, config)
        assert plugin.identity.name == "Option"
        assert plugin.identity.author.name == "File Author"
        assert plugin.identity.license == "https://opensource.org/licenses/MIT"

    def test_identity_file_string_publisher(self, tmp_path):
        """Test: A bare publisher name in the identity file is accepted."""
        (tmp_path / "seo.yml").write_text("publisher: Acme\n", encoding="utf-8")
        config = dict(MKDOCS_CONFIG, config_file_path=str(tmp_path / "mkdocs.yml"))
        plugin = make_plugin({"identity_file": "seo.yml"}, config)
        assert plugin.identity.publisher.name == "Acme"
        assert plugin.identity.publisher.url is None

    def test_identity_file_invalid_entities_are_ignored(self, tmp_path, caplog):
        """Test: Non-mapping author/publisher values are ignored with a warning."""
        (tmp_path / "seo.yml").write_text(
            "author:\n  - one\n  - two\npublisher: 42\n", encoding="utf-8"
        )
        config = dict(MKDOCS_CONFIG, config_file_path=str(tmp_path / "mkdocs.yml"))
        with caplog.at_level(logging.WARNING, logger="mkdocs.plugins.page_seo"):
            plugin = make_plugin({"identity_file": "seo.yml"}, config)
        assert plugin.identity.author.name == "Jane Doe"
        assert plugin.identity.publisher is None
        assert "ignoring author" in caplog.text
        assert "ignoring publisher" in caplog.text

    def test_missing_identity_file_raises(self, tmp_path):
        """Test: A configured identity file that does not exist fails the build."""
        config = dict(MKDOCS_CONFIG, config_file_path=str(tmp_path / "mkdocs.yml"))
        plugin = PageSeoPlugin()
        plugin.load_config({"identity_file": "missing.yml"})
        with pytest.raises(FileNotFoundError):
            plugin.on_config(config)

    def test_home_page_output(self):
        """Test: The home page gets the WebSite graph and root canonical."""
        plugin = make_plugin()
        out = plugin.on_post_page(HTML, page=make_page("index.md", "Home"), config=MKDOCS_CONFIG)
        soup, document = graph_of(out)
        assert [n["@type"] for n in document["@graph"]] == [
            "WebSite",
            "SoftwareApplication",
            "BreadcrumbList",
        ]
        canonicals = soup.find_all("link", rel="canonical")
        assert [link["href"] for link in canonicals] == ["https://example.com/"]
        assert soup.find("meta", attrs={"property": "og:type"})["content"] == "website"

    def test_root_readme_is_home_page(self):
        """Test: README.md at the docs root is treated as the home page."""
        plugin = make_plugin()
        out = plugin.on_post_page(HTML, page=make_page("README.md", "Home"), config=MKDOCS_CONFIG)
        soup, document = graph_of(out)
        assert document["@graph"][0]["@type"] == "WebSite"
        assert soup.find("link", rel="canonical")["href"] == "https://example.com/"
        assert soup.find("meta", attrs={"property": "og:type"})["content"] == "website"

    def test_nested_readme_is_section_index(self):
        """Test: guide/README.md resolves to the section URL."""
        plugin = make_plugin()
        out = plugin.on_post_page(HTML, page=make_page("guide/README.md", "Guide"), config=MKDOCS_CONFIG)
        soup, document = graph_of(out)
        assert soup.find("link", rel="canonical")["href"] == "https://example.com/guide"
        names = [item["name"] for item in document["@graph"][-1]["itemListElement"]]
        assert "README" not in names

    def test_source_route(self):
        """Test: Only README.md files are remapped."""
        assert PageSeoPlugin.source_route("README.md") == "index.md"
        assert PageSeoPlugin.source_route("a/b/README.md") == "a/b/index.md"
        assert PageSeoPlugin.source_route("guide/readme-tips.md") == "guide/readme-tips.md"

    def test_article_page_output(self):
        """Test: A regular page gets the Article graph and its own canonical."""
        plugin = make_plugin()
        page = make_page(
            "guide/installation.md",
            "Installation",
            {"description": "Install it.", "last_updated": 1700000000000},
        )
        out = plugin.on_post_page(HTML, page=page, config=MKDOCS_CONFIG)
        soup, document = graph_of(out)
        article, crumbs = document["@graph"]
        assert article["@type"] == "Article"
        assert article["headline"] == "Installation"
        assert article["dateModified"] == "2023-11-14T22:13:20+00:00"
        assert crumbs["itemListElement"][-1]["item"] == "https://example.com/guide/installation"
        assert soup.find("link", rel="canonical")["href"] == "https://example.com/guide/installation"
        assert soup.find("meta", attrs={"property": "og:description"})["content"] == "Install it."

    def test_out_of_range_front_matter_timestamp(self):
        """Test: A huge front-matter timestamp does not break the page."""
        plugin = make_plugin()
        page = make_page("guide/a.md", "A", {"last_updated": 10**18})
        out = plugin.on_post_page(HTML, page=page, config=MKDOCS_CONFIG)
        _, document = graph_of(out)
        assert document["@graph"][0]["dateModified"]

    def test_hide_structured_data(self):
        """Test: The front-matter flag leaves the page untouched."""
        plugin = make_plugin()
        page = make_page("guide/installation.md", "Installation", {"hide_structured_data": True})
        assert plugin.on_post_page(HTML, page=page, config=MKDOCS_CONFIG) == HTML

    def test_excluded_patterns(self):
        """Test: Pages matching an exclude glob are untouched."""
        plugin = make_plugin({"exclude": ["drafts/*"]})
        page = make_page("drafts/wip.md", "WIP")
        assert plugin.on_post_page(HTML, page=page, config=MKDOCS_CONFIG) == HTML

    def test_page_without_head_is_untouched(self):
        """Test: Output without <head> is returned as-is."""
        plugin = make_plugin()
        page = make_page("about.md", "About")
        assert plugin.on_post_page("<p>x</p>", page=page, config=MKDOCS_CONFIG) == "<p>x</p>"

    def test_no_site_url_disables_plugin(self, caplog):
        """Test: Without site_url the plugin warns and skips every page."""
        config = dict(MKDOCS_CONFIG, site_url=None)
        with caplog.at_level(logging.WARNING, logger="mkdocs.plugins.page_seo"):
            plugin = make_plugin(config=config)
        assert plugin.identity is None
        assert "no site_url configured" in caplog.text
        page = make_page("about.md", "About")
        assert plugin.on_post_page(HTML, page=page, config=config) == HTML


class TestCoerceTimestamp:
    """Test front-matter timestamp conversion."""

    def test_epoch_millis(self):
        """Test: Integers are taken as epoch milliseconds."""
        assert PageSeoPlugin.coerce_timestamp(1700000000000) == 1700000000000

    def test_yaml_date(self):
        """Test: A YAML date is midnight UTC."""
        assert PageSeoPlugin.coerce_timestamp(date(2024, 1, 2)) == 1704153600000

    def test_aware_datetime(self):
        """Test: An aware datetime converts directly."""
        value = datetime(2024, 1, 2, 0, 0, tzinfo=timezone.utc)
        assert PageSeoPlugin.coerce_timestamp(value) == 1704153600000

    def test_iso_string(self):
        """Test: ISO strings are parsed and treated as UTC."""
        assert PageSeoPlugin.coerce_timestamp("2024-01-02 00:00:00") == 1704153600000

    def test_missing_and_invalid(self, caplog):
        """Test: Missing, boolean and unparsable values give None."""
        assert PageSeoPlugin.coerce_timestamp(None) is None
        assert PageSeoPlugin.coerce_timestamp(True) is None
        with caplog.at_level(logging.WARNING, logger="mkdocs.plugins.page_seo"):
            assert PageSeoPlugin.coerce_timestamp("last tuesday") is None
        assert "unrecognised timestamp" in caplog.text

    @pytest.mark.parametrize("value", [10**18, -(10**18), float("nan"), float("inf")])
    def test_out_of_range_numbers(self, value, caplog):
        """Test: Numbers datetime cannot represent give None with a warning."""
        with caplog.at_level(logging.WARNING, logger="mkdocs.plugins.page_seo"):
            assert PageSeoPlugin.coerce_timestamp(value) is None
        assert "out of range; using build time" in caplog.text
