"""
Unit tests for render options and card rendering.
"""
import os
import sys
import pytest

# Add parent directory to path to import news_list
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from news_list import (
    RenderOptions,
    build_render_options,
    format_date,
    get_card_link,
    get_variant,
    merge_config_sources,
    parse_boolean,
    render_article_card,
    render_article_list,
    render_empty_state,
    trim_excerpt,
    DEFAULT_CTA_LABEL,
    DEFAULT_DETAIL_BASE_PATH
)


def _options(**overrides):
    values = {
        "show_image": True,
        "show_excerpt": True,
        "excerpt_length": 120,
        "detail_base_path": "/noticias",
        "cta_label": "Ler mais",
        "locale": "pt-BR",
        "limit": 6,
    }
    values.update(overrides)
    return RenderOptions(**values)


ARTICLE = {
    "title": "Nova sede inaugurada",
    "slug": "nova-sede",
    "excerpt": "A empresa inaugurou hoje sua nova sede.",
    "image": "/content/dam/site/sede.jpg",
    "imageAlt": "Fachada da nova sede",
    "publishDate": "2025-01-15T10:00:00Z",
}


class TestParseBoolean:
    """Test flag parsing."""

    def test_true_values(self):
        """Test accepted true spellings, case-insensitive."""
        for value in ("true", "TRUE", "1", "yes", " Sim "):
            assert parse_boolean(value, False) is True

    def test_false_values(self):
        """Test accepted false spellings, case-insensitive."""
        for value in ("false", "False", "0", "no", "NAO"):
            assert parse_boolean(value, True) is False

    def test_real_booleans_and_numbers(self):
        """Test booleans pass through and 0/1 are understood."""
        assert parse_boolean(False, True) is False
        assert parse_boolean(True, False) is True
        assert parse_boolean(0, True) is False
        assert parse_boolean(1, False) is True

    def test_unknown_values_use_fallback(self):
        """Test anything else uses the fallback."""
        assert parse_boolean("maybe", False) is False
        assert parse_boolean(None, True) is True
        assert parse_boolean(7, True) is True


class TestBuildRenderOptions:
    """Test render option resolution."""

    def test_defaults(self):
        """Test defaults with an empty config."""
        options = build_render_options({})
        assert options == RenderOptions(
            show_image=True,
            show_excerpt=True,
            excerpt_length=120,
            detail_base_path=DEFAULT_DETAIL_BASE_PATH,
            cta_label=DEFAULT_CTA_LABEL,
            locale="pt-BR",
            limit=6,
        )

    def test_configured_values(self):
        """Test values from any spelling are picked up and coerced."""
        config = merge_config_sources({
            "show-image": "no",
            "showExcerpt": False,
            "excerptLength": "80",
            "detailBasePath": "/news",
            "cta-label": "Read more",
            "locale": "en-US",
            "limit": "3",
        })
        options = build_render_options(config)
        assert options.show_image is False
        assert options.show_excerpt is False
        assert options.excerpt_length == 80
        assert options.detail_base_path == "/news"
        assert options.cta_label == "Read more"
        assert options.locale == "en-US"
        assert options.limit == 3

    def test_invalid_numbers_fall_back(self):
        """Test invalid lengths and limits use defaults."""
        config = merge_config_sources({"excerptLength": "short", "limit": "-4"})
        options = build_render_options(config)
        assert options.excerpt_length == 120
        assert options.limit == 6

    def test_options_are_immutable(self):
        """Test options cannot be changed after they are built."""
        options = build_render_options({})
        with pytest.raises(AttributeError):
            options.limit = 10


class TestGetVariant:
    """Test variant selection."""

    def test_class_wins(self):
        """Test a supported block class wins over config."""
        config = merge_config_sources({"variant": "featured"})
        assert get_variant({"classes": ["news-list", "compact"]}, config) == "compact"

    def test_config_variant(self):
        """Test the configured variant is normalized."""
        config = merge_config_sources({"variant": " Featured "})
        assert get_variant({}, config) == "featured"

    def test_unsupported_variant(self):
        """Test unknown variants fall back to standard."""
        config = merge_config_sources({"variant": "carousel"})
        assert get_variant({"classes": ["wide"]}, config) == "standard"

    def test_default_variant(self):
        """Test the default without class or config."""
        assert get_variant({}, {}) == "standard"


class TestCardHelpers:
    """Test card link, date and excerpt helpers."""

    def test_get_card_link(self):
        """Test slashes are normalized between base path and slug."""
        assert get_card_link("/news/", "/a") == "/news/a"
        assert get_card_link(" /news ", "a") == "/news/a"
        assert get_card_link("", "a") == "/noticias/a"
        assert get_card_link(None, "p/q") == "/noticias/p/q"

    def test_format_date_locales(self):
        """Test dates are formatted per locale language."""
        assert format_date("2025-01-15T10:00:00Z", "pt-BR") == "15 de jan. de 2025"
        assert format_date("2025-01-15", "en-US") == "Jan 15, 2025"
        assert format_date("2025-01-15", "es-ES") == "15 ene 2025"
        assert format_date("2025-01-15", "fr-FR") == "2025-01-15"

    def test_format_date_invalid(self):
        """Test missing and unparseable dates render nothing."""
        assert format_date("", "pt-BR") == ""
        assert format_date("invalid", "pt-BR") == ""

    def test_trim_excerpt(self):
        """Test excerpts are cut with an ellipsis only when too long."""
        assert trim_excerpt("short", 10) == "short"
        assert trim_excerpt("", 10) == ""
        assert trim_excerpt("one two three", 8) == "one two..."


class TestRenderArticleCard:
    """Test card rendering."""

    def test_full_card(self):
        """Test a card with every part shown."""
        card = render_article_card(ARTICLE, _options())
        assert card.startswith('<li class="news-list-card">')
        assert 'class="news-list-card-image" href="/noticias/nova-sede"' in card
        assert 'src="/content/dam/site/sede.jpg"' in card
        assert 'alt="Fachada da nova sede"' in card
        assert '<p class="news-list-card-date">15 de jan. de 2025</p>' in card
        assert '<a href="/noticias/nova-sede">Nova sede inaugurada</a>' in card
        assert 'news-list-card-excerpt' in card
        assert '<a class="news-list-card-link" href="/noticias/nova-sede">Ler mais</a>' in card

    def test_hidden_image_and_excerpt(self):
        """Test image and excerpt can be switched off."""
        card = render_article_card(ARTICLE, _options(show_image=False, show_excerpt=False))
        assert '<img' not in card
        assert 'news-list-card-excerpt' not in card

    def test_missing_date_and_image(self):
        """Test empty optional fields are omitted."""
        article = {**ARTICLE, "image": "", "publishDate": ""}
        card = render_article_card(article, _options())
        assert '<img' not in card
        assert 'news-list-card-date' not in card

    def test_excerpt_trimmed(self):
        """Test the excerpt is trimmed to the configured length."""
        card = render_article_card(ARTICLE, _options(excerpt_length=9))
        assert '<p class="news-list-card-excerpt">A empresa...</p>' in card

    def test_text_is_escaped(self):
        """Test article text cannot inject markup."""
        article = {**ARTICLE, "title": "<script>alert(1)</script>"}
        card = render_article_card(article, _options())
        assert "<script>" not in card
        assert "&lt;script&gt;" in card

    def test_render_list_and_empty_state(self):
        """Test the list wrapper and the escaped empty message."""
        html = render_article_list([ARTICLE, {**ARTICLE, "slug": "outra"}], _options())
        assert html.startswith('<ul class="news-list-items">')
        assert html.count('<li class="news-list-card">') == 2
        assert render_empty_state("a < b") == "a &lt; b"
