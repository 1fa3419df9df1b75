# test_foundation.py
"""
Test foundation modules: conventions, palette, errors.

Run with: pytest templating/core/test_foundation.py -v
"""
import pytest

from templating.core.conventions import DEFAULT_CONVENTIONS, TemplateConventions
from templating.core.errors import (
    DocumentError,
    MalformedTemplateError,
    NotFoundError,
    RenderFailure,
    TemplateError,
)
from templating.core.palette import RangeColor, lookup_color


def test_markers_recognised():
    conv = DEFAULT_CONVENTIONS
    assert conv.is_marker("#FerritinLow#")
    assert conv.is_marker("  #FerritinLow#  ")
    assert conv.is_marker("#A#")
    assert not conv.is_marker("#")
    assert not conv.is_marker("##")
    assert not conv.is_marker("#Heading")
    assert not conv.is_marker("plain text")


def test_tag_helpers():
    conv = DEFAULT_CONVENTIONS
    assert conv.canonical_tag("Ferritin") == "[Ferritin]"
    assert conv.canonical_tag(" [Ferritin] ") == "[Ferritin]"
    assert conv.canonical_tag("") == ""
    assert conv.bare_name("[Ferritin]") == "Ferritin"
    assert conv.marker_name("#FerritinLow#") == "FerritinLow"
    assert conv.chart_placeholder("[Ferritin]") == "@Ferritin"


def test_chart_placeholders():
    conv = DEFAULT_CONVENTIONS
    assert conv.is_chart_placeholder("@Ferritin")
    assert not conv.is_chart_placeholder("@")
    assert not conv.is_chart_placeholder("@ mention in text")
    assert not conv.is_chart_placeholder("Ferritin")


def test_conventions_from_config():
    cfg = {"template": {"value_table_label": "Key", "marker_fence": "%", "unknown": 1}}
    conv = TemplateConventions.from_config(cfg)
    assert conv.value_table_label == "Key"
    assert conv.is_marker("%Intro%")
    assert not conv.is_marker("#Intro#")
    # Untouched fields keep their defaults
    assert conv.section_table_label == "Section Name"


def test_conventions_reject_empty():
    with pytest.raises(ValueError):
        TemplateConventions(tag_prefix="")


def test_palette_lookup():
    assert lookup_color("Green") is RangeColor.GREEN
    assert lookup_color(" yellow ") is RangeColor.YELLOW
    assert lookup_color("RED") is RangeColor.RED
    assert lookup_color("Purple") is None
    assert lookup_color("") is None
    assert lookup_color(None) is None


def test_palette_is_translucent():
    for color in RangeColor:
        r, g, b, a = color.rgba
        assert all(0.0 <= c <= 1.0 for c in (r, g, b))
        assert a < 1.0
    assert RangeColor.GREEN.label == "Green"


def test_error_hierarchy():
    for exc in (NotFoundError("Table", "Tag"), DocumentError("x"),
                MalformedTemplateError("x"), RenderFailure("[Ferritin]", "boom")):
        assert isinstance(exc, TemplateError)

    err = NotFoundError("Table", "Section Name")
    assert err.label == "Section Name"
    assert "Section Name" in str(err)

    failure = RenderFailure("[Ferritin]", "boom")
    assert failure.metric_tag == "[Ferritin]"
    assert failure.reason == "boom"
