#!/usr/bin/env python3
"""
Tests for the keep/delete predicate and the sequential evaluator.
"""
import pytest

from templating.core.errors import MalformedTemplateError
from templating.pipeline.catalogs import SectionEntry, build_section_catalog, build_value_mapping
from templating.pipeline.section_evaluator import (
    REASON_KEPT,
    REASON_OUT_OF_RANGE,
    REASON_UNKNOWN_METRIC,
    REASON_UNKNOWN_SECTION,
    SectionEvaluator,
    decide,
)
from templating.pipeline.table_extractor import extract_table

NAN = float("nan")
SECTIONS = {
    "#FerritinOK#": SectionEntry("#FerritinOK#", "[Ferritin]", 20.0, 50.0),
    "#IronOK#": SectionEntry("#IronOK#", "[Iron]", 60.0, 170.0),
    "#Broken#": SectionEntry("#Broken#", "[Ferritin]", NAN, 50.0),
}


@pytest.mark.parametrize("value, keep", [
    ("20", True),
    ("50", True),
    ("40", True),
    ("19.9", False),
    ("50.1", False),
    ("forty", False),
    ("", False),
])
def test_decide_range(value, keep):
    decision = decide("#FerritinOK#", {"[Ferritin]": value}, SECTIONS)
    assert decision.keep is keep
    assert decision.reason == (REASON_KEPT if keep else REASON_OUT_OF_RANGE)


def test_decide_unknown_section():
    decision = decide("#Nowhere#", {"[Ferritin]": "40"}, SECTIONS)
    assert not decision.keep
    assert decision.reason == REASON_UNKNOWN_SECTION


def test_decide_unknown_metric():
    decision = decide("#IronOK#", {"[Ferritin]": "40"}, SECTIONS)
    assert not decision.keep
    assert decision.reason == REASON_UNKNOWN_METRIC
    assert decision.detail == "[Iron]"


def test_decide_nan_bound_fails_closed():
    decision = decide("#Broken#", {"[Ferritin]": "40"}, SECTIONS)
    assert not decision.keep


def _catalogs(document):
    values = build_value_mapping(extract_table(document, "Tag"))
    sections = build_section_catalog(extract_table(document, "Section Name"))
    return values, sections


def test_evaluator_deletes_out_of_range_section(ferritin_template, texts):
    document = ferritin_template("40")
    result = SectionEvaluator(*_catalogs(document)).run(document)

    assert result.kept == ["#FerritinOK#"]
    assert result.deleted == {"#FerritinLow#": REASON_OUT_OF_RANGE}
    body = texts(document)
    assert "Your ferritin is low." not in body
    assert "#FerritinLow#" not in body
    assert body.count("#FerritinOK#") == 2
    assert "Ferritin [Ferritin] is optimal." in body


def test_evaluator_low_value(ferritin_template, texts):
    document = ferritin_template("12")
    result = SectionEvaluator(*_catalogs(document)).run(document)

    assert result.kept == ["#FerritinLow#"]
    assert "Your ferritin is low." in texts(document)
    assert "Ferritin [Ferritin] is optimal." not in texts(document)


def test_evaluator_boundary_keeps_both(ferritin_template, texts):
    # 20 is the High of one range and the Low of the next
    document = ferritin_template("20")
    result = SectionEvaluator(*_catalogs(document)).run(document)
    assert result.deleted == {}
    assert len(result.kept) == 2


def test_evaluator_unknown_marker_and_missing_metric(template_factory, texts):
    document = template_factory(
        ["Start", "#Ghost#", "ghost text", "#Ghost#",
         "#IronOK#", "iron text", "#IronOK#", "End"],
        values=[("[Ferritin]", "40")],
        sections=[("#IronOK#", "[Iron]", "60", "170", "Normal", "Green")],
    )
    result = SectionEvaluator(*_catalogs(document)).run(document)

    assert result.deleted == {"#Ghost#": REASON_UNKNOWN_SECTION,
                              "#IronOK#": REASON_UNKNOWN_METRIC}
    body = texts(document)
    assert body[:2] == ["Start", "End"]


def test_evaluator_syncs_after_each_deletion(template_factory):
    document = template_factory(
        ["#A#", "a", "#A#", "#B#", "b", "#B#"],
        values=[("[M]", "100")],
        sections=[("#A#", "[M]", "0", "1", "", ""), ("#B#", "[M]", "0", "1", "", "")],
    )
    before = document.barriers
    result = SectionEvaluator(*_catalogs(document)).run(document)
    assert len(result.deleted) == 2
    assert document.barriers - before == 2


def _low_template(template_factory, body):
    return template_factory(
        body,
        values=[("[M]", "40")],
        sections=[("#Low#", "[M]", "0", "30", "Low", "Yellow")],
    )


def test_evaluator_deletes_indented_markers(template_factory, texts):
    document = _low_template(template_factory,
                             ["Intro", " #Low#", "low text", " #Low#", "End"])
    result = SectionEvaluator(*_catalogs(document)).run(document)

    assert result.deleted == {"#Low#": REASON_OUT_OF_RANGE}
    assert result.unmatched == []
    assert texts(document)[:2] == ["Intro", "End"]


def test_evaluator_closing_marker_with_trailing_space(template_factory, texts):
    document = _low_template(template_factory,
                             ["Intro", "#Low#", "low text", "#Low# ", "End"])
    SectionEvaluator(*_catalogs(document)).run(document)

    assert texts(document)[:2] == ["Intro", "End"]


def test_evaluator_reports_region_not_found(template_factory, texts):
    document = _low_template(template_factory, ["Intro", "#Low#", "low text", "End"])
    result = SectionEvaluator(*_catalogs(document)).run(document)

    assert result.unmatched == ["#Low#"]
    assert result.deleted == {}
    assert "low text" in texts(document)


def test_evaluator_strict_raises_on_region_not_found(template_factory):
    document = _low_template(template_factory, ["Intro", "#Low#", "low text", "End"])
    with pytest.raises(MalformedTemplateError):
        SectionEvaluator(*_catalogs(document), strict=True).run(document)
