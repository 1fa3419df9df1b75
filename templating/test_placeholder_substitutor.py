#!/usr/bin/env python3
"""
Tests for value placeholder substitution and run-aware replacement.
"""
import docx

from templating.document.word_document import replace_span, wrap
from templating.pipeline.placeholder_substitutor import substitute_placeholders


def test_first_occurrence_per_paragraph(template_factory, texts):
    document = template_factory(
        ["[A] and [A]", "Only [B] here", "Another [A]"],
        values=[("[A]", "1"), ("[B]", "two")],
    )
    count = substitute_placeholders(document, {"[A]": "1", "[B]": "two"})

    assert count == 3
    assert texts(document)[:3] == ["1 and [A]", "Only two here", "Another 1"]


def test_tables_are_never_touched(template_factory):
    document = template_factory(["[A]"], values=[("[A]", "1")])
    substitute_placeholders(document, {"[A]": "1"})

    grid = document.table_values(document.tables()[0])
    assert grid[1][0] == "[A]"


def test_unknown_tags_stay(template_factory, texts):
    document = template_factory(["[Unknown] text"], values=[("[A]", "1")])
    assert substitute_placeholders(document, {"[A]": "1"}) == 0
    assert texts(document)[0] == "[Unknown] text"


def test_formatting_of_runs_survives():
    raw = docx.Document()
    paragraph = raw.add_paragraph("Ferritin: ")
    tagged = paragraph.add_run("[Ferritin]")
    tagged.bold = True
    paragraph.add_run(" ng/mL")
    document = wrap(raw)

    substitute_placeholders(document, {"[Ferritin]": "40"})

    runs = raw.paragraphs[0].runs
    assert raw.paragraphs[0].text == "Ferritin: 40 ng/mL"
    assert runs[1].text == "40"
    assert runs[1].bold is True
    assert runs[0].bold is None


def test_replace_span_across_runs():
    raw = docx.Document()
    paragraph = raw.add_paragraph("ab")
    paragraph.add_run("[Fe")
    paragraph.add_run("rritin]cd")

    replace_span(paragraph, 2, 12, "40")

    assert paragraph.text == "ab40cd"
    assert [r.text for r in paragraph.runs] == ["ab", "40", "cd"]
