#!/usr/bin/env python3
"""
Shared fixtures: in-memory templates built with python-docx.

A template is laid out the way authors write them: running text with
markers and placeholders, then a "Values" heading with the value table and
a "Sections" heading with the section table.
"""
import sys
from pathlib import Path

import docx
import pytest

REPO = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO))

from templating.document.word_document import TemplateDocument, wrap

VALUE_HEADER = ("Tag", "Value", "Notes")
SECTION_HEADER = ("Section Name", "Metric Tag", "Low", "High", "Label", "Color")

FERRITIN_BODY = [
    "Dear client, your ferritin is [Ferritin].",
    "#FerritinLow#",
    "Your ferritin is low.",
    "#FerritinLow#",
    "#FerritinOK#",
    "Ferritin [Ferritin] is optimal.",
    "#FerritinOK#",
    "@Ferritin",
    "Closing.",
]

FERRITIN_SECTIONS = [
    ("#FerritinLow#", "[Ferritin]", "0", "20", "Low", "Yellow"),
    ("#FerritinOK#", "[Ferritin]", "20", "50", "Optimal", "Green"),
]


def _add_table(document, header, rows):
    table = document.add_table(rows=0, cols=len(header))
    for row in [header] + [tuple(r) for r in rows]:
        cells = table.add_row().cells
        for cell, text in zip(cells, row):
            cell.text = text
    return table


def build_template(body, values=(), sections=(), value_heading="Values",
                   section_heading="Sections"):
    """Build a template document; ``values`` rows are (tag, value[, notes])."""
    document = docx.Document()
    for text in body:
        document.add_paragraph(text)
    if value_heading:
        document.add_heading(value_heading, level=2)
    _add_table(document, VALUE_HEADER, [tuple(v) + ("",) * (3 - len(v)) for v in values])
    if section_heading:
        document.add_heading(section_heading, level=2)
    _add_table(document, SECTION_HEADER, sections)
    return wrap(document)


def body_texts(document: TemplateDocument):
    return [ref.text for ref in document.body_paragraphs()]


@pytest.fixture
def template_factory():
    """Factory fixture: ``template_factory(body, values, sections)``."""
    return build_template


@pytest.fixture
def texts():
    return body_texts


@pytest.fixture
def plain_document():
    """Body-only document: Intro / #A# / Inside / #A# / Outro."""
    document = docx.Document()
    for text in ("Intro", "#A#", "Inside", "#A#", "Outro"):
        document.add_paragraph(text)
    return wrap(document)


@pytest.fixture
def ferritin_template():
    """Factory for the ferritin template with a given client value."""
    def _make(value="40", sections=FERRITIN_SECTIONS):
        return build_template(FERRITIN_BODY,
                              values=[("[Ferritin]", value, "ng/mL")],
                              sections=sections)
    return _make
