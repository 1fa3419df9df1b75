#!/usr/bin/env python3
"""
Table extractor.

Locates a scaffolding table by the text of one of its cells (the header
label, e.g. "Tag" or "Section Name") and returns it or its cell grid.
"""
from __future__ import annotations

import logging

from docx.table import Table

from templating.core.errors import NotFoundError
from templating.document.word_document import TableGrid, TemplateDocument

LOGGER = logging.getLogger(__name__)


def find_table(document: TemplateDocument, label: str) -> Table:
    """
    Find the table holding a paragraph whose text is exactly ``label``.

    The first such paragraph in document order wins.

    Raises:
        NotFoundError: If no table paragraph carries the label
    """
    for ref in document.paragraphs():
        if ref.in_table and ref.text == label:
            LOGGER.debug("Table '%s' found at paragraph %d", label, ref.index)
            return ref.table
    raise NotFoundError("Table", label)


def extract_table(document: TemplateDocument, label: str) -> TableGrid:
    """
    Return the full cell grid of the table identified by ``label``.

    Raises:
        NotFoundError: If the table is missing or its values cannot be read
    """
    table = find_table(document, label)
    try:
        grid = document.table_values(table)
    except Exception as e:
        raise NotFoundError("Table values", label) from e
    LOGGER.info("Table '%s': %d rows", label, len(grid))
    return grid
