#!/usr/bin/env python3
"""
Placeholder substitutor.

Replaces value tags (``[Name]``) in running text with their mapped values.
Single-shot per paragraph and tag: only the first occurrence in a paragraph
is replaced, a second one stays as written. Table text is never touched, so
the scaffolding tables keep their tags until cleanup removes them.
"""
from __future__ import annotations

import logging

from templating.document.word_document import TemplateDocument
from templating.pipeline.catalogs import ValueMapping

LOGGER = logging.getLogger(__name__)


def substitute_placeholders(document: TemplateDocument, values: ValueMapping) -> int:
    """
    Replace the first occurrence of each tag in every body paragraph.

    Args:
        document: Template document (mutated in place)
        values: Tag → Value mapping

    Returns:
        Number of replacements made
    """
    replaced = 0
    for tag, value in values.items():
        hits = 0
        for ref in document.body_paragraphs():
            if tag in ref.text and document.replace_first(ref.paragraph, tag, value):
                hits += 1
        if hits:
            LOGGER.debug("  %s -> %r (%d paragraph(s))", tag, value, hits)
        replaced += hits
    document.sync()
    LOGGER.info("Placeholders: %d replacement(s)", replaced)
    return replaced
