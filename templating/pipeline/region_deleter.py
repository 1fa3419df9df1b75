#!/usr/bin/env python3
"""
Region deleter.

A section has no container in the document: it is only the text between two
identical marker paragraphs. Deleting it is therefore a wildcard search over
the body text, from the paragraph break before the opening marker (and any
spaces or tabs indenting it) through the closing marker, longest match.

Edge cases (by construction of the query):
- a marker present more than twice yields one greedy match from the first
  to the last occurrence
- a marker that is not present deletes nothing and raises nothing
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Dict

from templating.core.conventions import DEFAULT_CONVENTIONS, TemplateConventions
from templating.core.errors import MalformedTemplateError
from templating.document.word_document import TemplateDocument

LOGGER = logging.getLogger(__name__)

_WILDCARD_SPECIALS = set("\\[]{}()<>*?@!^")


def _literal(text: str) -> str:
    """Quote text for a wildcard query; fence characters go in a class."""
    out = []
    for ch in text:
        if ch in _WILDCARD_SPECIALS:
            out.append("\\" + ch)
        elif not ch.isalnum() and not ch.isspace():
            out.append(f"[{ch}]")
        else:
            out.append(ch)
    return "".join(out)


def region_query(marker: str) -> str:
    """
    Wildcard query matching one fenced region.

    Example:
        >>> region_query("#FerritinLow#")
        '^13[ ^t]{0,}[#]FerritinLow[#]*[#]FerritinLow[#]'
    """
    quoted = _literal(marker.strip())
    return f"^13[ ^t]{{0,}}{quoted}*{quoted}"


def delete_region(document: TemplateDocument, marker: str) -> int:
    """
    Delete the region fenced by ``marker``.

    Args:
        document: Template document (mutated in place)
        marker: Marker text, e.g. "#FerritinLow#"

    Returns:
        Number of matches deleted (0 = marker not found, not an error)
    """
    query = region_query(marker)
    deleted = document.search_and_delete(query)
    if deleted:
        LOGGER.debug("Region %s deleted (%d match)", marker, deleted)
    else:
        LOGGER.debug("Region %s not found, nothing deleted", marker)
    return deleted


def count_marker_fences(document: TemplateDocument,
                        conventions: TemplateConventions = DEFAULT_CONVENTIONS) -> Dict[str, int]:
    """Count marker paragraphs (outside tables) per marker text."""
    return dict(Counter(ref.text.strip() for ref in document.body_paragraphs()
                        if conventions.is_marker(ref.text)))


def check_marker_fences(document: TemplateDocument,
                        conventions: TemplateConventions = DEFAULT_CONVENTIONS,
                        strict: bool = False) -> Dict[str, int]:
    """
    Report markers that do not appear exactly twice.

    A marker seen once cannot be deleted; one seen three times or more would
    be deleted greedily from its first to its last occurrence.

    Returns:
        Marker → count for every malformed marker

    Raises:
        MalformedTemplateError: In strict mode, if any marker is malformed
    """
    malformed = {m: n for m, n in count_marker_fences(document, conventions).items() if n != 2}
    for marker, count in malformed.items():
        LOGGER.warning("Marker %s appears %d time(s), expected 2", marker, count)
    if malformed and strict:
        raise MalformedTemplateError(
            "Unbalanced section markers: " +
            ", ".join(f"{m} x{n}" for m, n in sorted(malformed.items())))
    return malformed
