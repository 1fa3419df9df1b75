#!/usr/bin/env python3
"""
Section evaluator.

Decides, for every section marker in the body, whether its region is kept
or deleted, and deletes the disqualified ones.

Decision (first delete wins):
1. unknown section: marker not in the section catalog
2. unknown metric: the section's metric tag has no value
3. out of range: value < Low or value > High (bounds inclusive, NaN fails closed)

Markers of kept sections stay in the document; cleanup strips them later.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from templating.core.conventions import DEFAULT_CONVENTIONS, TemplateConventions
from templating.core.errors import MalformedTemplateError
from templating.document.word_document import ParagraphRef, TemplateDocument
from templating.pipeline.catalogs import SectionEntry, ValueMapping, in_range, parse_number
from templating.pipeline.region_deleter import delete_region

LOGGER = logging.getLogger(__name__)

REASON_KEPT = "kept"
REASON_UNKNOWN_SECTION = "unknown section"
REASON_UNKNOWN_METRIC = "unknown metric"
REASON_OUT_OF_RANGE = "out of range"


@dataclass(frozen=True)
class SectionDecision:
    """Outcome of the keep/delete predicate for one marker."""
    marker: str
    keep: bool
    reason: str
    detail: str = ""


def decide(marker: str, values: ValueMapping,
           sections: Dict[str, SectionEntry]) -> SectionDecision:
    """
    Keep/delete predicate for one section marker.

    Args:
        marker: Marker text (trimmed), e.g. "#FerritinLow#"
        values: Tag → Value mapping
        sections: Marker → SectionEntry catalog

    Returns:
        SectionDecision (keep=False means the region must be deleted)
    """
    entry = sections.get(marker)
    if entry is None:
        return SectionDecision(marker, False, REASON_UNKNOWN_SECTION)

    if entry.metric_tag not in values:
        return SectionDecision(marker, False, REASON_UNKNOWN_METRIC, entry.metric_tag)

    raw = values[entry.metric_tag]
    value = parse_number(raw)
    if not in_range(value, entry.low, entry.high):
        return SectionDecision(
            marker, False, REASON_OUT_OF_RANGE,
            f"{entry.metric_tag}={raw!r} not in [{entry.low:g}, {entry.high:g}]")

    return SectionDecision(marker, True, REASON_KEPT,
                           f"{entry.metric_tag}={raw} in [{entry.low:g}, {entry.high:g}]")


@dataclass
class EvaluationResult:
    """Decisions taken during one evaluation pass, in document order."""
    decisions: List[SectionDecision] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)

    @property
    def kept(self) -> List[str]:
        return [d.marker for d in self.decisions if d.keep]

    @property
    def deleted(self) -> Dict[str, str]:
        """Disqualified markers whose region was actually removed."""
        return {d.marker: d.reason for d in self.decisions
                if not d.keep and d.marker not in self.unmatched}


class SectionEvaluator:
    """
    Applies the keep/delete predicate to every marker of a document.

    Evaluation is strictly sequential: after each deletion the document is
    synced and the paragraph list re-fetched before the next marker is
    looked at. Each marker is evaluated once, so the closing fence of a kept
    section is not re-evaluated.

    A disqualified section whose region cannot be found (e.g. a single
    fence) is logged as an error and listed in ``unmatched``; in strict mode
    it raises MalformedTemplateError instead.
    """

    def __init__(self, values: ValueMapping, sections: Dict[str, SectionEntry],
                 conventions: TemplateConventions = DEFAULT_CONVENTIONS,
                 strict: bool = False):
        self.values = values
        self.sections = sections
        self.conventions = conventions
        self.strict = strict

    def _next_marker(self, document: TemplateDocument,
                     evaluated: Set[str]) -> Optional[ParagraphRef]:
        for ref in document.paragraphs():
            if ref.in_table:
                continue
            text = ref.text.strip()
            if self.conventions.is_marker(text) and text not in evaluated:
                return ref
        return None

    def run(self, document: TemplateDocument) -> EvaluationResult:
        """Evaluate every section of ``document``, deleting disqualified ones."""
        result = EvaluationResult()
        evaluated: Set[str] = set()

        while True:
            ref = self._next_marker(document, evaluated)
            if ref is None:
                break
            marker = ref.text.strip()
            evaluated.add(marker)

            decision = decide(marker, self.values, self.sections)
            result.decisions.append(decision)

            if decision.keep:
                LOGGER.debug("Keeping %s (%s)", marker, decision.detail)
                continue

            LOGGER.info("Deleting section %s: %s%s", marker, decision.reason,
                        f" ({decision.detail})" if decision.detail else "")
            if delete_region(document, marker) == 0:
                result.unmatched.append(marker)
                LOGGER.error("[FAIL] Section %s must be deleted but its region was not found",
                             marker)
                if self.strict:
                    raise MalformedTemplateError(
                        f"Disqualified section {marker} has no deletable region")
                continue
            document.sync()

        LOGGER.info("Sections: %d kept, %d deleted, %d not found",
                    len(result.kept), len(result.deleted), len(result.unmatched))
        return result
