#!/usr/bin/env python3
"""
Chart Inserter

Renders one range chart per metric and puts it where the template asks for
it: the image goes right after the ``@Name`` placeholder paragraph, then the
placeholder is deleted.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from core.runtime import ensure_dir
from templating.core.conventions import DEFAULT_CONVENTIONS, TemplateConventions
from templating.core.errors import RenderFailure
from templating.document.word_document import ParagraphRef, TemplateDocument
from templating.pipeline.catalogs import Range, ValueMapping, parse_number
from templating.rendering.chart_data import ChartSpec, build_chart_spec
from templating.rendering.range_chart import render_range_chart

LOGGER = logging.getLogger(__name__)

ChartRenderer = Callable[[ChartSpec], bytes]


@dataclass
class ChartResult:
    """What happened to each metric's chart during one pass."""
    inserted: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    skipped: Dict[str, str] = field(default_factory=dict)


class ChartInserter:
    """
    Inserts range charts into chart placeholders.

    A failing chart never stops the others: the failure is logged with the
    metric tag and the loop moves on.

    Example:
        >>> inserter = ChartInserter(image_width_in=6.0)
        >>> result = inserter.insert_all(document, values, ranges)
        >>> result.inserted
        ['[Ferritin]']
    """

    def __init__(self,
                 renderer: Optional[ChartRenderer] = None,
                 conventions: TemplateConventions = DEFAULT_CONVENTIONS,
                 image_width_in: Optional[float] = 6.0,
                 export_dir: Optional[Path] = None):
        """
        Initialize chart inserter.

        Args:
            renderer: ChartSpec → PNG bytes (default: render_range_chart)
            conventions: Template conventions (chart placeholder prefix)
            image_width_in: Width of the inserted picture in inches
            export_dir: Optional directory where each PNG is also written
                (relative paths resolve against the repo root)
        """
        self.renderer = renderer or render_range_chart
        self.conventions = conventions
        self.image_width_in = image_width_in
        self.export_dir = ensure_dir(export_dir) if export_dir else None

    def _find_placeholder(self, document: TemplateDocument,
                          placeholder: str) -> Optional[ParagraphRef]:
        for ref in document.body_paragraphs():
            if ref.text.strip() == placeholder:
                return ref
        return None

    def insert_all(self, document: TemplateDocument, values: ValueMapping,
                   ranges: Dict[str, Sequence[Range]]) -> ChartResult:
        """
        Render and insert a chart for every metric that has ranges.

        Args:
            document: Template document (mutated in place)
            values: Tag → Value mapping
            ranges: MetricTag → ordered Ranges

        Returns:
            ChartResult with inserted / failed / skipped metric tags
        """
        result = ChartResult()
        LOGGER.info("Inserting charts for %d metric(s)", len(ranges))

        for tag, metric_ranges in ranges.items():
            if not metric_ranges:
                continue
            if tag not in values:
                result.skipped[tag] = "no value"
                LOGGER.debug("  %s: no value, chart skipped", tag)
                continue

            placeholder = self.conventions.chart_placeholder(tag)
            ref = self._find_placeholder(document, placeholder)
            if ref is None:
                result.skipped[tag] = "no placeholder"
                LOGGER.debug("  %s: no %s paragraph, chart skipped", tag, placeholder)
                continue

            try:
                image = self._render(tag, values[tag], metric_ranges)
                self._place(document, tag, ref, image)
            except RenderFailure as e:
                result.failed[tag] = e.reason
                LOGGER.error("  [FAIL] Chart for %s: %s", tag, e.reason)
                continue

            document.delete_paragraph(ref.paragraph)
            document.sync()
            result.inserted.append(tag)
            LOGGER.info("  [OK] Chart for %s", tag)

        return result

    def _render(self, tag: str, raw_value: str, metric_ranges: Sequence[Range]) -> bytes:
        name = self.conventions.bare_name(tag)
        try:
            spec = build_chart_spec(name, parse_number(raw_value), metric_ranges)
            image = self.renderer(spec)
        except RenderFailure:
            raise
        except Exception as e:
            raise RenderFailure(tag, str(e)) from e

        if self.export_dir:
            path = self.export_dir / f"{name}.png"
            try:
                path.write_bytes(image)
                LOGGER.debug("  Exported %s", path)
            except OSError as e:
                LOGGER.warning("  Chart for %s not exported to %s: %s", tag, path, e)
        return image

    def _place(self, document: TemplateDocument, tag: str, ref: ParagraphRef,
               image: bytes) -> None:
        try:
            document.insert_picture_after(ref.paragraph, image, self.image_width_in)
        except Exception as e:
            raise RenderFailure(tag, f"image not insertable: {e}") from e
