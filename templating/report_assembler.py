#!/usr/bin/env python3
"""
Report Assembler - Main Orchestrator

Runs the full templating pass on one document:
1. Extract the value table and the section table
2. Build ValueMapping, SectionCatalog, RangeCatalog (read-only from here on)
3. Check marker fences
4. Evaluate sections (delete disqualified regions)
5. Render and insert range charts
6. Substitute value placeholders
7. Clean up scaffolding (tables, their headings, markers)

Usage:
    assembler = ReportAssembler(TemplateDocument.load(path), cfg)
    summary = assembler.build()
    assembler.document.save(output_path)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from core.config import get_section
from templating.core.conventions import TemplateConventions
from templating.document.word_document import TemplateDocument
from templating.pipeline.catalogs import (
    build_range_catalog,
    build_section_catalog,
    build_value_mapping,
)
from templating.pipeline.chart_inserter import ChartInserter, ChartRenderer
from templating.pipeline.placeholder_substitutor import substitute_placeholders
from templating.pipeline.region_deleter import check_marker_fences
from templating.pipeline.section_evaluator import SectionEvaluator
from templating.pipeline.table_extractor import extract_table, find_table
from templating.rendering.range_chart import render_range_chart

LOGGER = logging.getLogger(__name__)


# ============================================================================
# RUN SUMMARY
# ============================================================================
@dataclass
class RunSummary:
    """
    Record of one templating run.

    Attributes:
        values: Number of value tags read
        sections_kept: Markers of kept sections (document order)
        sections_deleted: Marker → reason for deleted sections
        sections_unmatched: Disqualified markers whose region was not found
        charts_inserted: Metric tags whose chart was inserted
        charts_failed: Metric tag → failure reason
        charts_skipped: Metric tag → why no chart was attempted
        substitutions: Placeholder replacements made
        scaffolding_removed: Number of tables/paragraphs removed by cleanup
        barriers: sync() barriers issued during the run
    """
    values: int = 0
    sections_kept: List[str] = field(default_factory=list)
    sections_deleted: Dict[str, str] = field(default_factory=dict)
    sections_unmatched: List[str] = field(default_factory=list)
    charts_inserted: List[str] = field(default_factory=list)
    charts_failed: Dict[str, str] = field(default_factory=dict)
    charts_skipped: Dict[str, str] = field(default_factory=dict)
    substitutions: int = 0
    scaffolding_removed: int = 0
    barriers: int = 0


def summarize_run(summary: RunSummary) -> str:
    """
    Create human-readable summary of a run.

    Args:
        summary: RunSummary to summarize

    Returns:
        Multi-line summary string
    """
    lines = [
        "Report Run Summary",
        f"  Value tags:        {summary.values:4d}",
        f"  Sections kept:     {len(summary.sections_kept):4d}",
        f"  Sections deleted:  {len(summary.sections_deleted):4d}",
    ]
    for marker, reason in summary.sections_deleted.items():
        lines.append(f"    ✗ {marker}: {reason}")
    for marker in summary.sections_unmatched:
        lines.append(f"    ! {marker}: region not found, left in place")
    lines += [
        f"  Charts inserted:   {len(summary.charts_inserted):4d}",
        f"  Charts failed:     {len(summary.charts_failed):4d}",
        f"  Charts skipped:    {len(summary.charts_skipped):4d}",
    ]
    for tag, reason in summary.charts_failed.items():
        lines.append(f"    ✗ {tag}: {reason}")
    lines += [
        f"  Substitutions:     {summary.substitutions:4d}",
        f"  Scaffolding items: {summary.scaffolding_removed:4d}",
    ]
    return "\n".join(lines)


# ============================================================================
# CLEANUP
# ============================================================================
def _is_heading(paragraph, labels) -> bool:
    """True for a Heading/Title styled paragraph or one whose text is a known label."""
    style = paragraph.style
    name = style.name if style is not None else ""
    if name.startswith("Heading") or name == "Title":
        return True
    return paragraph.text.strip() in labels


def cleanup(document: TemplateDocument,
            conventions: TemplateConventions,
            remove_table_headings: bool = True,
            remove_section_markers: bool = True,
            remove_orphan_chart_placeholders: bool = True,
            heading_labels: Sequence[str] = ()) -> int:
    """
    Remove authoring scaffolding from the document.

    Deletes the value table, the section table and the heading paragraph
    introducing each of them, then the remaining marker paragraphs and any
    chart placeholder that did not receive a chart.

    Only a paragraph styled as a heading (or whose text is one of
    ``heading_labels``) counts as a table heading. Body text right before a
    table is kept.

    Not idempotent: on a second call the tables are gone and NotFoundError
    is raised before anything is touched.

    Returns:
        Number of removed tables and paragraphs
    """
    tables = [find_table(document, conventions.value_table_label),
              find_table(document, conventions.section_table_label)]

    labels = {str(label).strip() for label in heading_labels}
    headings = []
    if remove_table_headings:
        for table in tables:
            heading = document.preceding_paragraph(table)
            if heading is None:
                LOGGER.warning("No heading paragraph before scaffolding table")
            elif not _is_heading(heading, labels):
                LOGGER.warning("Paragraph before scaffolding table is not a heading, kept: %r",
                               heading.text)
            else:
                headings.append(heading)

    removed = 0
    for heading in headings:
        LOGGER.debug("Removing heading: %r", heading.text)
        document.delete_paragraph(heading)
        removed += 1
    for table in tables:
        document.delete_table(table)
        removed += 1
    document.sync()

    for ref in document.body_paragraphs():
        text = ref.text.strip()
        if remove_section_markers and conventions.is_marker(text):
            document.delete_paragraph(ref.paragraph)
            removed += 1
        elif remove_orphan_chart_placeholders and conventions.is_chart_placeholder(text):
            LOGGER.warning("Removing chart placeholder without chart: %s", text)
            document.delete_paragraph(ref.paragraph)
            removed += 1
    document.sync()

    LOGGER.info("Cleanup: %d scaffolding item(s) removed", removed)
    return removed


# ============================================================================
# REPORT ASSEMBLER
# ============================================================================
class ReportAssembler:
    """
    Main orchestrator for one templating run.

    Attributes:
        document: TemplateDocument being transformed
        cfg: Configuration dict
        conventions: Text conventions resolved from cfg

    Example:
        >>> assembler = ReportAssembler(
        ...     TemplateDocument.load(Path("template.docx")),
        ...     cfg=get_config()
        ... )
        >>> summary = assembler.build()
        >>> assembler.document.save(Path("report.docx"))
    """

    def __init__(self,
                 document: TemplateDocument,
                 cfg: Optional[Dict[str, Any]] = None,
                 renderer: Optional[ChartRenderer] = None):
        """
        Initialize assembler.

        Args:
            document: Template document
            cfg: Configuration dictionary (optional, defaults apply)
            renderer: ChartSpec → PNG bytes (default: matplotlib renderer
                configured from the ``charts`` section)
        """
        self.document = document
        self.cfg = cfg or {}
        self.conventions = TemplateConventions.from_config(self.cfg)
        self.renderer = renderer or self._configured_renderer()
        self._built = False

    def _configured_renderer(self) -> ChartRenderer:
        charts = get_section(self.cfg, "charts")
        options = {k: charts[k] for k in ("width_in", "height_in", "dpi", "marker_color")
                   if charts.get(k) is not None}
        return lambda spec: render_range_chart(spec, **options)

    # ========================================================================
    # PUBLIC API
    # ========================================================================
    def build(self) -> RunSummary:
        """
        Execute the complete pipeline on the document.

        Returns:
            RunSummary

        Raises:
            NotFoundError: If a scaffolding table is missing (fatal)
            MalformedTemplateError: On unbalanced markers in strict mode
            RuntimeError: If called twice on the same assembler
        """
        if self._built:
            raise RuntimeError("ReportAssembler.build() must run once per document")
        self._built = True

        summary = RunSummary()
        conv = self.conventions
        sections_cfg = get_section(self.cfg, "sections")
        charts_cfg = get_section(self.cfg, "charts")
        cleanup_cfg = get_section(self.cfg, "cleanup")

        # ====================================================================
        # STAGE 1: Extract data
        # ====================================================================
        LOGGER.info("[1/5] Extracting scaffolding tables...")
        value_grid = extract_table(self.document, conv.value_table_label)
        section_grid = extract_table(self.document, conv.section_table_label)

        values = build_value_mapping(value_grid, conv)
        sections = build_section_catalog(section_grid, conv)
        ranges = build_range_catalog(section_grid, conv)
        summary.values = len(values)

        # ====================================================================
        # STAGE 2: Prune sections
        # ====================================================================
        LOGGER.info("[2/5] Evaluating sections...")
        strict = bool(sections_cfg.get("strict_fences", False))
        check_marker_fences(self.document, conv, strict=strict)
        evaluation = SectionEvaluator(values, sections, conv, strict=strict).run(self.document)
        summary.sections_kept = evaluation.kept
        summary.sections_deleted = evaluation.deleted
        summary.sections_unmatched = evaluation.unmatched

        # ====================================================================
        # STAGE 3: Charts
        # ====================================================================
        if charts_cfg.get("enabled", True):
            LOGGER.info("[3/5] Rendering charts...")
            inserter = ChartInserter(
                renderer=self.renderer,
                conventions=conv,
                image_width_in=charts_cfg.get("image_width_in", 6.0),
                export_dir=charts_cfg.get("export_dir"),
            )
            charts = inserter.insert_all(self.document, values, ranges)
            summary.charts_inserted = charts.inserted
            summary.charts_failed = charts.failed
            summary.charts_skipped = charts.skipped
        else:
            LOGGER.info("[3/5] Charts disabled")

        # ====================================================================
        # STAGE 4: Placeholders
        # ====================================================================
        LOGGER.info("[4/5] Substituting placeholders...")
        summary.substitutions = substitute_placeholders(self.document, values)

        # ====================================================================
        # STAGE 5: Cleanup
        # ====================================================================
        LOGGER.info("[5/5] Removing scaffolding...")
        summary.scaffolding_removed = cleanup(
            self.document, conv,
            remove_table_headings=cleanup_cfg.get("remove_table_headings", True),
            remove_section_markers=cleanup_cfg.get("remove_section_markers", True),
            remove_orphan_chart_placeholders=cleanup_cfg.get(
                "remove_orphan_chart_placeholders", True),
            heading_labels=cleanup_cfg.get("table_heading_labels") or (),
        )

        summary.barriers = self.document.barriers
        LOGGER.info("Run complete: %d kept, %d deleted, %d chart(s), %d substitution(s)",
                    len(summary.sections_kept), len(summary.sections_deleted),
                    len(summary.charts_inserted), summary.substitutions)
        return summary


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================
def assemble_report(input_path: Path,
                    output_path: Optional[Path],
                    cfg: Optional[Dict[str, Any]] = None) -> RunSummary:
    """
    Load a template, run the pipeline and save the report.

    Args:
        input_path: Template .docx
        output_path: Report .docx (None = run without saving)
        cfg: Configuration dictionary

    Returns:
        RunSummary

    Example:
        >>> summary = assemble_report(Path("template.docx"), Path("report.docx"))
        >>> print(summarize_run(summary))
    """
    document = TemplateDocument.load(input_path)
    summary = ReportAssembler(document, cfg).build()
    if output_path is not None:
        document.save(output_path)
    return summary
