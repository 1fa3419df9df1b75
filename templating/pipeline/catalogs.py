#!/usr/bin/env python3
"""
Run-scoped catalogs built from the scaffolding tables.

Provides:
- parse_number(): locale-free numeric parse, NaN on malformed cells
- build_value_mapping(): Tag → Value from the value table
- build_section_catalog(): Marker → SectionEntry from the section table
- build_range_catalog(): MetricTag → ordered Ranges from the section table
- in_range(): inclusive, fail-closed range check

Row schemas:
    value table:   Tag | Value | Notes (optional)
    section table: Section Name | Metric Tag | Low | High | Label | Color

Rows whose first cell does not start with the expected prefix (headers,
blank rows, notes) are skipped silently.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from templating.core.conventions import DEFAULT_CONVENTIONS, TemplateConventions

LOGGER = logging.getLogger(__name__)

SECTION_COLUMNS = ["section", "metric", "low", "high", "label", "color"]

ValueMapping = Dict[str, str]


# ============================================================================
# DATA MODEL
# ============================================================================
@dataclass(frozen=True)
class SectionEntry:
    """
    One row of the section table, as used by the keep/delete decision.

    Attributes:
        marker: Section marker text (e.g. "#FerritinLow#")
        metric_tag: Value tag the section depends on (e.g. "[Ferritin]")
        low: Inclusive lower bound (NaN if malformed)
        high: Inclusive upper bound (NaN if malformed)
    """
    marker: str
    metric_tag: str
    low: float
    high: float


@dataclass(frozen=True)
class Range:
    """One labeled band of a metric's reference chart."""
    label: str
    low: float
    high: float
    color: str

    @property
    def width(self) -> float:
        return self.high - self.low

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.low) and math.isfinite(self.high)


# ============================================================================
# NUMERIC PARSING
# ============================================================================
def parse_number(raw: Optional[str]) -> float:
    """
    Parse a cell as a number without raising.

    Locale-free: "40", "4.5e1", "-3" parse; "4,5", "", "n/a" give NaN.

    Returns:
        float value, or NaN for anything that is not a number
    """
    if raw is None:
        return np.nan
    text = str(raw).strip()
    if not text:
        return np.nan
    return float(pd.to_numeric(text, errors="coerce"))


def in_range(value: float, low: float, high: float) -> bool:
    """
    Inclusive range check that fails closed.

    Any NaN among value/low/high makes the check False, so a malformed cell
    can never keep a section alive.
    """
    if np.isnan(value) or np.isnan(low) or np.isnan(high):
        return False
    return low <= value <= high


# ============================================================================
# BUILDERS
# ============================================================================
def _cell(row: Sequence[str], idx: int) -> str:
    return row[idx].strip() if idx < len(row) and row[idx] is not None else ""


def build_value_mapping(grid: Sequence[Sequence[str]],
                        conventions: TemplateConventions = DEFAULT_CONVENTIONS) -> ValueMapping:
    """
    Build Tag → Value from the value table grid.

    Keys and values are trimmed; a missing value cell maps to "".
    Later duplicate tags overwrite earlier ones.
    """
    mapping: ValueMapping = {}
    for row in grid:
        key = _cell(row, 0)
        if not conventions.is_value_row(key):
            continue
        if key in mapping:
            LOGGER.debug("Duplicate tag %s: later row wins", key)
        mapping[key] = _cell(row, 1)
    LOGGER.info("Value mapping: %d tag(s)", len(mapping))
    return mapping


def _section_frame(grid: Sequence[Sequence[str]],
                   conventions: TemplateConventions) -> pd.DataFrame:
    rows = [[_cell(row, i) for i in range(len(SECTION_COLUMNS))]
            for row in grid if conventions.is_section_row(_cell(row, 0))]
    df = pd.DataFrame(rows, columns=SECTION_COLUMNS)
    df["metric"] = df["metric"].map(conventions.canonical_tag)
    df["low"] = df["low"].map(parse_number).astype(float)
    df["high"] = df["high"].map(parse_number).astype(float)
    return df


def build_section_catalog(grid: Sequence[Sequence[str]],
                          conventions: TemplateConventions = DEFAULT_CONVENTIONS
                          ) -> Dict[str, SectionEntry]:
    """
    Build Marker → SectionEntry from the section table grid.

    Malformed Low/High cells become NaN (the section then never qualifies).
    """
    df = _section_frame(grid, conventions)
    catalog: Dict[str, SectionEntry] = {}
    for rec in df.itertuples(index=False):
        if np.isnan(rec.low) or np.isnan(rec.high):
            LOGGER.warning("Section %s has a malformed bound (low=%s, high=%s)",
                           rec.section, rec.low, rec.high)
        catalog[rec.section] = SectionEntry(rec.section, rec.metric, rec.low, rec.high)
    LOGGER.info("Section catalog: %d section(s)", len(catalog))
    return catalog


def build_range_catalog(grid: Sequence[Sequence[str]],
                        conventions: TemplateConventions = DEFAULT_CONVENTIONS
                        ) -> Dict[str, List[Range]]:
    """
    Build MetricTag → Ranges from the section table grid.

    Ranges are ordered by ascending Low, then High; rows with equal bounds
    keep table order and ranges with a NaN bound go last. A missing Label
    defaults to the section name without its fences.
    """
    df = _section_frame(grid, conventions)
    catalog: Dict[str, List[Range]] = {}
    if df.empty:
        return catalog

    df["label"] = [label or conventions.marker_name(section)
                   for label, section in zip(df["label"], df["section"])]
    df = df.sort_values(["low", "high"], kind="mergesort", na_position="last")

    for metric, group in df.groupby("metric", sort=False):
        if not metric:
            continue
        catalog[metric] = [Range(rec.label, rec.low, rec.high, rec.color)
                           for rec in group.itertuples(index=False)]
    LOGGER.info("Range catalog: %d metric(s)", len(catalog))
    return catalog
