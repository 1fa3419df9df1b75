"""
Template evaluation pipeline.

Modular stages for table extraction, catalog building, section pruning,
chart insertion and placeholder substitution.
"""

from .table_extractor import extract_table, find_table
from .catalogs import (
    Range,
    SectionEntry,
    build_range_catalog,
    build_section_catalog,
    build_value_mapping,
    in_range,
    parse_number,
)
from .region_deleter import check_marker_fences, delete_region, region_query
from .section_evaluator import SectionDecision, SectionEvaluator, decide
from .placeholder_substitutor import substitute_placeholders
from .chart_inserter import ChartInserter, ChartResult

__all__ = [
    'extract_table',
    'find_table',
    'Range',
    'SectionEntry',
    'build_range_catalog',
    'build_section_catalog',
    'build_value_mapping',
    'in_range',
    'parse_number',
    'check_marker_fences',
    'delete_region',
    'region_query',
    'SectionDecision',
    'SectionEvaluator',
    'decide',
    'substitute_placeholders',
    'ChartInserter',
    'ChartResult',
]
