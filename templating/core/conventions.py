#!/usr/bin/env python3
"""
Text conventions shared by the template author and the engine.

Provides:
- TemplateConventions dataclass (table header labels, tag/marker/chart syntax)
- Helpers to recognise markers and chart placeholders and to build tags

Defaults match the documented authoring format; every value can be
overridden from the ``template:`` section of the YAML config.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.config import get_section


# ============================================================================
# CONVENTIONS
# ============================================================================
@dataclass(frozen=True)
class TemplateConventions:
    """
    Authoring conventions of a template document.

    Attributes:
        value_table_label: Header cell identifying the value table ("Tag")
        section_table_label: Header cell identifying the section table
        tag_prefix: First character of a value tag ("[")
        tag_suffix: Last character of a value tag ("]")
        marker_fence: Fence character around a section name ("#")
        chart_prefix: Prefix of a chart placeholder paragraph ("@")
    """
    value_table_label: str = "Tag"
    section_table_label: str = "Section Name"
    tag_prefix: str = "["
    tag_suffix: str = "]"
    marker_fence: str = "#"
    chart_prefix: str = "@"

    def __post_init__(self):
        """Validate configuration."""
        for name in ("value_table_label", "section_table_label", "tag_prefix",
                     "tag_suffix", "marker_fence", "chart_prefix"):
            if not getattr(self, name):
                raise ValueError(f"Template convention '{name}' cannot be empty")

    @classmethod
    def from_config(cls, cfg: Optional[Dict[str, Any]]) -> "TemplateConventions":
        """Build conventions from the ``template:`` config section."""
        section = get_section(cfg, "template")
        known = {k: str(v) for k, v in section.items()
                 if k in cls.__dataclass_fields__ and v is not None}
        return cls(**known)

    # ------------------------------------------------------------------
    # Recognisers
    # ------------------------------------------------------------------
    def is_marker(self, text: str) -> bool:
        """True if ``text`` (trimmed) is a section marker like ``#Name#``."""
        text = text.strip()
        fence = self.marker_fence
        return (len(text) > 2 * len(fence)
                and text.startswith(fence) and text.endswith(fence))

    def is_value_row(self, first_cell: str) -> bool:
        return first_cell.startswith(self.tag_prefix)

    def is_section_row(self, first_cell: str) -> bool:
        return first_cell.startswith(self.marker_fence)

    def canonical_tag(self, name: str) -> str:
        """Return ``name`` as a tag, adding the brackets when missing."""
        name = name.strip()
        if not name or (name.startswith(self.tag_prefix) and name.endswith(self.tag_suffix)):
            return name
        return f"{self.tag_prefix}{name}{self.tag_suffix}"

    def bare_name(self, tag: str) -> str:
        """Strip tag brackets: ``[Ferritin]`` → ``Ferritin``."""
        tag = tag.strip()
        if tag.startswith(self.tag_prefix) and tag.endswith(self.tag_suffix):
            return tag[len(self.tag_prefix):len(tag) - len(self.tag_suffix)]
        return tag

    def marker_name(self, marker: str) -> str:
        """Strip marker fences: ``#FerritinLow#`` → ``FerritinLow``."""
        fence = self.marker_fence
        marker = marker.strip()
        if self.is_marker(marker):
            return marker[len(fence):len(marker) - len(fence)]
        return marker

    def chart_placeholder(self, tag: str) -> str:
        """Chart placeholder text for a metric tag: ``[Ferritin]`` → ``@Ferritin``."""
        return f"{self.chart_prefix}{self.bare_name(tag)}"

    def is_chart_placeholder(self, text: str) -> bool:
        text = text.strip()
        return len(text) > len(self.chart_prefix) and text.startswith(self.chart_prefix) \
            and " " not in text


DEFAULT_CONVENTIONS = TemplateConventions()
