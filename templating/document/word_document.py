#!/usr/bin/env python3
"""
Template document adapter over python-docx.

The pipeline never touches python-docx directly; it goes through
TemplateDocument, which offers the handful of operations the engine needs:

- paragraph enumeration in document order (body and table cells), with a
  stable snapshot until the next sync() barrier
- table lookup and cell grids
- run-aware text replacement
- wildcard search and search-and-delete over the body text
- picture insertion after a paragraph, paragraph/table deletion
- load/save

Every mutation is applied to the underlying document immediately; callers
issue sync() after mutating so that later reads see a fresh snapshot.
"""
from __future__ import annotations

import io
import logging
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Union

import docx
from docx.document import Document as DocxDocument
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches
from docx.table import Table, _Cell
from docx.text.paragraph import Paragraph

from templating.core.errors import DocumentError
from templating.document.wildcards import BodyIndex, TextMatch

LOGGER = logging.getLogger(__name__)

TableGrid = List[List[str]]


# ============================================================================
# PARAGRAPH REFERENCE
# ============================================================================
@dataclass(frozen=True)
class ParagraphRef:
    """
    A paragraph as seen in one snapshot.

    Attributes:
        index: Position in the snapshot (document order)
        paragraph: python-docx Paragraph
        table: Enclosing top-level table, or None for body paragraphs
    """
    index: int
    paragraph: Paragraph
    table: Optional[Table] = None

    @property
    def text(self) -> str:
        return self.paragraph.text

    @property
    def in_table(self) -> bool:
        return self.table is not None


# ============================================================================
# RUN-AWARE TEXT EDITING
# ============================================================================
def replace_span(paragraph: Paragraph, start: int, end: int, replacement: str = "") -> None:
    """
    Replace ``paragraph.text[start:end]`` keeping the formatting of the runs.

    The replacement takes the formatting of the run where the span starts;
    runs fully inside the span are emptied. When the runs do not add up to
    the paragraph text (hyperlinks, fields) the paragraph is rewritten as a
    single run.
    """
    text = paragraph.text
    if not 0 <= start <= end <= len(text):
        raise ValueError(f"Span [{start}, {end}) outside paragraph of length {len(text)}")

    runs = paragraph.runs
    if "".join(r.text for r in runs) != text or not runs:
        paragraph.text = text[:start] + replacement + text[end:]
        return

    offset = 0
    first = None
    for run in runs:
        run_text = run.text
        r_start, r_end = offset, offset + len(run_text)
        offset = r_end
        if first is None:
            if start < r_end or (start == r_end == end and run is runs[-1]):
                first = run
                head = run_text[:start - r_start]
                if end <= r_end:
                    run.text = head + replacement + run_text[end - r_start:]
                    return
                run.text = head + replacement
            continue
        if end >= r_end:
            run.text = ""
        else:
            run.text = run_text[end - r_start:]
            return


def _remove_element(element) -> None:
    parent = element.getparent()
    if parent is not None:
        parent.remove(element)


# ============================================================================
# TEMPLATE DOCUMENT
# ============================================================================
class TemplateDocument:
    """
    Mutable template document with an explicit sync() barrier.

    Example:
        >>> doc = TemplateDocument.load(Path("template.docx"))
        >>> for ref in doc.paragraphs():
        ...     print(ref.index, ref.in_table, ref.text)
        >>> doc.save(Path("report.docx"))
    """

    def __init__(self, document: DocxDocument, source: Optional[Path] = None):
        self._doc = document
        self.source = Path(source) if source else None
        self._snapshot: Optional[List[ParagraphRef]] = None
        self.barriers = 0

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------
    @classmethod
    def load(cls, path: Union[str, Path]) -> "TemplateDocument":
        """Open a .docx file; raises DocumentError when it cannot be read."""
        path = Path(path)
        if not path.exists():
            raise DocumentError(f"Template not found: {path}")
        try:
            document = docx.Document(str(path))
        except Exception as e:
            raise DocumentError(f"Cannot open template {path}: {e}") from e
        LOGGER.info("Loaded template: %s", path)
        return cls(document, source=path)

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._doc.save(str(path))
        except Exception as e:
            raise DocumentError(f"Cannot save report {path}: {e}") from e
        LOGGER.info("Saved report: %s", path)
        return path

    @property
    def docx(self) -> DocxDocument:
        """Underlying python-docx document."""
        return self._doc

    # ------------------------------------------------------------------
    # Barrier
    # ------------------------------------------------------------------
    def sync(self) -> None:
        """Commit pending changes: the next read re-enumerates the body."""
        self._snapshot = None
        self.barriers += 1
        LOGGER.debug("sync #%d", self.barriers)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def paragraphs(self) -> List[ParagraphRef]:
        """All paragraphs in document order, stable until the next sync()."""
        if self._snapshot is None:
            self._snapshot = [ParagraphRef(i, p, t)
                              for i, (p, t) in enumerate(self._iter_paragraphs())]
        return self._snapshot

    def body_paragraphs(self) -> List[ParagraphRef]:
        return [ref for ref in self.paragraphs() if not ref.in_table]

    def tables(self) -> List[Table]:
        return list(self._doc.tables)

    def table_values(self, table: Table) -> TableGrid:
        """Cell grid of a table (merged cells repeat their text)."""
        try:
            return [[cell.text for cell in row.cells] for row in table.rows]
        except Exception as e:
            raise DocumentError(f"Cannot read table values: {e}") from e

    def body_index(self) -> BodyIndex:
        blocks = []
        for block in self._doc.iter_inner_content():
            if isinstance(block, Table):
                blocks.append((block, "", True))
            else:
                blocks.append((block, block.text, False))
        return BodyIndex(blocks)

    def search(self, query: str) -> List[TextMatch]:
        """Wildcard search over the body text (see templating.document.wildcards)."""
        return self.body_index().search(query)

    def preceding_paragraph(self, table: Table) -> Optional[Paragraph]:
        """Nearest non-empty body paragraph right before ``table``, if any."""
        element = table._tbl.getprevious()
        while element is not None:
            if element.tag == qn("w:tbl"):
                return None
            if element.tag == qn("w:p"):
                paragraph = Paragraph(element, table._parent)
                if paragraph.text.strip():
                    return paragraph
            element = element.getprevious()
        return None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def search_and_delete(self, query: str) -> int:
        """
        Delete every match of a wildcard query.

        Returns:
            Number of matches deleted (0 when nothing matches)
        """
        index = self.body_index()
        matches = index.search(query)
        if not matches:
            return 0
        plan = index.plan_deletion(matches)
        for idx, cuts in plan.cuts.items():
            paragraph = index.spans[idx].block
            for start, end in cuts:
                replace_span(paragraph, start, end)
        for block in plan.remove:
            _remove_element(block._element)
        LOGGER.debug("Deleted %d match(es) of %r: %d block(s) removed, %d trimmed",
                     len(matches), query, len(plan.remove), len(plan.cuts))
        return len(matches)

    def replace_first(self, paragraph: Paragraph, old: str, new: str) -> bool:
        """Replace the first occurrence of ``old`` in a paragraph."""
        pos = paragraph.text.find(old)
        if pos < 0:
            return False
        replace_span(paragraph, pos, pos + len(old), new)
        return True

    def delete_paragraph(self, paragraph: Paragraph) -> None:
        _remove_element(paragraph._element)

    def delete_table(self, table: Table) -> None:
        _remove_element(table._tbl)

    def insert_picture_after(self, paragraph: Paragraph, image: bytes,
                             width_in: Optional[float] = None) -> Paragraph:
        """
        Insert a new paragraph holding a picture right after ``paragraph``.

        The new paragraph copies the paragraph properties (alignment, style)
        of the anchor. It is attached only once the picture is in place, so
        an unreadable image leaves the document untouched.
        """
        new_p = OxmlElement("w:p")
        if paragraph._p.pPr is not None:
            new_p.append(deepcopy(paragraph._p.pPr))
        new_paragraph = Paragraph(new_p, paragraph._parent)
        width = Inches(width_in) if width_in else None
        new_paragraph.add_run().add_picture(io.BytesIO(image), width=width)
        paragraph._p.addnext(new_p)
        return new_paragraph

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _iter_paragraphs(self) -> Iterator[tuple]:
        for block in self._doc.iter_inner_content():
            if isinstance(block, Table):
                for paragraph in _table_paragraphs(block):
                    yield paragraph, block
            else:
                yield block, None


def _table_paragraphs(table: Table) -> Iterator[Paragraph]:
    # Walk the XML cells so a merged cell is visited once.
    for tr in table._tbl.tr_lst:
        for tc in tr.tc_lst:
            cell = _Cell(tc, table)
            yield from cell.paragraphs
            for nested in cell.tables:
                yield from _table_paragraphs(nested)


def wrap(document: DocxDocument) -> TemplateDocument:
    """Wrap an in-memory python-docx document."""
    return TemplateDocument(document)


__all__ = ["TemplateDocument", "ParagraphRef", "TableGrid", "replace_span", "wrap"]
