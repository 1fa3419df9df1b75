#!/usr/bin/env python3
"""
Word-style wildcard search over the document body.

Provides:
- translate_wildcards(): Word wildcard query → compiled regex
- BodyIndex: flat text view of the body blocks, with offsets back to blocks
- TextMatch / DeletionPlan: search results and what deleting them means

The body text is the concatenation of every top-level block, each followed
by a paragraph mark (``\\r``). A table contributes a single cell mark
(``\\x07``) so a wildcard can span over it but never match inside it. The
text starts with a synthetic paragraph mark, so the first paragraph is
preceded by a break like every other one.

Supported wildcard syntax::

    *        any run of characters (longest match)
    ?        exactly one character
    [abc]    one of; [a-z] ranges; [!abc] none of; ^t inside is a tab
    {n} {n,} {n,m}   repeat previous item (';' accepted for ',')
    @        one or more of previous item
    < >      start / end of word
    ( )      grouping
    \\x      literal x
    ^13 ^p   paragraph mark;  ^t tab;  ^^ literal caret
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence, Tuple

PARAGRAPH_MARK = "\r"
CELL_MARK = "\x07"


# ============================================================================
# QUERY TRANSLATION
# ============================================================================
def _translate_class(body: str) -> str:
    negate = body.startswith("!")
    if negate:
        body = body[1:]
    if not body:
        raise ValueError("Empty character class in wildcard query")
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if body.startswith("^t", i):
            out.append(r"\t")
            i += 2
            continue
        if ch == "-" and 0 < i < len(body) - 1:
            out.append("-")
        else:
            out.append(re.escape(ch))
        i += 1
    return "[" + ("^" if negate else "") + "".join(out) + "]"


def translate_wildcards(query: str) -> re.Pattern:
    """
    Compile a Word wildcard query into a regular expression.

    Args:
        query: Wildcard query (e.g. ``^13[#]Intro[#]*[#]Intro[#]``)

    Returns:
        Compiled pattern (DOTALL, so ``*`` spans paragraph marks)

    Raises:
        ValueError: On an unterminated ``[``/``{`` or an empty class
    """
    if not query:
        raise ValueError("Empty wildcard query")

    parts: List[str] = []
    i = 0
    n = len(query)
    while i < n:
        ch = query[i]
        if ch == "\\":
            if i + 1 >= n:
                raise ValueError("Dangling escape at end of wildcard query")
            parts.append(re.escape(query[i + 1]))
            i += 2
        elif ch == "^":
            if query.startswith("^13", i):
                parts.append(re.escape(PARAGRAPH_MARK))
                i += 3
            elif query.startswith("^p", i):
                parts.append(re.escape(PARAGRAPH_MARK))
                i += 2
            elif query.startswith("^t", i):
                parts.append(r"\t")
                i += 2
            elif query.startswith("^^", i):
                parts.append(r"\^")
                i += 2
            else:
                parts.append(r"\^")
                i += 1
        elif ch == "[":
            close = query.find("]", i + 2)
            if close < 0:
                raise ValueError(f"Unterminated '[' in wildcard query: {query!r}")
            parts.append(_translate_class(query[i + 1:close]))
            i = close + 1
        elif ch == "{":
            close = query.find("}", i)
            if close < 0:
                raise ValueError(f"Unterminated '{{' in wildcard query: {query!r}")
            count = query[i + 1:close].replace(";", ",").replace(" ", "")
            if not re.fullmatch(r"\d+(,\d*)?", count):
                raise ValueError(f"Bad repeat count '{{{count}}}' in wildcard query")
            parts.append("{" + count + "}")
            i = close + 1
        elif ch == "*":
            parts.append(".*")
            i += 1
        elif ch == "?":
            parts.append(".")
            i += 1
        elif ch == "@":
            parts.append("+")
            i += 1
        elif ch == "<":
            parts.append(r"\b(?=\w)")
            i += 1
        elif ch == ">":
            parts.append(r"\b(?<=\w)")
            i += 1
        elif ch in "()":
            parts.append(ch)
            i += 1
        else:
            parts.append(re.escape(ch))
            i += 1
    return re.compile("".join(parts), re.DOTALL)


# ============================================================================
# BODY INDEX
# ============================================================================
@dataclass(frozen=True)
class TextMatch:
    """One search hit, as offsets into BodyIndex.text."""
    start: int
    end: int
    text: str


@dataclass
class BlockSpan:
    """Offsets of one block's text; its paragraph mark sits at ``end``."""
    block: Any
    start: int
    end: int
    is_table: bool = False


@dataclass
class DeletionPlan:
    """
    Effect of deleting a set of matches.

    Attributes:
        remove: Blocks to drop entirely (document order)
        cuts: Paragraph block index → list of (start, end) local text cuts
    """
    remove: List[Any] = field(default_factory=list)
    cuts: Dict[int, List[Tuple[int, int]]] = field(default_factory=dict)


class BodyIndex:
    """
    Flat, searchable text view of the body.

    Built from ``(block, text, is_table)`` triples in document order.
    """

    def __init__(self, blocks: Iterable[Tuple[Any, str, bool]]):
        pieces = [PARAGRAPH_MARK]
        self.spans: List[BlockSpan] = []
        offset = 1
        for block, text, is_table in blocks:
            text = CELL_MARK if is_table else (text or "")
            self.spans.append(BlockSpan(block, offset, offset + len(text), is_table))
            pieces.append(text)
            pieces.append(PARAGRAPH_MARK)
            offset += len(text) + 1
        self.text = "".join(pieces)

    def search(self, query: str) -> List[TextMatch]:
        """Return all non-overlapping matches of a wildcard query."""
        pattern = translate_wildcards(query)
        return [TextMatch(m.start(), m.end(), m.group(0))
                for m in pattern.finditer(self.text) if m.end() > m.start()]

    def plan_deletion(self, matches: Sequence[TextMatch]) -> DeletionPlan:
        """
        Work out which blocks disappear and which paragraphs get trimmed.

        A block is removed when its whole text and the paragraph break
        before it are inside a match. A table is removed as soon as a match
        touches its cell mark. Anything else that overlaps a match has the
        overlapping characters cut, unless only whitespace would be left,
        in which case the paragraph goes too.
        """
        removed = set()
        cuts: Dict[int, List[Tuple[int, int]]] = {}
        for match in matches:
            s, e = match.start, match.end
            for idx, span in enumerate(self.spans):
                if span.end < s or span.start > e:
                    continue
                lo, hi = max(s, span.start), min(e, span.end)
                whole = s <= span.start - 1 and span.end <= e
                if whole or (span.is_table and hi > lo):
                    removed.add(idx)
                elif hi > lo:
                    cuts.setdefault(idx, []).append((lo - span.start, hi - span.start))

        for idx in list(cuts):
            if idx in removed:
                del cuts[idx]
            elif not self._remainder(idx, cuts[idx]).strip():
                removed.add(idx)
                del cuts[idx]
        for local in cuts.values():
            local.sort(reverse=True)
        return DeletionPlan(remove=[self.spans[i].block for i in sorted(removed)], cuts=cuts)

    def _remainder(self, idx: int, local: Sequence[Tuple[int, int]]) -> str:
        span = self.spans[idx]
        text = self.text[span.start:span.end]
        kept, pos = [], 0
        for start, end in sorted(local):
            kept.append(text[pos:start])
            pos = end
        kept.append(text[pos:])
        return "".join(kept)
