"""
Document layer: python-docx adapter and wildcard search.
"""

from .word_document import TemplateDocument, ParagraphRef, TableGrid, replace_span, wrap
from .wildcards import BodyIndex, TextMatch, translate_wildcards

__all__ = [
    'TemplateDocument',
    'ParagraphRef',
    'TableGrid',
    'replace_span',
    'wrap',
    'BodyIndex',
    'TextMatch',
    'translate_wildcards',
]
