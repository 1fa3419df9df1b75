#!/usr/bin/env python3
"""
Error taxonomy for the templating pipeline.

Fatal errors (abort the run, document left as the last barrier left it):
- NotFoundError: a required table or paragraph is missing
- DocumentError: the host document could not be loaded or saved
- MalformedTemplateError: marker fences violate the template rules (strict mode)

Recoverable:
- RenderFailure: one chart could not be rendered; the chart is skipped

A disqualified section is not an error: it is a normal SectionDecision.
Malformed numeric cells never raise either; they become NaN.
"""


class TemplateError(Exception):
    """Base class for all templating errors."""


class NotFoundError(TemplateError):
    """A required table or paragraph is not present in the document."""

    def __init__(self, what: str, label: str):
        super().__init__(f"{what} not found: '{label}'")
        self.what = what
        self.label = label


class DocumentError(TemplateError):
    """The host document failed to load, save or commit."""


class MalformedTemplateError(TemplateError):
    """Section markers do not form well-formed open/close fences."""


class RenderFailure(TemplateError):
    """Chart rendering failed for a single metric."""

    def __init__(self, metric_tag: str, reason: str):
        super().__init__(f"Chart rendering failed for {metric_tag}: {reason}")
        self.metric_tag = metric_tag
        self.reason = reason
