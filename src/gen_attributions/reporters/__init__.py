"""Output reporters for generating attribution documents.

This module provides reporters for rendering a resolved dependency tree
to various output formats.
"""

from gen_attributions.reporters.base import BaseReporter
from gen_attributions.reporters.markdown import DEFAULT_HEADER, MarkdownReporter

__all__ = ["BaseReporter", "DEFAULT_HEADER", "MarkdownReporter"]
