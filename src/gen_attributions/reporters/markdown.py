"""Markdown reporter for generating ATTRIBUTION.md files.

This module provides a reporter that renders a dependency tree and the
license text of every module in it using Jinja2 templates.
"""

from datetime import datetime
from importlib.resources import files
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, Template

from gen_attributions.models import AttributionsFile
from gen_attributions.reporters.base import BaseReporter
from gen_attributions.resolvers.spdx import UNKNOWN_LICENSE, spdx_name, spdx_url

DEFAULT_HEADER = "# Open Source Software Attribution"


class MarkdownReporter(BaseReporter):
    """Reporter that generates Markdown attribution files.

    Attributes:
        template: The Jinja2 template to use for rendering.
    """

    def __init__(self, template_path: Optional[Path] = None) -> None:
        """Initialize the Markdown reporter.

        Args:
            template_path: Optional path to a custom Jinja2 template.
                If not provided, uses the default bundled template.
        """
        if template_path:
            env = Environment(
                loader=FileSystemLoader(template_path.parent),
                autoescape=False,
                keep_trailing_newline=True,
            )
            self.template = env.get_template(template_path.name)
        else:
            self.template = self._load_default_template()

    def _load_default_template(self) -> Template:
        """Load the default bundled Jinja2 template."""
        template_content = (
            files("gen_attributions.templates")
            .joinpath("attributions.md.j2")
            .read_text(encoding="utf-8")
        )
        env = Environment(autoescape=False, keep_trailing_newline=True)
        return env.from_string(template_content)

    def render(self, attributions: AttributionsFile) -> str:
        """Render attributions to Markdown.

        The template receives the header, the text tree, one entry per
        licensed module (first-seen order, deduplicated) and the subset of
        those whose license is unknown.

        Args:
            attributions: Header and resolved dependency tree.

        Returns:
            Rendered Markdown document as a string.
        """
        tree = attributions.tree
        modules = [
            self._module_context(node.module_id, node.license.name, node.license.text)
            for node in tree.unique_modules()
            if node.license is not None
        ]

        return self.template.render(
            header=attributions.header or DEFAULT_HEADER,
            root=tree.root.version.path,
            tree_text=tree.render(),
            modules=modules,
            unknown=[m for m in modules if m["license"] == UNKNOWN_LICENSE],
            generated_at=datetime.now(),
        )

    @staticmethod
    def _module_context(module_id: str, license_name: str, text: str) -> dict[str, Any]:
        return {
            "id": module_id,
            "license": license_name,
            "name": spdx_name(license_name),
            "url": spdx_url(license_name),
            "text": text,
        }
