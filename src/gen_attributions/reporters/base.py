"""Base interface for output reporters.

Reporters generate formatted output (Markdown, plain text...) from a
resolved dependency tree.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from gen_attributions.models import AttributionsFile


class BaseReporter(ABC):
    """Abstract base class for output reporters.

    Reporters take an attributions file (header plus dependency tree) and
    generate formatted output documents.
    """

    @abstractmethod
    def render(self, attributions: AttributionsFile) -> str:
        """Render attributions to formatted output.

        Args:
            attributions: Header and resolved dependency tree.

        Returns:
            Rendered output as a string.
        """
        ...

    def write(self, attributions: AttributionsFile, output_path: Path) -> None:
        """Render and write output to a file.

        Args:
            attributions: Header and resolved dependency tree.
            output_path: Path to write the output file.
        """
        content = self.render(attributions)
        output_path.write_text(content, encoding="utf-8")
