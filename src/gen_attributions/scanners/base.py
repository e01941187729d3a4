"""Base interface for manifest scanners.

Scanners read a module's dependency declaration and turn it into a
:class:`~gen_attributions.models.ManifestRoot`, either from a file on disk
or from bytes extracted out of a downloaded module archive.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from gen_attributions.errors import ManifestNotFoundError
from gen_attributions.models import ManifestRoot


class BaseScanner(ABC):
    """Abstract base class for manifest scanners.

    Attributes:
        source_path: Optional path to the manifest file being scanned.
    """

    def __init__(self, source_path: Optional[Path] = None) -> None:
        """Initialize the scanner.

        Args:
            source_path: Optional path to the manifest file.
        """
        self.source_path = source_path

    def scan(self) -> ManifestRoot:
        """Read and parse the manifest file at ``source_path``.

        The directory containing the file becomes the manifest's root, so
        that local replacement paths can be resolved against it.

        Returns:
            The parsed manifest and its root directory.

        Raises:
            ManifestNotFoundError: If the source file does not exist.
            ValueError: If source_path is not set.
            ManifestParseError: If the manifest is malformed.
        """
        if self.source_path is None:
            raise ValueError("source_path must be set before calling scan()")

        if not self.source_path.is_file():
            raise ManifestNotFoundError(
                f"{self.source_name} file not found: {self.source_path}"
            )

        data = self.source_path.read_bytes()
        return self.parse(data, root_path=self.source_path.resolve().parent)

    @abstractmethod
    def parse(self, data: bytes, root_path: Optional[Path] = None) -> ManifestRoot:
        """Parse manifest content.

        Args:
            data: Raw manifest bytes.
            root_path: Directory the manifest belongs to, if on disk.

        Returns:
            The parsed manifest and its root directory.

        Raises:
            ManifestParseError: If the manifest is malformed.
        """
        ...

    @classmethod
    @abstractmethod
    def can_handle(cls, path: Path) -> bool:
        """Check if this scanner can handle the given file.

        Args:
            path: Path to check.

        Returns:
            True if this scanner can process the file, False otherwise.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return a human-readable name for this scanner's source type.

        Returns:
            Name like "go.mod".
        """
        ...
