"""Interfaces of the collaborators used by the graph builder.

Archive fetchers retrieve a module's packaged content, content resolvers
turn a required module into its manifest and license text, and license
classifiers label license text.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from gen_attributions.models import ManifestRoot, ModuleVersion, Requirement


@dataclass
class ModuleContent:
    """What a content resolver found for a required module.

    Attributes:
        manifest: The module's own manifest, or None when it has none. A
            module without a manifest is a leaf in the dependency graph.
        license_data: Raw license text, or None when no license file exists.
    """

    manifest: Optional[ManifestRoot] = None
    license_data: Optional[bytes] = None


class ArchiveFetcher(ABC):
    """Abstract base class for module archive retrieval."""

    @abstractmethod
    async def fetch(self, version: ModuleVersion) -> bytes:
        """Download the zip archive of a module version.

        Args:
            version: Module identity to fetch.

        Returns:
            Raw zip archive bytes.

        Raises:
            DownloadError: If the module cannot be downloaded.
        """
        ...

    async def close(self) -> None:
        """Release any open resources."""


class ContentResolver(ABC):
    """Abstract base class for module content resolution."""

    @abstractmethod
    async def resolve(
        self, parent: ManifestRoot, requirement: Requirement
    ) -> ModuleContent:
        """Find the manifest and license text of a required module.

        Args:
            parent: Manifest declaring the requirement; local replacement
                paths are resolved against its root directory.
            requirement: The required module and its replacement, if any.

        Returns:
            The module's manifest (if any) and license bytes (if any). A
            missing license may be reported as ``license_data=None``.

        Raises:
            FetchError: If the module content cannot be obtained.
            LicenseNotFoundError: If the module has no license; the manifest
                already read, if any, is attached to the error.
            ManifestParseError: If the module's manifest is malformed.
        """
        ...


class LicenseClassifier(ABC):
    """Abstract base class for license text classifiers."""

    @abstractmethod
    def classify(self, data: bytes) -> str:
        """Return a short label (e.g., "MIT") for a license text.

        Raises:
            ClassificationError: If the text is not recognized.
        """
        ...
