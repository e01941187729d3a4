"""Content resolver for required modules.

Produces, for a required module, its own manifest (so that its requirements
can be expanded) and its raw license text. Modules with a local replacement
are read straight from disk; every other module is downloaded as a zip
archive and searched for its go.mod and license files.
"""

import io
import logging
import zipfile
from pathlib import Path
from typing import Optional

from gen_attributions.errors import DownloadError, LocalReplacementError
from gen_attributions.models import (
    LocalReplacement,
    ManifestRoot,
    ModuleVersion,
    RemoteReplacement,
    Requirement,
)
from gen_attributions.resolvers.base import (
    ArchiveFetcher,
    ContentResolver,
    ModuleContent,
)
from gen_attributions.scanners.base import BaseScanner
from gen_attributions.scanners.gomod import GoModScanner

logger = logging.getLogger(__name__)

# Lower-cased file names taken to hold a module's license
LICENSE_FILENAMES = frozenset({"license", "license.txt", "license.md", "copying"})


def is_license_filename(filename: str) -> bool:
    """Return True if a top-level file name most likely holds a license."""
    return filename.lower() in LICENSE_FILENAMES


class ModuleContentResolver(ContentResolver):
    """Resolves module content from local replacements or module archives.

    Attributes:
        fetcher: Archive fetcher used for modules without a local replacement.
        scanner: Scanner used to parse the go.mod files found.
    """

    def __init__(
        self,
        fetcher: ArchiveFetcher,
        scanner: Optional[BaseScanner] = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            fetcher: Archive fetcher for registry modules.
            scanner: Manifest scanner. Defaults to a GoModScanner.
        """
        self.fetcher = fetcher
        self.scanner = scanner or GoModScanner()

    async def resolve(
        self, parent: ManifestRoot, requirement: Requirement
    ) -> ModuleContent:
        """Find the manifest and license text of a required module.

        A local replacement is read from disk, relative to the parent
        manifest's directory. A remote replacement is downloaded in place of
        the required module; anything else is downloaded as required.

        Args:
            parent: Manifest declaring the requirement.
            requirement: The required module and its replacement, if any.

        Returns:
            The module's manifest and license bytes, either possibly None.

        Raises:
            LocalReplacementError: If a local replacement cannot be read.
            DownloadError: If the archive cannot be downloaded or opened.
            ManifestParseError: If the module's go.mod is malformed.
        """
        replaced_by = requirement.replaced_by
        if isinstance(replaced_by, LocalReplacement):
            return self._resolve_local(parent, replaced_by)
        if isinstance(replaced_by, RemoteReplacement):
            return await self._resolve_remote(replaced_by.version)
        return await self._resolve_remote(requirement.version)

    def _resolve_local(
        self, parent: ManifestRoot, replacement: LocalReplacement
    ) -> ModuleContent:
        if parent.root_path is None:
            raise LocalReplacementError(
                f"cannot locate {replacement.path}: declaring manifest has no directory"
            )

        directory = (parent.root_path / replacement.path).resolve()
        logger.debug("Looking at %s", directory)

        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            raise LocalReplacementError(f"cannot list {directory}: {e}") from e

        license_data: Optional[bytes] = None
        manifest_path: Optional[Path] = None
        for entry in entries:
            if not entry.is_file():
                continue
            if license_data is None and is_license_filename(entry.name):
                try:
                    license_data = entry.read_bytes()
                except OSError as e:
                    raise LocalReplacementError(f"cannot read {entry}: {e}") from e
            elif entry.name == GoModScanner.FILENAME:
                manifest_path = entry

        if manifest_path is None:
            logger.debug("No go.mod in %s, treating it as a leaf", directory)
            return ModuleContent(manifest=None, license_data=license_data)

        try:
            data = manifest_path.read_bytes()
        except OSError as e:
            raise LocalReplacementError(f"cannot read {manifest_path}: {e}") from e

        return ModuleContent(
            manifest=self.scanner.parse(data, root_path=directory),
            license_data=license_data,
        )

    async def _resolve_remote(self, version: ModuleVersion) -> ModuleContent:
        logger.debug("Downloading %s content", version)
        archive = await self.fetcher.fetch(version)

        try:
            zip_file = zipfile.ZipFile(io.BytesIO(archive))
        except zipfile.BadZipFile as e:
            raise DownloadError(f"invalid module archive: {e}", version) from e

        prefixes = _archive_prefixes(version)
        license_data: Optional[bytes] = None
        manifest_data: Optional[bytes] = None

        with zip_file:
            for info in zip_file.infolist():
                if info.is_dir():
                    continue
                relative = _strip_prefix(info.filename, prefixes)
                if relative is None:
                    continue
                if license_data is None and _is_top_level_license(relative):
                    license_data = zip_file.read(info)
                elif manifest_data is None and relative == "/go.mod":
                    manifest_data = zip_file.read(info)

        if license_data is None:
            logger.debug("No license file in %s archive", version)

        if manifest_data is None:
            logger.debug("No go.mod in %s archive, treating it as a leaf", version)
            return ModuleContent(manifest=None, license_data=license_data)

        return ModuleContent(
            manifest=self.scanner.parse(manifest_data),
            license_data=license_data,
        )


def _archive_prefixes(version: ModuleVersion) -> tuple[str, ...]:
    """Return the entry name prefixes a module archive may use."""
    full_name = str(version)
    lowered = full_name.lower()
    if lowered == full_name:
        return (full_name,)
    return (full_name, lowered)


def _is_top_level_license(relative: str) -> bool:
    return (
        relative.startswith("/")
        and relative.count("/") == 1
        and is_license_filename(relative[1:])
    )


def _strip_prefix(name: str, prefixes: tuple[str, ...]) -> Optional[str]:
    for prefix in prefixes:
        if name.startswith(prefix):
            return name[len(prefix) :]
    return None
