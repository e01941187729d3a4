"""Errors raised while building a dependency graph.

Fatal errors abort the whole build. In lenient mode the graph builder turns
fetch failures and missing licenses into warnings plus placeholder data;
a missing manifest is always tolerated and makes the module a leaf.
"""

from typing import Optional

from gen_attributions.models import ManifestRoot, ModuleVersion


class AttributionError(Exception):
    """Base class for errors carrying the offending module identity.

    Attributes:
        module: The module being resolved when the error occurred, if known.
    """

    default_message = "attribution error"

    def __init__(
        self,
        message: Optional[str] = None,
        module: Optional[ModuleVersion] = None,
    ) -> None:
        self.message = message or self.default_message
        self.module = module
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.module is None:
            return self.message
        return f"{self.module}: {self.message}"

    def with_module(self, module: ModuleVersion) -> "AttributionError":
        """Attach a module identity if none is set yet and return self."""
        if self.module is None:
            self.module = module
            self.args = (str(self),)
        return self


class ManifestNotFoundError(AttributionError):
    """A manifest file does not exist.

    Content resolvers report a module without manifest by returning no
    manifest rather than raising; the module then becomes a leaf.
    """

    default_message = "module file (go.mod) not found"


class ManifestParseError(AttributionError):
    default_message = "malformed module file (go.mod)"


class LicenseNotFoundError(AttributionError):
    """A module has no license file.

    Attributes:
        manifest: The module's manifest when it was read before the license
            was found missing, so that its requirements can still be expanded.
    """

    default_message = "LICENSE file not found"

    def __init__(
        self,
        message: Optional[str] = None,
        module: Optional[ModuleVersion] = None,
        manifest: Optional[ManifestRoot] = None,
    ) -> None:
        self.manifest = manifest
        super().__init__(message, module)


class ClassificationError(AttributionError):
    default_message = "license text could not be classified"


class FetchError(AttributionError):
    """The content of a module could not be obtained."""

    default_message = "cannot fetch module content"


class DownloadError(FetchError):
    default_message = "module download failed"


class LocalReplacementError(FetchError):
    default_message = "local replacement directory cannot be read"


class CyclicDependencyError(AttributionError):
    """A module requires itself through its own dependencies.

    Attributes:
        cycle: Module ids along the cycle, first and last being the same.
    """

    default_message = "cyclic dependency"

    def __init__(
        self,
        cycle: list[str],
        module: Optional[ModuleVersion] = None,
    ) -> None:
        self.cycle = cycle
        super().__init__(f"cyclic dependency: {' -> '.join(cycle)}", module)
