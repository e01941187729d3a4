"""Core data models for gen_attributions.

This module defines the fundamental data structures used throughout the
attribution generator: module identities, replacements, parsed manifests,
license records and the resolved dependency tree.
"""

import io
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional, Union

from rich.console import Console
from rich.text import Text
from rich.tree import Tree


@dataclass(frozen=True)
class ModuleVersion:
    """Immutable identity of a published Go module.

    Frozen for hashability to enable use as dictionary keys.

    Attributes:
        path: Module path (e.g., "github.com/sirupsen/logrus").
        version: Exact version string (e.g., "v1.9.3"). Empty for the main
            module and for path-wide replace directives.
    """

    path: str
    version: str = ""

    def __str__(self) -> str:
        if not self.version:
            return self.path
        return f"{self.path}@{self.version}"


@dataclass(frozen=True)
class LocalReplacement:
    """Replacement pointing at a directory on the local filesystem.

    Attributes:
        path: Directory, relative to the manifest declaring the replacement
            unless absolute.
    """

    path: str

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class RemoteReplacement:
    """Replacement pointing at another published module."""

    version: ModuleVersion

    def __str__(self) -> str:
        return str(self.version)


Replacement = Union[LocalReplacement, RemoteReplacement]


@dataclass
class Manifest:
    """Parsed content of a go.mod file.

    Attributes:
        module: Identity declared by the ``module`` directive.
        requires: Required modules in declaration order.
        replaces: Replace directives keyed by the replaced identity. A key
            with an empty version applies to every version of that path.
    """

    module: ModuleVersion
    requires: list[ModuleVersion] = field(default_factory=list)
    replaces: dict[ModuleVersion, Replacement] = field(default_factory=dict)

    def replacement_for(self, version: ModuleVersion) -> Optional[Replacement]:
        """Return the replacement applying to a required module, if any.

        An exact ``path@version`` directive wins over a path-wide one.
        """
        exact = self.replaces.get(version)
        if exact is not None:
            return exact
        return self.replaces.get(ModuleVersion(version.path))


@dataclass
class ManifestRoot:
    """A manifest together with the directory it was loaded from.

    Attributes:
        manifest: The parsed manifest.
        root_path: Directory holding the go.mod file. None when the manifest
            was extracted from a downloaded archive.
    """

    manifest: Manifest
    root_path: Optional[Path] = None

    def requirements(self) -> list["Requirement"]:
        """Return the required modules with their effective replacements.

        Local replacements declared by a manifest without a root directory
        cannot be located and are ignored, as the go command does for
        replace directives outside the main module.
        """
        requirements = []
        for version in self.manifest.requires:
            replaced_by = self.manifest.replacement_for(version)
            if isinstance(replaced_by, LocalReplacement) and self.root_path is None:
                replaced_by = None
            requirements.append(Requirement(version=version, replaced_by=replaced_by))
        return requirements


@dataclass(frozen=True)
class Requirement:
    """A required module and the replacement that applies to it."""

    version: ModuleVersion
    replaced_by: Optional[Replacement] = None

    @property
    def module_id(self) -> str:
        """Cache key: ``path@version``, plus ``=>replacement`` when replaced."""
        if self.replaced_by is None:
            return str(self.version)
        return f"{self.version}=>{self.replaced_by}"


@dataclass(frozen=True)
class License:
    """A license text and its classified label.

    Attributes:
        data: Raw license file content.
        name: Classified label such as "MIT", "Apache-2.0" or "Unknown".
    """

    data: bytes
    name: str

    @property
    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")


class Resolution(str, Enum):
    """How a module node came to have the content it has."""

    RESOLVED = "resolved"
    LEAF = "leaf"
    SKIPPED = "skipped"
    UNLICENSED = "unlicensed"
    UNEXPANDED = "unexpanded"
    CYCLE = "cycle"
    ROOT = "root"


@dataclass(frozen=True)
class ModuleNode:
    """A resolved module: identity, license and direct dependencies.

    Nodes are immutable once built, so a cached node's license and children
    can be shared by every parent that requires the same module.

    Attributes:
        version: Module identity.
        replaced_by: Replacement applied when resolving the module.
        license: Classified license, None for nodes not processed.
        dependencies: Direct dependencies in manifest order.
        resolution: Outcome of resolving this node.
    """

    version: ModuleVersion
    replaced_by: Optional[Replacement] = None
    license: Optional[License] = None
    dependencies: tuple["ModuleNode", ...] = ()
    resolution: Resolution = Resolution.RESOLVED

    @property
    def module_id(self) -> str:
        return Requirement(self.version, self.replaced_by).module_id

    @property
    def license_name(self) -> Optional[str]:
        return self.license.name if self.license else None

    def __str__(self) -> str:
        details = ""
        if self.replaced_by is not None:
            details += f", replaced({str(self.replaced_by)!r})"
        if self.license is not None:
            details += f", license({self.license.name!r})"
        details += f", dependencies({len(self.dependencies)})"
        return f"GoModule[{self.version}{details}]"


@dataclass
class DependencyTree:
    """The dependency tree of a Go module.

    Attributes:
        root: Synthetic node for the main module; its dependencies are the
            direct requirements in declared order.
    """

    root: ModuleNode

    def walk(self) -> Iterator[tuple[int, ModuleNode]]:
        """Yield ``(depth, node)`` pairs depth-first, root excluded."""
        stack = [(1, node) for node in reversed(self.root.dependencies)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            stack.extend((depth + 1, child) for child in reversed(node.dependencies))

    def unique_modules(self) -> list[ModuleNode]:
        """Return one node per module id, in first-seen order.

        A licensed occurrence of a module is preferred over an earlier one
        that was left unexpanded by the depth bound.
        """
        seen: dict[str, ModuleNode] = {}
        for _, node in self.walk():
            current = seen.get(node.module_id)
            if current is None or (current.license is None and node.license):
                seen[node.module_id] = node
        return list(seen.values())

    def render(self) -> str:
        """Render the tree as plain text."""
        tree = Tree(Text(self.root.version.path))
        _add_child_nodes(tree, self.root.dependencies)

        buffer = io.StringIO()
        console = Console(file=buffer, width=200, color_system=None, highlight=False)
        console.print(tree)
        return buffer.getvalue()

    def __str__(self) -> str:
        return self.render()


def _add_child_nodes(parent: Tree, nodes: tuple[ModuleNode, ...]) -> None:
    for node in nodes:
        label = node.license_name or f"({node.resolution.value})"
        child = parent.add(Text(f"{node.version} {label}"))
        _add_child_nodes(child, node.dependencies)


@dataclass
class AttributionsFile:
    """Data rendered into an ATTRIBUTION.md file.

    Attributes:
        header: Text placed above the generated content.
        tree: The module dependency tree.
    """

    header: str
    tree: DependencyTree
