"""Dependency graph builder.

This module implements the recursive, cached traversal that turns a root
go.mod into a fully licensed dependency tree. Requirements are resolved
depth-first and one at a time, in the order their manifest declares them.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from gen_attributions.cache import ModuleCache
from gen_attributions.errors import (
    AttributionError,
    CyclicDependencyError,
    FetchError,
    LicenseNotFoundError,
)
from gen_attributions.models import (
    DependencyTree,
    License,
    ManifestRoot,
    ModuleNode,
    ModuleVersion,
    Requirement,
    Resolution,
)
from gen_attributions.resolvers.base import (
    ContentResolver,
    LicenseClassifier,
    ModuleContent,
)
from gen_attributions.resolvers.spdx import UNKNOWN_LICENSE

logger = logging.getLogger(__name__)


def unknown_license(version: ModuleVersion) -> License:
    """Return the placeholder license used in lenient mode."""
    data = (
        "WARNING: YOU MUST OVERRIDE THIS WITH A PROPER LICENSE\n"
        f'UNKNOWN LICENSE FOR "{version}"'
    ).encode("utf-8")
    return License(data=data, name=UNKNOWN_LICENSE)


@dataclass
class BuildStats:
    """Counters of a graph build.

    Attributes:
        resolved: Modules whose content was resolved and classified.
        cache_hits: Requirements served from the module cache.
        unexpanded: Requirements left bare by the depth bound.
        degraded: Modules given placeholder data in lenient mode.
    """

    resolved: int = 0
    cache_hits: int = 0
    unexpanded: int = 0
    degraded: int = 0


class GraphBuilder:
    """Builds the dependency tree of a Go module.

    Each distinct (module, replacement) pair is resolved at most once per
    builder: finished nodes are stored in the builder's own cache and shared
    by every parent requiring them.

    Attributes:
        content_resolver: Produces manifests and license texts.
        classifier: Labels license texts.
        lenient: Turn fetch failures and missing licenses into warnings plus
            placeholder data instead of aborting.
        cache: Resolved modules, keyed by module id.
        stats: Counters of the builds run so far.
    """

    def __init__(
        self,
        content_resolver: ContentResolver,
        classifier: LicenseClassifier,
        lenient: bool = False,
        cache: Optional[ModuleCache] = None,
    ) -> None:
        """Initialize the graph builder.

        Args:
            content_resolver: Resolver for module manifests and licenses.
            classifier: License text classifier.
            lenient: Whether to degrade instead of failing on fetch errors
                and missing licenses.
            cache: Module cache. A new empty cache is used when None.
        """
        self.content_resolver = content_resolver
        self.classifier = classifier
        self.lenient = lenient
        self.cache = cache if cache is not None else ModuleCache()
        self.stats = BuildStats()

    async def build(self, root: ManifestRoot, max_depth: int) -> DependencyTree:
        """Build the dependency tree of a root manifest.

        Args:
            root: The main module's manifest and directory.
            max_depth: Number of dependency levels to expand below the root.
                Requirements found at this depth are listed without license
                or dependencies; 0 lists the direct requirements only.

        Returns:
            Tree whose root children are the direct requirements, in
            declaration order.

        Raises:
            ValueError: If max_depth is negative.
            AttributionError: On any fatal resolution error.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")

        logger.debug("Started building the dependency graph")

        dependencies = await self._resolve_all(
            root, root.requirements(), depth=0, max_depth=max_depth, path=()
        )

        logger.debug(
            "Dependency graph built successfully: %d resolved, %d cache hits, "
            "%d unexpanded, %d degraded",
            self.stats.resolved,
            self.stats.cache_hits,
            self.stats.unexpanded,
            self.stats.degraded,
        )

        return DependencyTree(
            root=ModuleNode(
                version=root.manifest.module,
                dependencies=dependencies,
                resolution=Resolution.ROOT,
            )
        )

    async def _resolve_all(
        self,
        parent: ManifestRoot,
        requirements: list[Requirement],
        depth: int,
        max_depth: int,
        path: tuple[str, ...],
    ) -> tuple[ModuleNode, ...]:
        nodes = []
        for requirement in requirements:
            node = await self._resolve(parent, requirement, depth, max_depth, path)
            nodes.append(node)
        return tuple(nodes)

    async def _resolve(
        self,
        parent: ManifestRoot,
        requirement: Requirement,
        depth: int,
        max_depth: int,
        path: tuple[str, ...],
    ) -> ModuleNode:
        if depth >= max_depth:
            self.stats.unexpanded += 1
            return self._bare_node(requirement, Resolution.UNEXPANDED)

        module_id = requirement.module_id
        logger.debug("Exploring module %s", module_id)

        if module_id in path:
            cycle = [*path[path.index(module_id) :], module_id]
            if not self.lenient:
                raise CyclicDependencyError(cycle, requirement.version)
            logger.warning("Cyclic dependency: %s", " -> ".join(cycle))
            self.stats.degraded += 1
            return self._bare_node(requirement, Resolution.CYCLE)

        levels = max_depth - depth
        cached = self.cache.get(requirement)
        if cached is not None:
            self.stats.cache_hits += 1
            children = cached.node.dependencies
            if cached.manifest is not None and cached.levels < levels:
                # First met deeper in the tree: expand further, license reused
                logger.debug("Expanding cached module %s further", module_id)
                children = await self._resolve_all(
                    cached.manifest,
                    cached.manifest.requirements(),
                    depth=depth + 1,
                    max_depth=max_depth,
                    path=(*path, module_id),
                )
            node = ModuleNode(
                version=requirement.version,
                replaced_by=requirement.replaced_by,
                license=cached.node.license,
                dependencies=children,
                resolution=cached.node.resolution,
            )
            if children is not cached.node.dependencies:
                self.cache.store(node, levels, cached.manifest)
            return node

        try:
            content = await self.content_resolver.resolve(parent, requirement)
        except FetchError as e:
            if not self.lenient:
                raise e.with_module(requirement.version)
            logger.warning("Got download error: %s", e)
            self.stats.degraded += 1
            node = ModuleNode(
                version=requirement.version,
                replaced_by=requirement.replaced_by,
                license=unknown_license(requirement.version),
                resolution=Resolution.SKIPPED,
            )
            self.cache.store(node, levels)
            return node
        except LicenseNotFoundError as e:
            if not self.lenient:
                raise e.with_module(requirement.version)
            content = ModuleContent(manifest=e.manifest, license_data=None)
        except AttributionError as e:
            raise e.with_module(requirement.version)

        license = self._license_for(requirement, content)
        logger.debug(
            "Found %s license and %d required modules",
            license.name,
            len(content.manifest.manifest.requires) if content.manifest else 0,
        )

        dependencies: tuple[ModuleNode, ...] = ()
        if content.manifest is not None:
            dependencies = await self._resolve_all(
                content.manifest,
                content.manifest.requirements(),
                depth=depth + 1,
                max_depth=max_depth,
                path=(*path, module_id),
            )

        if not content.license_data:
            resolution = Resolution.UNLICENSED
        elif content.manifest is None:
            resolution = Resolution.LEAF
        else:
            resolution = Resolution.RESOLVED

        node = ModuleNode(
            version=requirement.version,
            replaced_by=requirement.replaced_by,
            license=license,
            dependencies=dependencies,
            resolution=resolution,
        )
        self.stats.resolved += 1
        self.cache.store(node, levels, content.manifest)
        return node

    def _license_for(self, requirement: Requirement, content: ModuleContent) -> License:
        if not content.license_data:
            if not self.lenient:
                raise LicenseNotFoundError(module=requirement.version)
            logger.warning("No license found for %s", requirement.version)
            self.stats.degraded += 1
            return unknown_license(requirement.version)

        try:
            name = self.classifier.classify(content.license_data)
        except AttributionError as e:
            raise e.with_module(requirement.version)

        return License(data=content.license_data, name=name)

    @staticmethod
    def _bare_node(requirement: Requirement, resolution: Resolution) -> ModuleNode:
        return ModuleNode(
            version=requirement.version,
            replaced_by=requirement.replaced_by,
            resolution=resolution,
        )
