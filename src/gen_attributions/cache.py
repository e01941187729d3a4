"""In-memory cache of resolved modules.

This module provides the cache a graph builder consults before resolving a
module, so that a dependency reachable through several parents is downloaded
and classified only once per build.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from gen_attributions.models import ManifestRoot, ModuleNode, Requirement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedModule:
    """A resolved module node and how far its dependencies were expanded.

    Attributes:
        node: The resolved node.
        levels: Number of dependency levels expanded below the node.
        manifest: Manifest the dependencies were read from, None for nodes
            without one (leaves, skipped modules).
    """

    node: ModuleNode
    levels: int = 0
    manifest: Optional[ManifestRoot] = None


class ModuleCache:
    """Mapping from module id to a fully resolved module node.

    Keys are ``module_id`` strings, which include the replacement detail so
    that a replaced module never collides with its un-replaced counterpart
    reached through another path. Stored nodes are frozen and shared by
    reference between every parent requiring them.

    The cache belongs to a single graph build; it is not persisted and is
    not safe to share between concurrent traversals.
    """

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._modules: dict[str, CachedModule] = {}

    def get(self, key: Union[Requirement, ModuleNode]) -> Optional[CachedModule]:
        """Return the cache entry of a module, None if not cached."""
        return self._modules.get(key.module_id)

    def lookup(
        self, key: Union[Requirement, ModuleNode]
    ) -> tuple[Optional[ModuleNode], bool]:
        """Look up a resolved module.

        Args:
            key: Requirement or node whose module id is looked up.

        Returns:
            Tuple of (cached node or None, whether it was found).
        """
        entry = self.get(key)
        if entry is None:
            return None, False
        return entry.node, True

    def store(
        self,
        node: ModuleNode,
        levels: int = 0,
        manifest: Optional[ManifestRoot] = None,
    ) -> None:
        """Store a fully resolved module node.

        Args:
            node: Node to cache under its module id. An existing entry for
                the same id is replaced.
            levels: Number of dependency levels expanded below the node.
            manifest: Manifest the node's dependencies were read from.
        """
        self._modules[node.module_id] = CachedModule(node, levels, manifest)
        logger.debug("Cached %s module (%d levels)", node, levels)

    def clear(self) -> None:
        """Remove every cached module."""
        self._modules.clear()

    def __contains__(self, key: Union[Requirement, ModuleNode]) -> bool:
        return key.module_id in self._modules

    def __len__(self) -> int:
        return len(self._modules)
