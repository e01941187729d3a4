"""Manifest scanners.

This module provides scanners for reading a module's dependency
declaration from disk or from downloaded archive content.
"""

from pathlib import Path

from gen_attributions.scanners.base import BaseScanner
from gen_attributions.scanners.gomod import GoModScanner

__all__ = [
    "BaseScanner",
    "GoModScanner",
    "get_scanner",
]

# Registry of available scanners in priority order
_SCANNERS: list[type[BaseScanner]] = [
    GoModScanner,
]


def get_scanner(path: Path) -> BaseScanner:
    """Get the appropriate scanner for a given file path.

    Args:
        path: Path to the manifest file.

    Returns:
        Scanner instance configured for the given file.

    Raises:
        ValueError: If no scanner can handle the given file.
    """
    for scanner_cls in _SCANNERS:
        if scanner_cls.can_handle(path):
            return scanner_cls(path)

    raise ValueError(
        f"No scanner available for '{path.name}'. Supported files: go.mod"
    )
