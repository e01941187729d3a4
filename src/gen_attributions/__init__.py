"""gen-attributions - Go module license attribution generator.

This package resolves the transitive dependency graph of a Go module,
attaches a license to every dependency and renders an attribution report.
"""

__version__ = "0.1.0"

from gen_attributions.models import (
    DependencyTree,
    License,
    ManifestRoot,
    ModuleNode,
    ModuleVersion,
    Requirement,
    Resolution,
)

__all__ = [
    "__version__",
    "DependencyTree",
    "License",
    "ManifestRoot",
    "ModuleNode",
    "ModuleVersion",
    "Requirement",
    "Resolution",
]
