"""Collaborators that fetch, read and classify module content.

This module provides the Go module proxy fetcher, the content resolver
that reads local replacements or downloaded archives, and the SPDX license
classifier.
"""

from gen_attributions.resolvers.base import (
    ArchiveFetcher,
    ContentResolver,
    LicenseClassifier,
    ModuleContent,
)
from gen_attributions.resolvers.content import ModuleContentResolver
from gen_attributions.resolvers.http import HttpFetcher
from gen_attributions.resolvers.proxy import ModuleProxyFetcher, proxy_from_env
from gen_attributions.resolvers.spdx import SPDXClassifier

__all__ = [
    "ArchiveFetcher",
    "ContentResolver",
    "LicenseClassifier",
    "ModuleContent",
    "ModuleContentResolver",
    "HttpFetcher",
    "ModuleProxyFetcher",
    "proxy_from_env",
    "SPDXClassifier",
]
