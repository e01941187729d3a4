"""Pytest configuration and fixtures."""

import io
import zipfile
from typing import Callable, Optional, Union

import pytest

from gen_attributions.errors import DownloadError
from gen_attributions.models import (
    Manifest,
    ManifestRoot,
    ModuleVersion,
    Requirement,
)
from gen_attributions.resolvers.base import (
    ArchiveFetcher,
    ContentResolver,
    LicenseClassifier,
    ModuleContent,
)

MIT_TEXT = """MIT License

Copyright (c) 2014 Simon Eskildsen

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in
all copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT.
"""

BSD3_TEXT = """Copyright (c) 2009 The Go Authors. All rights reserved.

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are
met:

   * Redistributions of source code must retain the above copyright
notice, this list of conditions and the following disclaimer.
   * Neither the name of Google Inc. nor the names of its
contributors may be used to endorse or promote products derived from
this software without specific prior written permission.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS
"AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT
LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR
A PARTICULAR PURPOSE ARE DISCLAIMED.
"""

APACHE_TEXT = """
                                 Apache License
                           Version 2.0, January 2004
                        http://www.apache.org/licenses/

   TERMS AND CONDITIONS FOR USE, REPRODUCTION, AND DISTRIBUTION
"""


def _make_archive(version: ModuleVersion, files: dict[str, Union[str, bytes]]) -> bytes:
    """Build a module zip archive with entries under ``path@version/``."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            zf.writestr(f"{version}/{name}", content)
    return buffer.getvalue()


def _make_root(
    requires: list[ModuleVersion],
    replaces: Optional[dict] = None,
    root_path=None,
    module: str = "example.com/main",
) -> ManifestRoot:
    """Build a manifest root without going through the go.mod parser."""
    return ManifestRoot(
        manifest=Manifest(
            module=ModuleVersion(module),
            requires=list(requires),
            replaces=dict(replaces or {}),
        ),
        root_path=root_path,
    )


class FakeFetcher(ArchiveFetcher):
    """Archive fetcher serving in-memory archives and recording calls."""

    def __init__(self) -> None:
        self.archives: dict[ModuleVersion, bytes] = {}
        self.calls: list[ModuleVersion] = []

    def add(self, version: ModuleVersion, files: dict[str, Union[str, bytes]]) -> None:
        self.archives[version] = _make_archive(version, files)

    async def fetch(self, version: ModuleVersion) -> bytes:
        self.calls.append(version)
        if version not in self.archives:
            raise DownloadError("module not found on proxy", version)
        return self.archives[version]


class FakeContentResolver(ContentResolver):
    """Content resolver answering from a table keyed by module id.

    Values are ModuleContent objects, or exceptions to raise. Unknown
    modules resolve to an MIT-licensed leaf. Calls are recorded in order.
    """

    def __init__(self) -> None:
        self.contents: dict[str, Union[ModuleContent, Exception]] = {}
        self.calls: list[str] = []

    def add(
        self,
        module_id: str,
        requires: Optional[list[ModuleVersion]] = None,
        license_data: Optional[bytes] = b"MIT",
        has_manifest: bool = True,
        replaces: Optional[dict] = None,
    ) -> None:
        manifest = None
        if has_manifest:
            manifest = _make_root(
                requires or [], replaces=replaces, module=module_id.split("@")[0]
            )
        self.contents[module_id] = ModuleContent(
            manifest=manifest, license_data=license_data
        )

    def fail(self, module_id: str, error: Exception) -> None:
        self.contents[module_id] = error

    async def resolve(
        self, parent: ManifestRoot, requirement: Requirement
    ) -> ModuleContent:
        self.calls.append(requirement.module_id)
        content = self.contents.get(requirement.module_id)
        if content is None:
            return ModuleContent(manifest=None, license_data=b"MIT")
        if isinstance(content, Exception):
            raise content
        return content


class FakeClassifier(LicenseClassifier):
    """Classifier returning the license text itself as the label."""

    def __init__(self) -> None:
        self.calls = 0

    def classify(self, data: bytes) -> str:
        self.calls += 1
        return data.decode("utf-8").strip()


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    """Return an empty in-memory archive fetcher."""
    return FakeFetcher()


@pytest.fixture
def fake_resolver() -> FakeContentResolver:
    """Return an empty table-driven content resolver."""
    return FakeContentResolver()


@pytest.fixture
def fake_classifier() -> FakeClassifier:
    """Return a classifier echoing license texts as labels."""
    return FakeClassifier()


@pytest.fixture
def mit_text() -> str:
    return MIT_TEXT


@pytest.fixture
def bsd3_text() -> str:
    return BSD3_TEXT


@pytest.fixture
def apache_text() -> str:
    return APACHE_TEXT


@pytest.fixture
def make_archive() -> Callable[..., bytes]:
    """Return a factory building module zip archives."""
    return _make_archive


@pytest.fixture
def make_root() -> Callable[..., ManifestRoot]:
    """Return a factory building manifest roots."""
    return _make_root
