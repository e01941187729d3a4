"""SPDX license classifier.

Labels raw license file content with an SPDX identifier. An explicit
``SPDX-License-Identifier`` header is trusted when it parses as a valid
license expression; otherwise the text is matched against anchor phrases
that characterise each license.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from license_expression import ExpressionError, get_spdx_licensing

from gen_attributions.errors import ClassificationError
from gen_attributions.resolvers.base import LicenseClassifier

logger = logging.getLogger(__name__)

SPDX = get_spdx_licensing()

DEFAULT_THRESHOLD = 0.8

UNKNOWN_LICENSE = "Unknown"

# Common SPDX identifiers mapped to human-readable names
# Based on https://spdx.org/licenses/
SPDX_NAMES = {
    "MIT": "MIT License",
    "Apache-2.0": "Apache License 2.0",
    "GPL-3.0-only": "GNU General Public License v3.0 only",
    "GPL-2.0-only": "GNU General Public License v2.0 only",
    "LGPL-3.0-only": "GNU Lesser General Public License v3.0 only",
    "LGPL-2.1-only": "GNU Lesser General Public License v2.1 only",
    "AGPL-3.0-only": "GNU Affero General Public License v3.0 only",
    "BSD-3-Clause": 'BSD 3-Clause "New" or "Revised" License',
    "BSD-2-Clause": 'BSD 2-Clause "Simplified" License',
    "ISC": "ISC License",
    "MPL-2.0": "Mozilla Public License 2.0",
    "EPL-2.0": "Eclipse Public License 2.0",
    "BSL-1.0": "Boost Software License 1.0",
    "Zlib": "zlib License",
    "CC0-1.0": "Creative Commons Zero v1.0 Universal",
    "Unlicense": "The Unlicense",
}

SPDX_HEADER_RE = re.compile(r"SPDX-License-Identifier:\s*([^\n\r*]+)", re.IGNORECASE)


@dataclass(frozen=True)
class LicenseSignature:
    """Phrases identifying a license.

    Attributes:
        spdx_id: Identifier reported on a match.
        phrases: Normalised phrases expected in the license text.
        excludes: Phrases whose presence rules the license out.
    """

    spdx_id: str
    phrases: tuple[str, ...]
    excludes: tuple[str, ...] = ()


# Order matters on ties: more specific licenses come first
SIGNATURES = (
    LicenseSignature(
        "Apache-2.0",
        (
            "apache license",
            "version 2.0, january 2004",
            "www.apache.org/licenses",
        ),
    ),
    LicenseSignature(
        "MIT",
        (
            "permission is hereby granted, free of charge, to any person obtaining a copy",
            "the above copyright notice and this permission notice shall be included",
            "the software is provided as is, without warranty of any kind",
        ),
    ),
    LicenseSignature(
        "BSD-3-Clause",
        (
            "redistribution and use in source and binary forms, with or without modification, are permitted",
            "neither the name of",
            "this software is provided by the copyright holders and contributors as is",
        ),
    ),
    LicenseSignature(
        "BSD-2-Clause",
        (
            "redistribution and use in source and binary forms, with or without modification, are permitted",
            "this software is provided by the copyright holders and contributors as is",
        ),
        excludes=("neither the name of", "all advertising materials"),
    ),
    LicenseSignature(
        "ISC",
        (
            "permission to use, copy, modify, and",
            "distribute this software for any purpose with or without fee is hereby granted",
            "the software is provided as is and the author disclaims all warranties",
        ),
    ),
    LicenseSignature(
        "MPL-2.0",
        (
            "mozilla public license version 2.0",
            "exhibit a - source code form license notice",
        ),
    ),
    LicenseSignature(
        "AGPL-3.0-only",
        (
            "gnu affero general public license",
            "version 3, 19 november 2007",
        ),
    ),
    LicenseSignature(
        "LGPL-3.0-only",
        (
            "gnu lesser general public license",
            "version 3, 29 june 2007",
        ),
    ),
    LicenseSignature(
        "LGPL-2.1-only",
        (
            "gnu lesser general public license",
            "version 2.1, february 1999",
        ),
    ),
    LicenseSignature(
        "GPL-3.0-only",
        (
            "gnu general public license",
            "version 3, 29 june 2007",
        ),
        excludes=("gnu lesser general public license", "gnu affero general public license"),
    ),
    LicenseSignature(
        "GPL-2.0-only",
        (
            "gnu general public license",
            "version 2, june 1991",
        ),
        excludes=("gnu lesser general public license", "gnu library general public license"),
    ),
    LicenseSignature(
        "EPL-2.0",
        ("eclipse public license - v 2.0",),
    ),
    LicenseSignature(
        "BSL-1.0",
        (
            "boost software license - version 1.0",
            "permission is hereby granted, free of charge, to any person or organization",
        ),
    ),
    LicenseSignature(
        "Zlib",
        (
            "this software is provided as-is, without any express or implied warranty",
            "altered source versions must be plainly marked as such",
        ),
    ),
    LicenseSignature(
        "CC0-1.0",
        (
            "cc0 1.0 universal",
            "creative commons corporation is not a law firm",
        ),
    ),
    LicenseSignature(
        "Unlicense",
        ("this is free and unencumbered software released into the public domain",),
    ),
)


def normalize_license_text(text: str) -> str:
    """Lower-case a license text, drop quotes and collapse whitespace."""
    text = re.sub(r"[\"'`“”‘’]", "", text.lower())
    return re.sub(r"\s+", " ", text).strip()


def spdx_url(spdx_id: str) -> Optional[str]:
    """Return the spdx.org page of a license, None for the Unknown label."""
    if not spdx_id or spdx_id == UNKNOWN_LICENSE:
        return None
    return f"https://spdx.org/licenses/{spdx_id}.html"


def spdx_name(spdx_id: str) -> str:
    """Return the human-readable name of an SPDX identifier."""
    return SPDX_NAMES.get(spdx_id, spdx_id)


class SPDXClassifier(LicenseClassifier):
    """Classifies license texts into SPDX identifiers.

    Attributes:
        threshold: Minimum fraction of a license's anchor phrases that must
            appear in a text for it to match.
    """

    def __init__(self, threshold: float = DEFAULT_THRESHOLD) -> None:
        """Initialize the classifier.

        Args:
            threshold: Match threshold between 0 (exclusive) and 1.

        Raises:
            ValueError: If the threshold is out of range.
        """
        if not 0 < threshold <= 1:
            raise ValueError(f"threshold must be in (0, 1], got {threshold}")
        self.threshold = threshold

    def classify(self, data: bytes) -> str:
        """Return the SPDX identifier of a license text.

        Args:
            data: Raw license file content.

        Returns:
            An SPDX identifier or expression, e.g. "MIT".

        Raises:
            ClassificationError: If the text is empty or matches no license.
        """
        text = data.decode("utf-8", errors="replace")
        if not text.strip():
            raise ClassificationError("license text is empty")

        from_header = self._classify_header(text)
        if from_header is not None:
            return from_header

        normalized = normalize_license_text(text)
        best: Optional[tuple[float, int, str]] = None
        for signature in SIGNATURES:
            if any(phrase in normalized for phrase in signature.excludes):
                continue
            matched = sum(1 for phrase in signature.phrases if phrase in normalized)
            score = matched / len(signature.phrases)
            if score < self.threshold:
                continue
            if best is None or (score, matched) > best[:2]:
                best = (score, matched, signature.spdx_id)

        if best is None:
            raise ClassificationError(
                f"no license matched with confidence >= {self.threshold}"
            )

        logger.debug("Classified license as %s (confidence %.2f)", best[2], best[0])
        return best[2]

    def _classify_header(self, text: str) -> Optional[str]:
        match = SPDX_HEADER_RE.search(text)
        if match is None:
            return None

        expression = match.group(1).strip()
        try:
            parsed = SPDX.parse(expression, validate=True)
        except ExpressionError as e:
            logger.debug("Ignoring invalid SPDX header %r: %s", expression, e)
            return None

        if parsed is None:
            return None
        return str(parsed)
