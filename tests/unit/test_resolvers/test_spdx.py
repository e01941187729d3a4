"""Tests for the SPDX license classifier."""

import pytest

from gen_attributions.errors import ClassificationError
from gen_attributions.resolvers.spdx import (
    SPDXClassifier,
    normalize_license_text,
    spdx_name,
    spdx_url,
)

ISC_TEXT = """ISC License

Copyright (c) 2004-2010 by Internet Systems Consortium, Inc. ("ISC")

Permission to use, copy, modify, and/or distribute this software for any
purpose with or without fee is hereby granted, provided that the above
copyright notice and this permission notice appear in all copies.

THE SOFTWARE IS PROVIDED "AS IS" AND THE AUTHOR DISCLAIMS ALL WARRANTIES
"""

BSD2_TEXT = """Copyright (c) 2013 The Authors. All rights reserved.

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are met:

1. Redistributions of source code must retain the above copyright notice.
2. Redistributions in binary form must reproduce the above copyright notice.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
"""

LGPL3_TEXT = """                   GNU LESSER GENERAL PUBLIC LICENSE
                       Version 3, 29 June 2007

 Copyright (C) 2007 Free Software Foundation, Inc. <https://fsf.org/>

  This version of the GNU Lesser General Public License incorporates
the terms and conditions of version 3 of the GNU General Public
License, supplemented by the additional permissions listed below.
"""


@pytest.fixture
def classifier() -> SPDXClassifier:
    return SPDXClassifier()


class TestSPDXClassifier:
    """Test suite for SPDXClassifier."""

    def test_classify_mit(self, classifier, mit_text) -> None:
        assert classifier.classify(mit_text.encode()) == "MIT"

    def test_classify_bsd3(self, classifier, bsd3_text) -> None:
        """Test that the endorsement clause selects BSD-3-Clause."""
        assert classifier.classify(bsd3_text.encode()) == "BSD-3-Clause"

    def test_classify_bsd2(self, classifier) -> None:
        """Test that BSD-2-Clause is told apart from BSD-3-Clause."""
        assert classifier.classify(BSD2_TEXT.encode()) == "BSD-2-Clause"

    def test_classify_apache(self, classifier, apache_text) -> None:
        assert classifier.classify(apache_text.encode()) == "Apache-2.0"

    def test_classify_isc(self, classifier) -> None:
        assert classifier.classify(ISC_TEXT.encode()) == "ISC"

    def test_classify_lgpl_not_gpl(self, classifier) -> None:
        """Test that the lesser GPL is not reported as the GPL."""
        assert classifier.classify(LGPL3_TEXT.encode()) == "LGPL-3.0-only"

    def test_spdx_header_wins(self, classifier, mit_text) -> None:
        """Test that a valid SPDX identifier header is trusted."""
        data = f"// SPDX-License-Identifier: MIT OR Apache-2.0\n{mit_text}".encode()

        assert classifier.classify(data) == "MIT OR Apache-2.0"

    def test_invalid_spdx_header_falls_back(self, classifier, mit_text) -> None:
        """Test that an unknown identifier falls back to text matching."""
        data = f"SPDX-License-Identifier: Not-A-License-9\n{mit_text}".encode()

        assert classifier.classify(data) == "MIT"

    def test_unknown_text(self, classifier) -> None:
        with pytest.raises(ClassificationError, match="no license matched"):
            classifier.classify(b"All rights reserved. Do not copy.")

    @pytest.mark.parametrize("data", [b"", b"  \n\t "])
    def test_empty_text(self, classifier, data: bytes) -> None:
        with pytest.raises(ClassificationError, match="empty"):
            classifier.classify(data)

    def test_threshold_allows_partial_texts(self, mit_text) -> None:
        """Test that a lower threshold accepts truncated license texts."""
        truncated = mit_text.split("The above copyright")[0].encode()

        with pytest.raises(ClassificationError):
            SPDXClassifier(threshold=0.8).classify(truncated)
        assert SPDXClassifier(threshold=0.3).classify(truncated) == "MIT"

    @pytest.mark.parametrize("threshold", [0, -0.5, 1.5])
    def test_invalid_threshold(self, threshold: float) -> None:
        with pytest.raises(ValueError, match="threshold"):
            SPDXClassifier(threshold=threshold)


def test_normalize_license_text() -> None:
    assert normalize_license_text('Provided  "AS IS",\n\tWITHOUT') == (
        "provided as is, without"
    )


def test_spdx_url() -> None:
    assert spdx_url("MIT") == "https://spdx.org/licenses/MIT.html"
    assert spdx_url("Unknown") is None
    assert spdx_url("") is None


def test_spdx_name() -> None:
    assert spdx_name("Apache-2.0") == "Apache License 2.0"
    assert spdx_name("WTFPL") == "WTFPL"
