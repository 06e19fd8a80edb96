from __future__ import annotations

import pytest

from betterbuild.version import Version, derive_version, parse_tag


@pytest.mark.parametrize(
    "describe, height, expected",
    [
        ("v1.2.3-0-gabc1234", 0, "1.2.3"),
        ("1.2.3-0-gabc1234", 0, "1.2.3"),
        ("v1.2.3-4-gabc1234", 0, "1.2.4-alpha.0.4"),
        ("v2.0.0-rc.1-3-gabc1234", 0, "2.0.0-rc.1.3"),
        ("abc1234", 5, "0.0.0-alpha.0.5"),
        (None, 0, "0.0.0-alpha.0.0"),
        ("release-candidate-2-gabc1234", 9, "0.0.0-alpha.0.9"),
    ],
)
def test_derive_version(describe, height, expected):
    assert str(derive_version(describe, height)) == expected


def test_parse_tag():
    assert parse_tag("v1.10.0") == Version(1, 10, 0)
    assert parse_tag("1.0.0-beta.2") == Version(1, 0, 0, "beta.2")
    assert parse_tag("latest") is None
    assert parse_tag("v01.0.0") is None


def test_height_is_kept():
    assert derive_version("v1.0.0-7-gdeadbee").height == 7
