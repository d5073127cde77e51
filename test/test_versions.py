import pytest

from condcomp.errors import VersionFormatError
from condcomp.versions import parse_range, parse_version, satisfies


@pytest.mark.parametrize("range_spec,expected", [
    ("~1.3.0", False),
    ("^1.3.0", True),
    (">1.3.0", False),
    (">=1.3.0", False),
    ("<1.3.0", True),
    ("<=1.3.0", True),
    ("1.2.3", True),
])
def test_range_operators_against_1_2_3(range_spec, expected):
    assert satisfies("1.2.3", range_spec) is expected


def test_ordered_comparisons_are_numeric():
    assert satisfies("1.10.0", ">1.9.9")
    assert satisfies("2.0.0", ">=2.0.0")
    assert not satisfies("2.0.0", "<2.0.0")


def test_tilde_and_caret():
    assert satisfies("1.3.9", "~1.3.0")
    assert not satisfies("2.3.0", "~1.3.0")
    assert satisfies("1.0.0", "^1.9.9")
    assert not satisfies("2.0.0", "^1.0.0")


def test_equal_prefix_and_suffixes():
    assert satisfies("4.06.1+BS", "=4.6.1")
    assert satisfies("1.2.3-dev", "1.2.3")


def test_parse():
    assert parse_version("10.0.7") == (10, 0, 7)
    assert parse_range("<=1.2.3") == ("<=", (1, 2, 3))
    assert parse_range("1.2.3") == ("=", (1, 2, 3))


@pytest.mark.parametrize("version,range_spec", [
    ("1.2", "1.2.3"),
    ("1.2.3", "1.2"),
    ("a.b.c", "1.2.3"),
    ("1.2.3", ">=x"),
    ("1.2.3", ""),
    ("1.2.3.4", "1.2.3"),
    ("-1.2.3", "1.2.3"),
])
def test_malformed(version, range_spec):
    with pytest.raises(VersionFormatError):
        satisfies(version, range_spec)


def test_error_text_without_location():
    with pytest.raises(VersionFormatError) as exc:
        parse_version("nope")
    assert exc.value.text == "nope"
    assert str(exc.value) == "format error: illegal semantic version 'nope'"
