"""Unit tests for tag-name normalization."""

import pytest

from taskflow.core.errors import ValidationError
from taskflow.domains.tags.normalization import normalize_tag_name, validate_tag_name

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("  Urgent Work  ", "urgent-work"),
        ("Deep\tFocus\n Time", "deep-focus-time"),
        ("already-normal", "already-normal"),
        ("MiXeD", "mixed"),
        ("", ""),
    ],
)
def test_normalize_tag_name(raw, expected):
    assert normalize_tag_name(raw) == expected


@pytest.mark.parametrize("raw", ["  Urgent Work  ", "a  b   c", "\tX\t", "one-two", "Ünïcode Tag", ""])
def test_normalization_is_idempotent(raw):
    once = normalize_tag_name(raw)
    assert normalize_tag_name(once) == once


def test_validate_rejects_empty_and_symbols():
    with pytest.raises(ValidationError):
        validate_tag_name("   ")
    with pytest.raises(ValidationError):
        validate_tag_name("urgent!")
    with pytest.raises(ValidationError):
        validate_tag_name("x" * 51)


def test_validate_returns_normalized_name():
    assert validate_tag_name(" Home  Office ") == "home-office"
