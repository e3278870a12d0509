"""Unit tests for the division-safe statistics helpers."""

import pytest

from taskflow.core.utils.stats import completion_rate, ratio, rounded

pytestmark = pytest.mark.unit


def test_completion_rate_with_empty_total_is_zero():
    assert completion_rate(0, 0) == 0.0


def test_completion_rate_half():
    assert completion_rate(5, 10) == 50.00


def test_completion_rate_rounds_to_two_places():
    assert completion_rate(1, 3) == 33.33


def test_ratio_and_rounded():
    assert ratio(3, 0) == 0.0
    assert ratio(7, 4) == 1.75
    assert rounded(None) == 0.0
    assert rounded(6.666) == 6.67
