"""Unit tests for CUID generation utilities."""

from __future__ import annotations

from seoplanner.core.ids import generate_cuid


def test_generate_cuid_format_and_uniqueness() -> None:
    ids = [generate_cuid() for _ in range(500)]

    assert len(ids) == len(set(ids))
    assert all(len(item) == 24 for item in ids)
    assert all(item.startswith("c") for item in ids)
    assert all(item.isalnum() and item == item.lower() for item in ids)


def test_generate_cuid_respects_minimum_length() -> None:
    assert len(generate_cuid(32)) == 32
    assert len(generate_cuid(4)) == 13
