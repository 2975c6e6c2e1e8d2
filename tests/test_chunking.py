"""Tests for chunking helpers."""

import pytest

from dlxdb.utils.chunking import chunk


def test_chunks_preserve_order_and_size():
    chunks = list(chunk(list(range(250)), 100))
    assert [len(c) for c in chunks] == [100, 100, 50]
    assert [x for c in chunks for x in c] == list(range(250))


def test_empty_sequence_has_no_chunks():
    assert list(chunk([], 100)) == []


def test_size_must_be_positive():
    with pytest.raises(ValueError):
        list(chunk([1], 0))
