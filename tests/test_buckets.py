from __future__ import annotations

import pytest

from bucketlimit.domain.buckets import BucketRing


@pytest.fixture()
def ring() -> BucketRing:
    return BucketRing(span=600, interval=5, count=120)


def test_index_at_maps_time_onto_ring(ring):
    assert ring.index_at(0) == 0
    assert ring.index_at(4) == 0
    assert ring.index_at(5) == 1
    assert ring.index_at(1_000) == 80
    assert ring.index_at(599) == 119


def test_index_at_wraps_every_span(ring):
    assert ring.index_at(1_000) == ring.index_at(1_000 + 600)
    assert ring.index_at(600) == 0


def test_index_at_truncates_fractional_seconds(ring):
    assert ring.index_at(1_004.9) == 80


def test_index_at_folds_short_trailing_slot_into_last_bucket():
    ring = BucketRing(span=10, interval=3, count=3)
    assert ring.index_at(9) == 2
    assert all(0 <= ring.index_at(second) < 3 for second in range(30))


def test_ahead_wraps_around(ring):
    assert ring.ahead(10, 1) == 11
    assert ring.ahead(119, 1) == 0
    assert ring.ahead(119, 2) == 1


def test_trailing_lists_newest_first_and_wraps(ring):
    assert ring.trailing(2, 4) == [2, 1, 0, 119]


def test_trailing_never_repeats_a_bucket(ring):
    indices = ring.trailing(50, 500)
    assert len(indices) == 120
    assert len(set(indices)) == 120
