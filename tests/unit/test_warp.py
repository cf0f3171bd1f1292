"""
Unit tests for WarpMap.

Tests sync point construction, caching and segment lookup from a pair of
keyframe stores.
"""

import pytest
from core.timeline.keyframes import KeyframeStore, STREAM_A, STREAM_B
from core.timeline.warp import SyncPoint, WarpMap


@pytest.fixture
def stores():
    """A = 600 steps, B = 300 steps, anchors only."""
    a = KeyframeStore(STREAM_A)
    b = KeyframeStore(STREAM_B)
    a.register_duration(10.0)
    b.register_duration(5.0)
    return a, b


@pytest.fixture
def warp(stores):
    return WarpMap(*stores)


# ==================== SYNC POINT TESTS ====================

@pytest.mark.unit
def test_anchors_produce_first_and_last_points(warp):
    """Start and End should always map to 0 and the virtual span."""
    points = warp.build_sync_points()

    assert points == (
        SyncPoint("Start", 0.0, 0, 0),
        SyncPoint("End", 1000.0, 600, 300),
    )
    assert warp.is_defined


@pytest.mark.unit
def test_common_labels_equally_spaced(stores, warp):
    """Common labels should be spread evenly over the virtual span."""
    a, b = stores
    for label in ("Top", "Impact"):
        a.insert_event(label)
        b.insert_event(label)

    points = warp.build_sync_points()

    assert [p.label for p in points] == ["Start", "Top", "Impact", "End"]
    assert [p.virtual_position for p in points] == pytest.approx([0, 1000 / 3, 2000 / 3, 1000])
    assert points[1].step_a == 300 and points[1].step_b == 150


@pytest.mark.unit
def test_label_on_one_stream_only_is_ignored(stores, warp):
    """Only labels present on both streams should become sync points."""
    a, _ = stores
    a.insert_event("Top")

    assert [p.label for p in warp.build_sync_points()] == ["Start", "End"]


@pytest.mark.unit
def test_virtual_positions_strictly_increasing(stores, warp):
    a, b = stores
    for label in ("Address", "Top", "Downswing", "Impact", "Finish"):
        a.insert_event(label)
        b.insert_event(label)

    positions = [p.virtual_position for p in warp.build_sync_points()]

    assert all(x < y for x, y in zip(positions, positions[1:]))
    assert len(positions) == 7


@pytest.mark.unit
def test_undefined_when_one_stream_unregistered():
    """Fewer than two common labels should yield an empty result."""
    a = KeyframeStore(STREAM_A)
    b = KeyframeStore(STREAM_B)
    a.register_duration(10.0)
    warp = WarpMap(a, b)

    assert warp.build_sync_points() == ()
    assert not warp.is_defined
    assert warp.segment_at(500) is None
    assert warp.local_step(STREAM_A, 500) is None


# ==================== CACHE TESTS ====================

@pytest.mark.unit
def test_cache_reused_until_store_changes(stores, warp):
    """Unchanged stores should return the cached tuple; any mutation rebuilds."""
    a, b = stores
    first = warp.build_sync_points()

    assert warp.build_sync_points() is first
    assert not warp.is_stale

    a.move(a.find("End").id, 500)

    assert warp.is_stale
    rebuilt = warp.build_sync_points()
    assert rebuilt is not first
    assert rebuilt[-1].step_a == 500


@pytest.mark.unit
def test_invalidate_forces_rebuild(warp):
    first = warp.build_sync_points()
    warp.invalidate()

    assert warp.is_stale
    assert warp.build_sync_points() == first


@pytest.mark.unit
def test_deterministic_for_same_state(stores):
    """Two maps over the same stores should produce identical points."""
    a, b = stores
    for label in ("Impact", "Top"):
        a.insert_event(label)
        b.insert_event(label)

    assert WarpMap(a, b).build_sync_points() == WarpMap(a, b).build_sync_points()


# ==================== SEGMENT LOOKUP TESTS ====================

@pytest.mark.unit
def test_segment_lookup(stores, warp):
    a, b = stores
    a.insert_event("Top")
    b.insert_event("Top")

    start, end = warp.segment_at(250)
    assert (start.label, end.label) == ("Start", "Top")

    start, end = warp.segment_at(500)
    assert (start.label, end.label) == ("Top", "End")


@pytest.mark.unit
@pytest.mark.parametrize("position", [1000, 1500])
def test_segment_at_or_past_end_uses_last_pair(warp, position):
    start, end = warp.segment_at(position)

    assert (start.label, end.label) == ("Start", "End")


@pytest.mark.unit
def test_segment_before_start_uses_first_pair(stores, warp):
    a, b = stores
    a.insert_event("Top")
    b.insert_event("Top")

    start, _ = warp.segment_at(-20)
    assert start.label == "Start"


@pytest.mark.unit
def test_local_step_interpolates(warp):
    assert warp.local_step(STREAM_A, 500) == pytest.approx(300)
    assert warp.local_step(STREAM_B, 500) == pytest.approx(150)
    assert warp.local_step(STREAM_A, 1000) == pytest.approx(600)
    assert warp.local_step(STREAM_B, -100) == pytest.approx(0)
