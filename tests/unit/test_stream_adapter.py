"""
Unit tests for StreamAdapter.

Uses a MagicMock media handle to verify which instructions the adapter issues
for each notification.
"""

import pytest
from unittest.mock import MagicMock
from core.timeline import STREAM_A, STREAM_B
from playback.stream_adapter import StreamAdapter

FPS = 60


@pytest.fixture
def adapter_b(registered_timeline, mock_media_handle):
    adapter = StreamAdapter(registered_timeline, STREAM_B, mock_media_handle)
    mock_media_handle.reset_mock()
    return adapter


# ==================== ATTACH / DETACH ====================

@pytest.mark.unit
def test_attach_syncs_immediately(registered_timeline):
    """A late subscriber should be placed at the current position right away."""
    registered_timeline.seek(120)
    handle = MagicMock(position=0.0, rate=1.0)

    StreamAdapter(registered_timeline, STREAM_A, handle)

    handle.seek.assert_called_once_with(pytest.approx(2.0))
    assert handle.rate == 1.0


@pytest.mark.unit
def test_detach_stops_following(registered_timeline, adapter_b, mock_media_handle):
    adapter_b.detach()
    adapter_b.detach()

    registered_timeline.seek(100)

    mock_media_handle.seek.assert_not_called()


@pytest.mark.unit
def test_default_tolerance_from_config(registered_timeline, adapter_b):
    assert adapter_b.drift_tolerance == registered_timeline.config.drift_tolerance


# ==================== TRANSPORT ====================

@pytest.mark.unit
def test_play_positions_rates_and_plays(registered_timeline, adapter_b, mock_media_handle):
    registered_timeline.seek(60)
    mock_media_handle.reset_mock()

    registered_timeline.play()

    mock_media_handle.seek.assert_called_once_with(pytest.approx(1.0))
    mock_media_handle.play.assert_called_once()
    assert mock_media_handle.rate == 1.0


@pytest.mark.unit
def test_pause_pauses_and_repositions(registered_timeline, adapter_b, mock_media_handle):
    registered_timeline.play()
    mock_media_handle.reset_mock()

    registered_timeline.pause()

    mock_media_handle.pause.assert_called_once()
    mock_media_handle.seek.assert_called_once_with(0.0)


@pytest.mark.unit
def test_seek_always_repositions(registered_timeline, adapter_b, mock_media_handle):
    """Explicit seeks ignore the drift tolerance."""
    mock_media_handle.position = 1.0

    registered_timeline.seek(60)

    mock_media_handle.seek.assert_called_once_with(pytest.approx(1.0))


@pytest.mark.unit
def test_tick_within_tolerance_leaves_media_alone(registered_timeline, adapter_b, mock_media_handle):
    mock_media_handle.position = 1.01

    adapter_b._on_notification(60, None, None)

    mock_media_handle.seek.assert_not_called()


@pytest.mark.unit
def test_tick_beyond_tolerance_repositions(registered_timeline, adapter_b, mock_media_handle):
    mock_media_handle.position = 1.5

    adapter_b._on_notification(60, None, None)

    mock_media_handle.seek.assert_called_once_with(pytest.approx(1.0))


@pytest.mark.unit
def test_rate_combines_user_and_stream_rate(warped_timeline, mock_media_handle):
    """Media rate is the user rate times the stream's instantaneous rate."""
    adapter = StreamAdapter(warped_timeline, STREAM_B, mock_media_handle)
    warped_timeline.seek(250)

    warped_timeline.set_playback_rate(2.0)

    assert mock_media_handle.rate == pytest.approx(2.0 / 3)
    assert adapter.target_rate == pytest.approx(2.0 / 3)


@pytest.mark.unit
def test_rate_updates_when_crossing_sync_point(warped_timeline, mock_media_handle):
    """Crossing the Impact sync point switches B to the next segment's rate."""
    StreamAdapter(warped_timeline, STREAM_B, mock_media_handle)

    warped_timeline.seek(400)
    assert mock_media_handle.rate == pytest.approx(1 / 3)

    warped_timeline.seek(600)
    assert mock_media_handle.rate == pytest.approx(2 / 3)


# ==================== PREVIEW ====================

@pytest.mark.unit
def test_preview_for_own_stream(registered_timeline, adapter_b, mock_media_handle):
    """A drag preview shows the exact native frame and pauses the stream."""
    registered_timeline.add_event("Top")
    top = next(kf for kf in registered_timeline.keyframes(STREAM_B) if kf.label == "Top")
    mock_media_handle.reset_mock()

    registered_timeline.move_keyframe(STREAM_B, top.id, 90)

    mock_media_handle.pause.assert_called_once()
    mock_media_handle.seek.assert_called_once_with(pytest.approx(90 / FPS))
    assert adapter_b.previewing


@pytest.mark.unit
def test_preview_for_other_stream_ignored(registered_timeline, adapter_b, mock_media_handle):
    registered_timeline.add_event("Top")
    top = next(kf for kf in registered_timeline.keyframes(STREAM_A) if kf.label == "Top")
    mock_media_handle.reset_mock()

    registered_timeline.move_keyframe(STREAM_A, top.id, 90)

    mock_media_handle.pause.assert_not_called()
    mock_media_handle.seek.assert_not_called()
    assert not adapter_b.previewing


@pytest.mark.unit
def test_reset_after_drag_leaves_preview(registered_timeline, adapter_b, mock_media_handle):
    registered_timeline.add_event("Top")
    top = next(kf for kf in registered_timeline.keyframes(STREAM_B) if kf.label == "Top")
    registered_timeline.move_keyframe(STREAM_B, top.id, 90)
    mock_media_handle.reset_mock()

    registered_timeline.reset_after_drag()

    assert not adapter_b.previewing
    mock_media_handle.seek.assert_called_once_with(0.0)


@pytest.mark.unit
def test_update_refreshes_rate(registered_timeline, adapter_b, mock_media_handle):
    registered_timeline.toggle_addressing_mode()

    assert mock_media_handle.rate == pytest.approx(0.5)
    assert registered_timeline.instantaneous_rate(STREAM_A) == pytest.approx(1.0)
