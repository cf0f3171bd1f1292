"""
Example: Synchronization Engine Usage

Demonstrates how two swings of different tempo are aligned with:
- Duration registration and Start/End anchors
- Linear stretch (SYNCED, keyframes off)
- Event-marker warp (SYNCED, keyframes on)
- Per-segment tempo analysis
"""

import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from core.timeline import ComparisonTimeline, STREAM_A, STREAM_B


def print_positions(timeline, title):
    print(f"\n[*] {title}")
    for v in (0, 250, 500, 750, 1000):
        a = timeline.position_for(STREAM_A, v)
        b = timeline.position_for(STREAM_B, v)
        print(f"  v={v:>5}: A={a:6.3f}s  B={b:6.3f}s")


def main():
    print("=" * 60)
    print("Swing comparison: reference 10s, student 5s")
    print("=" * 60)

    timeline = ComparisonTimeline()
    timeline.register_stream_duration(STREAM_A, 10.0)
    timeline.register_stream_duration(STREAM_B, 5.0)
    print(f"\n[+] UNSYNCED total range: {timeline.total_range:.0f} steps")

    timeline.toggle_addressing_mode()
    timeline.set_keyframes_enabled(False)
    print_positions(timeline, "Linear stretch")
    print(f"  rate B = {timeline.instantaneous_rate(STREAM_B):.2f}")

    timeline.set_keyframes_enabled(True)
    timeline.add_event("Top")
    timeline.add_event("Impact")

    # Place Impact late in the reference swing and early in the student swing
    impact_a = next(kf for kf in timeline.keyframes(STREAM_A) if kf.label == "Impact")
    impact_b = next(kf for kf in timeline.keyframes(STREAM_B) if kf.label == "Impact")
    timeline.move_keyframe(STREAM_A, impact_a.id, 500)
    timeline.move_keyframe(STREAM_B, impact_b.id, 200)
    timeline.reset_after_drag()

    print("\n[*] Sync points:")
    for point in timeline.sync_points():
        print(f"  {point.label:<8} v={point.virtual_position:7.2f}  A={point.step_a:>4}  B={point.step_b:>4}")

    print_positions(timeline, "Keyframe warp")

    print("\n[*] Relative speed (student vs reference):")
    for segment in timeline.segment_analysis():
        print(f"  {segment.start_label} -> {segment.end_label}: "
              f"{segment.percentage}% ({segment.category})")

    timeline.close()


if __name__ == "__main__":
    main()
