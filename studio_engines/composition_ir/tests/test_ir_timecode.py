import pytest

from studio_engines.composition_ir.animation import apply_easing, sample_animation, sample_element_property
from studio_engines.composition_ir.models import Animation, Keyframe
from studio_engines.composition_ir.tests.builders import make_ir, text, video
from studio_engines.composition_ir.timecode import (
    elements_overlap,
    format_duration,
    frames_to_timecode,
    seconds_to_frames,
    timecode_to_frames,
    total_duration,
)


def test_timecode_roundtrip_values():
    assert frames_to_timecode(95, 30) == "00:00:03:05"
    assert frames_to_timecode(30 * 3661, 30) == "01:01:01:00"
    assert timecode_to_frames("00:00:03:05", 30) == 95


def test_timecode_rejects_bad_format():
    with pytest.raises(ValueError):
        timecode_to_frames("0:05.5", 30)


def test_seconds_to_frames_floors():
    assert seconds_to_frames(2.99, 30) == 89
    assert seconds_to_frames(10, 24) == 240


def test_format_duration():
    assert format_duration(15, 30) == "500ms"
    assert format_duration(45, 30) == "1.5s"
    assert format_duration(3750, 30) == "2:05"


def test_total_duration_and_overlap():
    a = video("a", from_frame=0, duration=90)
    b = text("b", from_frame=60, duration=60)
    c = text("c", from_frame=90, duration=10)
    assert total_duration(make_ir(a, b, c)) == 120
    assert total_duration(make_ir()) == 0
    assert elements_overlap(a, b)
    assert not elements_overlap(a, c)


def test_sample_linear_and_clamped():
    anim = Animation(property="opacity", keyframes=[Keyframe(frame=10, value=0), Keyframe(frame=20, value=1)])
    assert sample_animation(anim, 0) == 0
    assert sample_animation(anim, 15) == pytest.approx(0.5)
    assert sample_animation(anim, 99) == 1


def test_sample_multi_segment_with_easing():
    anim = Animation(
        property="scale",
        keyframes=[Keyframe(frame=0, value=1), Keyframe(frame=10, value=2), Keyframe(frame=20, value=0)],
        easing="ease-in",
    )
    assert sample_animation(anim, 5) == pytest.approx(1.25)
    assert sample_animation(anim, 10) == pytest.approx(2)
    assert sample_animation(anim, 15) == pytest.approx(1.5)


def test_easing_curves():
    assert apply_easing(0.5, "linear") == 0.5
    assert apply_easing(0.5, "ease-out") == pytest.approx(0.75)
    assert apply_easing(0.25, "ease-in-out") == pytest.approx(0.125)
    assert apply_easing(0.75, "ease-in-out") == pytest.approx(0.875)
    with pytest.raises(ValueError):
        apply_easing(0.5, "bounce")


def test_sample_element_property_uses_timeline_frame():
    el = video("v1", from_frame=100)
    el.animations = [Animation(property="opacity", keyframes=[Keyframe(frame=0, value=0), Keyframe(frame=30, value=1)])]
    assert sample_element_property(el, "opacity", 115) == pytest.approx(0.5)
    assert sample_element_property(el, "scale", 115) is None
