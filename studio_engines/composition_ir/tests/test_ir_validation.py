import pytest
from pydantic import ValidationError

from studio_engines.composition_ir.models import (
    Animation,
    CompositionIR,
    Keyframe,
    VideoProperties,
    valid_property_keys,
)
from studio_engines.composition_ir.tests.builders import audio, make_ir, shape, text, video
from studio_engines.composition_ir.validation import is_valid, validate_ir


def _fields(violations):
    return {(v.element_id, v.field) for v in violations}


def test_valid_ir_has_no_violations():
    ir = make_ir(video("v1", "Intro"), audio("a1"), text("t1"), shape("s1"))
    assert validate_ir(ir) == []
    assert is_valid(ir)


def test_duplicate_ids_reported():
    ir = make_ir(video("v1"), text("v1"))
    violations = validate_ir(ir)
    assert len(violations) == 1
    assert violations[0].category == "identity"
    assert violations[0].value == "v1"


def test_negative_from_and_zero_duration():
    ir = make_ir(video("v1", from_frame=-1), text("t1", duration=0))
    assert _fields(validate_ir(ir)) == {("v1", "from_frame"), ("t1", "duration_in_frames")}


@pytest.mark.parametrize(
    "element, field",
    [
        (video("v1", volume=1.5), "properties.volume"),
        (video("v1", opacity=-0.1), "properties.opacity"),
        (audio("a1", playback_rate=0.1), "properties.playback_rate"),
        (audio("a1", playback_rate=4.5), "properties.playback_rate"),
        (text("t1", opacity=2), "properties.opacity"),
    ],
)
def test_property_domains(element, field):
    violations = validate_ir(make_ir(element))
    assert [v.field for v in violations] == [field]
    assert violations[0].category == "property"


def test_domain_bounds_are_inclusive():
    ir = make_ir(video("v1", volume=0, opacity=1, playback_rate=0.25), audio("a1", volume=1, playback_rate=4))
    assert validate_ir(ir) == []


def test_animation_needs_two_increasing_keyframes():
    el = video("v1")
    el.animations = [
        Animation(property="opacity", keyframes=[Keyframe(frame=0, value=0)]),
        Animation(property="scale", keyframes=[Keyframe(frame=10, value=1), Keyframe(frame=10, value=2)]),
    ]
    violations = validate_ir(make_ir(el))
    assert {v.field for v in violations} == {"animations.opacity", "animations.scale"}
    assert all(v.category == "animation" for v in violations)


def test_animations_on_distinct_properties_coexist():
    el = text("t1")
    el.animations = [
        Animation(property="opacity", keyframes=[Keyframe(frame=0, value=0), Keyframe(frame=30, value=1)]),
        Animation(property="scale", keyframes=[Keyframe(frame=0, value=1), Keyframe(frame=30, value=2)], easing="ease-in"),
    ]
    assert validate_ir(make_ir(el)) == []


def test_duplicate_animation_property_rejected():
    el = text("t1")
    kfs = [Keyframe(frame=0, value=0), Keyframe(frame=30, value=1)]
    el.animations = [Animation(property="opacity", keyframes=kfs), Animation(property="opacity", keyframes=kfs)]
    assert [v.category for v in validate_ir(make_ir(el))] == ["animation"]


def test_non_animatable_property_rejected():
    el = text("t1")
    el.animations = [Animation(property="color", keyframes=[Keyframe(frame=0, value=0), Keyframe(frame=5, value=1)])]
    violations = validate_ir(make_ir(el))
    assert violations[0].category == "property"
    assert violations[0].value == "color"


@pytest.mark.parametrize(
    "element, prop",
    [(text("t1"), "volume"), (audio("a1"), "opacity"), (shape("s1"), "volume")],
)
def test_animatable_properties_depend_on_element_type(element, prop):
    element.animations = [Animation(property=prop, keyframes=[Keyframe(frame=0, value=0), Keyframe(frame=5, value=1)])]
    violations = validate_ir(make_ir(element))
    assert [(v.category, v.field) for v in violations] == [("property", f"animations.{prop}")]


def test_video_animates_volume():
    el = video("v1")
    el.animations = [Animation(property="volume", keyframes=[Keyframe(frame=0, value=0), Keyframe(frame=30, value=1)])]
    assert is_valid(make_ir(el))


def test_settings_must_be_positive():
    ir = make_ir(fps=0)
    assert [v.field for v in validate_ir(ir)] == ["fps"]


def test_properties_reject_unknown_keys():
    with pytest.raises(ValidationError):
        VideoProperties(src="x", font_size=12)


def test_valid_property_keys_per_type():
    assert "volume" in valid_property_keys("audio")
    assert "text" not in valid_property_keys("video")
    assert {"text", "font_size", "color"} <= valid_property_keys("text")
    assert valid_property_keys("unknown") == set()


def test_ir_parses_tagged_elements_from_json():
    ir = CompositionIR.model_validate(
        {
            "id": "c1",
            "elements": [
                {"id": "t1", "type": "text", "from": 15, "duration_in_frames": 30, "properties": {"text": "Hi"}},
                {"id": "v1", "type": "video", "duration_in_frames": 60, "properties": {"src": "a.mp4"}},
            ],
        }
    )
    assert ir.elements[0].from_frame == 15
    assert ir.elements[0].properties.text == "Hi"
    assert ir.elements[1].properties.volume == 1.0
    assert ir.model_dump(by_alias=True)["elements"][0]["from"] == 15


def test_text_element_rejects_video_properties():
    with pytest.raises(ValidationError):
        CompositionIR.model_validate(
            {"id": "c1", "elements": [{"id": "t1", "type": "text", "duration_in_frames": 30, "properties": {"src": "a.mp4"}}]}
        )
