from __future__ import annotations

from typing import Any, Optional

from studio_engines.composition_ir.models import (
    AudioElement,
    AudioProperties,
    CompositionIR,
    CompositionSettings,
    ImageElement,
    ImageProperties,
    ShapeElement,
    ShapeProperties,
    TextElement,
    TextProperties,
    VideoElement,
    VideoProperties,
)


def video(id: str, label: Optional[str] = None, from_frame: int = 0, duration: int = 90, **props: Any) -> VideoElement:
    props.setdefault("src", f"https://cdn.example.com/{id}.m3u8")
    return VideoElement(id=id, label=label, from_frame=from_frame, duration_in_frames=duration, properties=VideoProperties(**props))


def audio(id: str, label: Optional[str] = None, from_frame: int = 0, duration: int = 90, **props: Any) -> AudioElement:
    props.setdefault("src", f"https://cdn.example.com/{id}.mp3")
    return AudioElement(id=id, label=label, from_frame=from_frame, duration_in_frames=duration, properties=AudioProperties(**props))


def image(id: str, label: Optional[str] = None, from_frame: int = 0, duration: int = 90, **props: Any) -> ImageElement:
    props.setdefault("src", f"https://cdn.example.com/{id}.png")
    return ImageElement(id=id, label=label, from_frame=from_frame, duration_in_frames=duration, properties=ImageProperties(**props))


def text(id: str, label: Optional[str] = None, from_frame: int = 0, duration: int = 90, **props: Any) -> TextElement:
    props.setdefault("text", "Hello")
    return TextElement(id=id, label=label, from_frame=from_frame, duration_in_frames=duration, properties=TextProperties(**props))


def shape(id: str, label: Optional[str] = None, from_frame: int = 0, duration: int = 90, **props: Any) -> ShapeElement:
    return ShapeElement(id=id, label=label, from_frame=from_frame, duration_in_frames=duration, properties=ShapeProperties(**props))


def make_ir(*elements, fps: int = 30, version: int = 1, ir_id: str = "comp_test") -> CompositionIR:
    return CompositionIR(id=ir_id, version=version, settings=CompositionSettings(fps=fps), elements=list(elements))
