"""
Composition IR Models.

Defines the versioned document that describes a timed arrangement of media
elements. Array order of ``CompositionIR.elements`` is the render (layer) order.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Set, Type, Union

from pydantic import BaseModel, ConfigDict, Field

ElementType = Literal["video", "audio", "image", "text", "shape"]
Easing = Literal["linear", "ease-in", "ease-out", "ease-in-out"]
FitMode = Literal["contain", "cover", "fill"]

ELEMENT_TYPES = ("video", "audio", "image", "text", "shape")

# Properties an Animation may target. Keyframe values are numbers.
ANIMATABLE_PROPERTIES = {
    "opacity",
    "scale",
    "scale_x",
    "scale_y",
    "x",
    "y",
    "rotation",
    "rotate_x",
    "rotate_y",
    "translate_x",
    "translate_y",
    "skew_x",
    "skew_y",
    "volume",
}

_VISUAL_ANIMATABLE = ANIMATABLE_PROPERTIES - {"volume"}

ANIMATABLE_BY_TYPE: Dict[str, Set[str]] = {
    "video": set(ANIMATABLE_PROPERTIES),
    "audio": {"volume"},
    "image": set(_VISUAL_ANIMATABLE),
    "text": set(_VISUAL_ANIMATABLE),
    "shape": set(_VISUAL_ANIMATABLE),
}


def animatable_properties(element_type: Optional[str]) -> Set[str]:
    """Animatable properties for an element type; every known one when the type is unknown."""
    if element_type is None:
        return set(ANIMATABLE_PROPERTIES)
    return ANIMATABLE_BY_TYPE.get(element_type, set())


def _now() -> datetime:
    return datetime.now(timezone.utc)


# --- Animation ---

class Keyframe(BaseModel):
    """Value of the animated property at a frame relative to the element start."""
    frame: int
    value: float


class Animation(BaseModel):
    """Keyframed transform on one property of one element."""
    property: str
    keyframes: List[Keyframe]
    easing: Easing = "linear"


# --- Properties (one variant per element type) ---

class _Properties(BaseModel):
    model_config = ConfigDict(extra="forbid")


class VideoProperties(_Properties):
    src: str
    volume: float = 1.0
    playback_rate: float = 1.0
    start_from: int = 0  # frame offset into the source
    end_at: Optional[int] = None
    fit: FitMode = "contain"
    x: float = 0.0
    y: float = 0.0
    width: Optional[float] = None
    height: Optional[float] = None
    opacity: float = 1.0


class AudioProperties(_Properties):
    src: str
    volume: float = 1.0
    playback_rate: float = 1.0
    start_from: int = 0
    end_at: Optional[int] = None


class ImageProperties(_Properties):
    src: str
    fit: FitMode = "contain"
    x: float = 0.0
    y: float = 0.0
    width: Optional[float] = None
    height: Optional[float] = None
    opacity: float = 1.0


class TextProperties(_Properties):
    text: str
    font_family: str = "Arial"
    font_size: float = 48
    font_weight: str = "normal"
    color: str = "#ffffff"
    background_color: Optional[str] = None
    text_align: Literal["left", "center", "right"] = "center"
    x: float = 960.0
    y: float = 540.0
    opacity: float = 1.0


class ShapeProperties(_Properties):
    shape: Literal["rectangle", "circle"] = "rectangle"
    fill: str = "#ffffff"
    border_radius: float = 0.0
    x: float = 0.0
    y: float = 0.0
    width: float = 100.0
    height: float = 100.0
    opacity: float = 1.0


PROPERTY_CLASSES: Dict[str, Type[_Properties]] = {
    "video": VideoProperties,
    "audio": AudioProperties,
    "image": ImageProperties,
    "text": TextProperties,
    "shape": ShapeProperties,
}


def valid_property_keys(element_type: str) -> Set[str]:
    """Keys accepted in the properties bag of the given element type."""
    cls = PROPERTY_CLASSES.get(element_type)
    if cls is None:
        return set()
    return set(cls.model_fields.keys())


# --- Elements ---

class ElementBase(BaseModel):
    """Fields shared by every placed element."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    label: Optional[str] = None
    from_frame: int = Field(0, alias="from")
    duration_in_frames: int
    animations: List[Animation] = Field(default_factory=list)

    @property
    def end_frame(self) -> int:
        return self.from_frame + self.duration_in_frames

    def animation_for(self, prop: str) -> Optional[Animation]:
        for anim in self.animations:
            if anim.property == prop:
                return anim
        return None


class VideoElement(ElementBase):
    type: Literal["video"] = "video"
    properties: VideoProperties


class AudioElement(ElementBase):
    type: Literal["audio"] = "audio"
    properties: AudioProperties


class ImageElement(ElementBase):
    type: Literal["image"] = "image"
    properties: ImageProperties


class TextElement(ElementBase):
    type: Literal["text"] = "text"
    properties: TextProperties


class ShapeElement(ElementBase):
    type: Literal["shape"] = "shape"
    properties: ShapeProperties


Element = Annotated[
    Union[VideoElement, AudioElement, ImageElement, TextElement, ShapeElement],
    Field(discriminator="type"),
]

ELEMENT_CLASSES: Dict[str, Type[ElementBase]] = {
    "video": VideoElement,
    "audio": AudioElement,
    "image": ImageElement,
    "text": TextElement,
    "shape": ShapeElement,
}


def build_element(element_type: str, **fields: Any) -> ElementBase:
    """Construct the element variant for ``element_type``."""
    cls = ELEMENT_CLASSES.get(element_type)
    if cls is None:
        raise ValueError(f"Unknown element type: {element_type}")
    return cls(**fields)


# --- Composition ---

class CompositionSettings(BaseModel):
    """Global settings of a composition."""
    fps: int = 30
    width: int = 1920
    height: int = 1080
    duration_in_frames: int = 300
    background_color: str = "#000000"


class CompositionIR(BaseModel):
    """
    Full timeline state at a version.
    """
    id: str
    version: int = 0
    settings: CompositionSettings = Field(default_factory=CompositionSettings)
    elements: List[Element] = Field(default_factory=list)

    def find(self, element_id: str) -> Optional[ElementBase]:
        for el in self.elements:
            if el.id == element_id:
                return el
        return None

    def index_of(self, element_id: str) -> int:
        for idx, el in enumerate(self.elements):
            if el.id == element_id:
                return idx
        return -1

    def element_ids(self) -> List[str]:
        return [el.id for el in self.elements]


class Composition(BaseModel):
    """
    Versioned container owning the live IR. Mutated only through the executor.
    """
    id: str
    project_id: str
    ir: CompositionIR
    version: int = 1
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @property
    def fps(self) -> int:
        return self.ir.settings.fps

    @property
    def width(self) -> int:
        return self.ir.settings.width

    @property
    def height(self) -> int:
        return self.ir.settings.height


class IRViolation(BaseModel):
    """A single invariant breach reported by ``validate_ir``."""
    category: Literal["identity", "range", "animation", "property", "settings"]
    message: str
    element_id: Optional[str] = None
    field: Optional[str] = None
    value: Any = None
