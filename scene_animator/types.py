from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator, model_validator


Easing = Literal["linear", "easeIn", "easeOut", "easeInOut"]


class _Model(BaseModel):
    # Scene documents use camelCase keys; Python callers use field names.
    model_config = ConfigDict(populate_by_name=True)


class Point2D(_Model):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class Transform(_Model):
    translate: Point2D = Field(default_factory=lambda: Point2D(x=0.0, y=0.0))
    rotate: float = Field(0.0, description="Rotation in radians")
    scale: Point2D = Field(default_factory=lambda: Point2D(x=1.0, y=1.0))


class ShapeStyle(_Model):
    fill_color: str = Field(..., alias="color", description="Fill colour, usually #rrggbb")
    stroke_color: Optional[str] = Field(None, alias="strokeColor")
    stroke_width: Optional[float] = Field(None, alias="strokeWidth")


class TriangleProperties(ShapeStyle):
    size: float = Field(..., description="Distance from centre to apex")


class CircleProperties(ShapeStyle):
    radius: float


class RectangleProperties(ShapeStyle):
    width: float
    height: float


class _SceneObjectBase(_Model):
    id: str
    initial_position: Point2D = Field(..., alias="initialPosition")
    initial_rotation: float = Field(0.0, alias="initialRotation")
    initial_scale: Point2D = Field(default_factory=lambda: Point2D(x=1.0, y=1.0), alias="initialScale")
    initial_opacity: float = Field(1.0, alias="initialOpacity")

    @field_validator("initial_rotation", "initial_opacity", mode="before")
    @classmethod
    def _none_to_default(cls, value: Any, info) -> Any:
        if value is None:
            return 0.0 if info.field_name == "initial_rotation" else 1.0
        return value

    @field_validator("initial_scale", mode="before")
    @classmethod
    def _default_scale(cls, value: Any) -> Any:
        return {"x": 1.0, "y": 1.0} if value is None else value


class TriangleObject(_SceneObjectBase):
    kind: Literal["triangle"] = Field("triangle", alias="type")
    properties: TriangleProperties


class CircleObject(_SceneObjectBase):
    kind: Literal["circle"] = Field("circle", alias="type")
    properties: CircleProperties


class RectangleObject(_SceneObjectBase):
    kind: Literal["rectangle"] = Field("rectangle", alias="type")
    properties: RectangleProperties


def _kind_of(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("kind", value.get("type"))
    return getattr(value, "kind", None)


SceneObject = Annotated[
    Union[
        Annotated[TriangleObject, Tag("triangle")],
        Annotated[CircleObject, Tag("circle")],
        Annotated[RectangleObject, Tag("rectangle")],
    ],
    Discriminator(_kind_of),
]


class MovePayload(_Model):
    from_: Point2D = Field(..., alias="from")
    to: Point2D


class RotatePayload(_Model):
    from_: float = Field(..., alias="from", description="Start angle in radians")
    to: float = Field(..., description="End angle in radians, ignored when rotations is set")
    rotations: Optional[float] = Field(None, description="Full turns added to 'from'")


class ScalePayload(_Model):
    from_: Union[Point2D, float] = Field(..., alias="from")
    to: Union[Point2D, float]


class FadePayload(_Model):
    from_: float = Field(..., alias="from")
    to: float

    @field_validator("from_", "to")
    @classmethod
    def _clamp_opacity(cls, value: float) -> float:
        return max(0.0, min(1.0, value))


class ColorPayload(_Model):
    from_: str = Field(..., alias="from")
    to: str
    target: Literal["fill", "stroke"] = Field("fill", alias="property")


class _TrackBase(_Model):
    object_id: str = Field(..., alias="objectId")
    start_time: float = Field(0.0, alias="startTime", description="Seconds from scene start")
    duration: float = Field(..., ge=0)
    easing: Easing = "linear"

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


class MoveTrack(_TrackBase):
    kind: Literal["move"] = Field("move", alias="type")
    payload: MovePayload = Field(..., alias="properties")


class RotateTrack(_TrackBase):
    kind: Literal["rotate"] = Field("rotate", alias="type")
    payload: RotatePayload = Field(..., alias="properties")


class ScaleTrack(_TrackBase):
    kind: Literal["scale"] = Field("scale", alias="type")
    payload: ScalePayload = Field(..., alias="properties")


class FadeTrack(_TrackBase):
    kind: Literal["fade"] = Field("fade", alias="type")
    payload: FadePayload = Field(..., alias="properties")


class ColorTrack(_TrackBase):
    kind: Literal["color"] = Field("color", alias="type")
    payload: ColorPayload = Field(..., alias="properties")


AnimationTrack = Annotated[
    Union[
        Annotated[MoveTrack, Tag("move")],
        Annotated[RotateTrack, Tag("rotate")],
        Annotated[ScaleTrack, Tag("scale")],
        Annotated[FadeTrack, Tag("fade")],
        Annotated[ColorTrack, Tag("color")],
    ],
    Discriminator(_kind_of),
]


class MarkupOverlay(_Model):
    source: str = Field(..., alias="equation", description="Expression handed to the markup compiler")
    anchor: Point2D = Field(..., alias="position")
    scale: float = 1.0

    @field_validator("scale", mode="before")
    @classmethod
    def _default_scale(cls, value: Any) -> Any:
        return 1.0 if value is None else value


class AnimationScene(_Model):
    duration: float = Field(..., description="Scene length in seconds")
    objects: List[SceneObject] = Field(default_factory=list)
    animations: List[AnimationTrack] = Field(default_factory=list)
    markup_overlay: Optional[MarkupOverlay] = Field(None, alias="latex")
    background_color: Optional[str] = Field(None, alias="backgroundColor")

    @model_validator(mode="before")
    @classmethod
    def _lift_background(cls, data: Any) -> Any:
        # {"background": {"color": ...}} is the document form
        if isinstance(data, dict) and isinstance(data.get("background"), dict):
            data = dict(data)
            background = data.pop("background")
            data.setdefault("backgroundColor", background.get("color"))
        return data

    def object_ids(self) -> List[str]:
        return [obj.id for obj in self.objects]


class ObjectState(_Model):
    position: Point2D
    rotation: float = 0.0
    scale: Point2D = Field(default_factory=lambda: Point2D(x=1.0, y=1.0))
    opacity: float = 1.0
    fill_color: str
    stroke_color: Optional[str] = None


class VideoConfig(_Model):
    width: int
    height: int
    fps: int
    preset: str = "medium"
    crf: int = 18


class RenderConfig(BaseModel):
    width: int = 1920
    height: int = 1080
    fps: int = 60
    background_color: str = "#000000"
    video_preset: str = "medium"
    video_crf: int = 18
    output_dir: str = "./animations"
