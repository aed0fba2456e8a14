from pydantic import BaseModel


class Star(BaseModel):
    size: float
    speed: float    # radians per frame
    angle: float    # initial angle, radians
    radius: float   # distance from the canvas centre


class StarPosition(BaseModel):
    x: float
    y: float
    size: float


class StarField(BaseModel):
    total_stars: int
    canvas_size: int
    stars: list[Star]
    positions: list[StarPosition]
    frame: int


class StarCount(BaseModel):
    total_stars: int
