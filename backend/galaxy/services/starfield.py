"""
Star field data for the rotating galaxy background.

The browser animates the canvas; this module only produces the particles:
a fixed base of background stars plus one star per knowledge node, each
orbiting the canvas centre at its own angular speed.
"""
from __future__ import annotations

import math
import random

from galaxy.models.galaxy import Star, StarField, StarPosition

CANVAS_SIZE = 300
CENTER = CANVAS_SIZE / 2
MAX_RADIUS = 140.0
MAX_STAR_SIZE = 1.5
MIN_SPEED = 0.0005
SPEED_SPREAD = 0.001


def build_stars(total_stars: int, base_count: int = 100, seed: int | None = None) -> list[Star]:
    rng = random.Random(seed)
    return [
        Star(
            size=rng.random() * MAX_STAR_SIZE,
            speed=MIN_SPEED + rng.random() * SPEED_SPREAD,
            angle=rng.random() * math.pi * 2,
            radius=rng.random() * MAX_RADIUS,
        )
        for _ in range(base_count + max(total_stars, 0))
    ]


def star_position(star: Star, frame: int = 0) -> StarPosition:
    angle = star.angle + star.speed * frame
    return StarPosition(
        x=CENTER + math.cos(angle) * star.radius,
        y=CENTER + math.sin(angle) * star.radius,
        size=star.size,
    )


def build_starfield(
    total_stars: int,
    base_count: int = 100,
    seed: int | None = None,
    frame: int = 0,
) -> StarField:
    stars = build_stars(total_stars, base_count, seed)
    return StarField(
        total_stars=total_stars,
        canvas_size=CANVAS_SIZE,
        stars=stars,
        positions=[star_position(s, frame) for s in stars],
        frame=frame,
    )
