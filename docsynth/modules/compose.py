"""
Composition of base document images onto background images.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from ..utils import (
    composite,
    fit_longest_side,
    image_size,
    resize_image,
)
from .catalog import BackgroundDefinition, TransparentBoundary

logger = logging.getLogger("docsynth.compose")

CENTER_MARGIN = 1.2


@dataclass
class CompositionResult:
    """Result of image composition."""
    image: np.ndarray
    position: Tuple[int, int]

    @property
    def size(self) -> Tuple[int, int]:
        return image_size(self.image)


@dataclass
class Skipped:
    """A pair the compositor declined to produce, by policy rather than failure."""
    reason: str


@dataclass
class EmbeddedPlacement:
    """Geometry of a base image fitted into a background cutout."""
    base_size: Tuple[int, int]
    background_size: Tuple[int, int]
    position: Tuple[int, int]
    scale: float


def orientation_of(size: Tuple[int, int]) -> str:
    width, height = size
    return "landscape" if width > height else "portrait"


class Compositor(ABC):
    """Places a base image on a background according to a background definition."""

    mode: str = ""

    def accepts(self, base_size: Tuple[int, int], entry: BackgroundDefinition) -> Optional[Skipped]:
        """Return Skipped when a base of `base_size` cannot be placed on `entry`."""
        return None

    @abstractmethod
    def compose(
        self,
        base: np.ndarray,
        background: np.ndarray,
        entry: BackgroundDefinition
    ) -> Union[CompositionResult, Skipped]:
        """
        Compose `base` onto `background`.

        Args:
            base: RGBA base document image
            background: RGBA background image
            entry: Background definition carrying placement metadata

        Returns:
            CompositionResult, or Skipped if the pair is not applicable
        """
        pass


class CenterCompositor(Compositor):
    """Places the unscaled base image at the center of a resized background."""

    mode = "center"

    def __init__(self, margin: float = CENTER_MARGIN):
        self.margin = margin

    def target_size(
        self,
        base_size: Tuple[int, int],
        background_size: Tuple[int, int]
    ) -> Tuple[int, int]:
        """Background size whose longer side is `margin` times the base's longer side."""
        longest = round(max(base_size) * self.margin)
        return fit_longest_side(background_size, longest)

    def compose(
        self,
        base: np.ndarray,
        background: np.ndarray,
        entry: BackgroundDefinition
    ) -> CompositionResult:
        base_w, base_h = image_size(base)
        canvas = resize_image(
            background,
            self.target_size((base_w, base_h), image_size(background))
        )
        canvas_w, canvas_h = image_size(canvas)

        # Negative offsets crop the base when it is larger than the canvas.
        position = ((canvas_w - base_w) // 2, (canvas_h - base_h) // 2)

        return CompositionResult(
            image=composite(canvas, base, position, blend="over"),
            position=position
        )


class EmbeddedCompositor(Compositor):
    """
    Fits the base image into the transparent cutout of a background.

    The base is stretched to the cutout's aspect ratio while keeping its
    width, then the background is scaled so the cutout is exactly as wide
    as the base. The base goes behind the background, so printed frames and
    decorations around or over the cutout stay visible.
    """

    mode = "embedded"

    def accepts(self, base_size: Tuple[int, int], entry: BackgroundDefinition) -> Optional[Skipped]:
        if orientation_of(base_size) != entry.orientation:
            return Skipped(reason="orientation")
        return None

    def plan(
        self,
        base_size: Tuple[int, int],
        background_size: Tuple[int, int],
        boundary: TransparentBoundary
    ) -> EmbeddedPlacement:
        base_w, _ = base_size
        bg_w, bg_h = background_size

        fitted_base = (base_w, math.floor(base_w * boundary.height / boundary.width))

        scale = fitted_base[0] / (bg_w * boundary.width)
        scaled_bg = (math.floor(bg_w * scale), math.floor(bg_h * scale))

        position = (
            math.floor(boundary.left * scaled_bg[0]),
            math.floor(boundary.top * scaled_bg[1])
        )

        return EmbeddedPlacement(
            base_size=fitted_base,
            background_size=scaled_bg,
            position=position,
            scale=scale
        )

    def compose(
        self,
        base: np.ndarray,
        background: np.ndarray,
        entry: BackgroundDefinition
    ) -> Union[CompositionResult, Skipped]:
        base_size = image_size(base)
        skipped = self.accepts(base_size, entry)
        if skipped is not None:
            return skipped

        placement = self.plan(base_size, image_size(background), entry.transparent_boundary)
        logger.debug(
            f"Embedding into {entry.filename}: base {placement.base_size}, "
            f"background {placement.background_size}, offset {placement.position}"
        )

        fitted_base = resize_image(base, placement.base_size)
        canvas = resize_image(background, placement.background_size)

        return CompositionResult(
            image=composite(canvas, fitted_base, placement.position, blend="dest-over"),
            position=placement.position
        )


# Compositor registry
COMPOSITORS = {
    "center": CenterCompositor,
    "embedded": EmbeddedCompositor,
}


def get_compositor(mode: str) -> Compositor:
    """Get a compositor instance by composite mode."""
    if mode not in COMPOSITORS:
        raise ValueError(f"Unknown composite mode: {mode}. Available: {list(COMPOSITORS.keys())}")
    return COMPOSITORS[mode]()
