"""
Engine modules for the document image generation pipeline.
"""

from .catalog import BackgroundCatalog, BackgroundDefinition, CatalogError, TransparentBoundary
from .compose import (
    COMPOSITORS,
    CenterCompositor,
    CompositionResult,
    Compositor,
    EmbeddedCompositor,
    EmbeddedPlacement,
    Skipped,
    get_compositor,
)
from .freshness import OutputCache
from .ingest import BaseImage, BaseImageIngester, DocumentType
from .split import ARC4SeedRandom, Split, SplitAssigner

__all__ = [
    "BackgroundCatalog",
    "BackgroundDefinition",
    "CatalogError",
    "TransparentBoundary",
    "COMPOSITORS",
    "CenterCompositor",
    "CompositionResult",
    "Compositor",
    "EmbeddedCompositor",
    "EmbeddedPlacement",
    "Skipped",
    "get_compositor",
    "OutputCache",
    "BaseImage",
    "BaseImageIngester",
    "DocumentType",
    "ARC4SeedRandom",
    "Split",
    "SplitAssigner",
]
