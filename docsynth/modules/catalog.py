"""
Background catalog loading and validation.

The catalog is a JSON list of background definitions:

    [
        {"filename": "desk.jpg", "composite": "center"},
        {
            "filename": "wallet.png",
            "composite": "embedded",
            "orientation": "landscape",
            "transparentBoundary": {"left": 0.1, "top": 0.2, "width": 0.5, "height": 0.3}
        }
    ]

The position of an entry in the list is its index, used in output names.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger("docsynth.catalog")

COMPOSITE_MODES = ("center", "embedded")
ORIENTATIONS = ("landscape", "portrait")


class CatalogError(ValueError):
    """Raised when the background catalog cannot be used."""


@dataclass(frozen=True)
class TransparentBoundary:
    """Cutout rectangle as fractions of the background width/height."""
    left: float
    top: float
    width: float
    height: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransparentBoundary":
        if not isinstance(data, dict):
            raise CatalogError(f"transparentBoundary must be an object, got {type(data).__name__}")

        values = {}
        for name in ("left", "top", "width", "height"):
            value = data.get(name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise CatalogError(f"transparentBoundary.{name} must be a number, got {value!r}")
            values[name] = float(value)

        boundary = cls(**values)
        boundary.validate()
        return boundary

    def validate(self) -> None:
        if self.left < 0 or self.top < 0:
            raise CatalogError(f"Boundary origin must be non-negative: {self}")
        if self.width <= 0 or self.height <= 0:
            raise CatalogError(f"Boundary size must be positive: {self}")
        if self.left + self.width > 1 or self.top + self.height > 1:
            raise CatalogError(f"Boundary exceeds the background: {self}")


@dataclass(frozen=True)
class BackgroundDefinition:
    """One catalog entry describing a background and how to place a base on it."""
    index: int
    filename: str
    composite: str
    orientation: Optional[str] = None
    transparent_boundary: Optional[TransparentBoundary] = None

    @property
    def key(self) -> str:
        """Index as used in output file names."""
        return str(self.index)

    @classmethod
    def from_dict(cls, index: int, data: Dict[str, Any]) -> "BackgroundDefinition":
        """Parse and validate a raw catalog record."""
        if not isinstance(data, dict):
            raise CatalogError(f"Entry {index} must be an object, got {type(data).__name__}")

        filename = data.get("filename")
        if not isinstance(filename, str) or not filename:
            raise CatalogError(f"Entry {index}: missing 'filename'")

        composite = data.get("composite")
        if composite not in COMPOSITE_MODES:
            raise CatalogError(
                f"Entry {index}: unknown composite mode {composite!r}. "
                f"Available: {list(COMPOSITE_MODES)}"
            )

        orientation = data.get("orientation")
        boundary_data = data.get("transparentBoundary")
        boundary = None

        if composite == "embedded":
            if orientation not in ORIENTATIONS:
                raise CatalogError(
                    f"Entry {index}: embedded backgrounds need an orientation "
                    f"in {list(ORIENTATIONS)}, got {orientation!r}"
                )
            if boundary_data is None:
                raise CatalogError(f"Entry {index}: embedded backgrounds need 'transparentBoundary'")
            try:
                boundary = TransparentBoundary.from_dict(boundary_data)
            except CatalogError as e:
                raise CatalogError(f"Entry {index}: {e}") from e
        elif orientation is not None and orientation not in ORIENTATIONS:
            raise CatalogError(f"Entry {index}: invalid orientation {orientation!r}")

        return cls(
            index=index,
            filename=filename,
            composite=composite,
            orientation=orientation,
            transparent_boundary=boundary
        )


class BackgroundCatalog:
    """Ordered, read-only collection of background definitions."""

    def __init__(self, entries: List[BackgroundDefinition], background_dir: Path):
        self.entries = list(entries)
        self.background_dir = Path(background_dir)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[BackgroundDefinition]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> BackgroundDefinition:
        return self.entries[index]

    def path_for(self, entry: BackgroundDefinition) -> Path:
        return self.background_dir / entry.filename

    def items(self) -> Iterator[Tuple[BackgroundDefinition, Path]]:
        """Iterate (entry, background path) in catalog order."""
        for entry in self.entries:
            yield entry, self.path_for(entry)

    def missing_files(self) -> List[Path]:
        return [path for _, path in self.items() if not path.exists()]

    @classmethod
    def from_records(cls, records: Any, background_dir: Path) -> "BackgroundCatalog":
        if not isinstance(records, list):
            raise CatalogError(
                f"Catalog must be a JSON list of background definitions, got {type(records).__name__}"
            )
        entries = [BackgroundDefinition.from_dict(i, record) for i, record in enumerate(records)]
        return cls(entries, background_dir)

    @classmethod
    def load(cls, catalog_path: Path, background_dir: Optional[Path] = None) -> "BackgroundCatalog":
        """
        Load the catalog from a JSON file.

        Args:
            catalog_path: Path to the JSON catalog
            background_dir: Directory holding the background images
                (default: the catalog's directory)

        Raises:
            CatalogError: If the file is unreadable, not valid JSON or any
                entry is invalid
        """
        catalog_path = Path(catalog_path)
        if background_dir is None:
            background_dir = catalog_path.parent

        try:
            with open(catalog_path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except FileNotFoundError as e:
            raise CatalogError(f"Background catalog not found: {catalog_path}") from e
        except json.JSONDecodeError as e:
            raise CatalogError(f"Malformed background catalog {catalog_path}: {e}") from e

        catalog = cls.from_records(records, background_dir)

        for path in catalog.missing_files():
            logger.warning(f"Background image not found: {path}")

        logger.info(f"Loaded {len(catalog)} background definitions from {catalog_path}")
        return catalog
