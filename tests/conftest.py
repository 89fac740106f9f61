"""
Shared fixtures for all tests.

Images are synthesized with Pillow into `tmp_path`; no fixture files are
checked into the repository.
"""
import json
import os
import sys
import time
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


def write_image(path: Path, size, color=RED) -> Path:
    """Write a solid-color image; JPEG files are saved without alpha."""
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGBA", size, color)
    if path.suffix.lower() in (".jpg", ".jpeg"):
        img.convert("RGB").save(path, format="JPEG", quality=95)
    else:
        img.save(path, format="PNG")
    return path


def frame_array(size, boundary, color=BLUE) -> np.ndarray:
    """Opaque RGBA background with a fully transparent rectangular cutout."""
    width, height = size
    arr = np.zeros((height, width, 4), dtype=np.uint8)
    arr[:, :] = color
    left = int(boundary["left"] * width)
    top = int(boundary["top"] * height)
    right = int((boundary["left"] + boundary["width"]) * width)
    bottom = int((boundary["top"] + boundary["height"]) * height)
    arr[top:bottom, left:right] = 0
    return arr


def write_array(path: Path, arr: np.ndarray) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(arr).save(path, format="PNG")
    return path


def set_mtime(path: Path, timestamp: float) -> None:
    os.utime(path, (timestamp, timestamp))


# =============================================================================
# Image Fixtures
# =============================================================================

@pytest.fixture
def red_base():
    """400x200 opaque red landscape base, as an RGBA array."""
    arr = np.zeros((200, 400, 4), dtype=np.uint8)
    arr[:, :] = RED
    return arr


@pytest.fixture
def embedded_boundary():
    return {"left": 0.1, "top": 0.1, "width": 0.5, "height": 0.3}


# =============================================================================
# Workspace Fixtures
# =============================================================================

@pytest.fixture
def workspace(tmp_path):
    """
    A complete input layout:

        bases/cashcard/card_a.png    120x80 landscape
        bases/cashcard/card_b.jpg    80x120 portrait
        background/plain.png         200x150, catalog index 0 (center)
        background/frame.png         300x200, catalog index 1 (embedded, landscape)
        background/background-meta.json
    """
    past = time.time() - 1000

    bases_dir = tmp_path / "bases"
    card_a = write_image(bases_dir / "cashcard" / "card_a.png", (120, 80), RED)
    card_b = write_image(bases_dir / "cashcard" / "card_b.jpg", (80, 120), GREEN)
    for path in (card_a, card_b):
        set_mtime(path, past)

    boundary = {"left": 0.1, "top": 0.1, "width": 0.5, "height": 0.4}
    background_dir = tmp_path / "background"
    write_image(background_dir / "plain.png", (200, 150), BLUE)
    write_array(background_dir / "frame.png", frame_array((300, 200), boundary))

    catalog = [
        {"filename": "plain.png", "composite": "center"},
        {
            "filename": "frame.png",
            "composite": "embedded",
            "orientation": "landscape",
            "transparentBoundary": boundary,
        },
    ]
    catalog_path = background_dir / "background-meta.json"
    catalog_path.write_text(json.dumps(catalog), encoding="utf-8")

    return {
        "root": tmp_path,
        "bases_dir": bases_dir,
        "background_dir": background_dir,
        "catalog": catalog_path,
        "output_dir": tmp_path / "out",
        "card_a": card_a,
        "card_b": card_b,
    }
