"""
Image and bookkeeping utilities for the document image generator.
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import cv2
import numpy as np

BLEND_MODES = ("over", "dest-over")


def setup_logging(output_dir: Path, verbose: bool = False) -> logging.Logger:
    """Setup logging to file and console."""
    log_dir = Path(output_dir) / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"generation_{timestamp}.log"

    logger = logging.getLogger("docsynth")
    logger.setLevel(logging.DEBUG)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    file_handler.setFormatter(file_formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_formatter = logging.Formatter("%(levelname)s: %(message)s")
    console_handler.setFormatter(console_formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


def load_image_rgba(path: Union[str, Path]) -> np.ndarray:
    """Load image as RGBA numpy array."""
    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ValueError(f"Failed to load image: {path}")

    if img.dtype != np.uint8:
        img = cv2.convertScaleAbs(img, alpha=255.0 / np.iinfo(img.dtype).max)

    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    elif img.shape[2] == 3:
        img = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    elif img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)

    return img


def image_size(img: np.ndarray) -> Tuple[int, int]:
    """Return (width, height) of an image array."""
    h, w = img.shape[:2]
    return w, h


def resize_image(img: np.ndarray, target_size: Tuple[int, int]) -> np.ndarray:
    """Resize image to exactly (width, height), ignoring aspect ratio."""
    target_w, target_h = max(1, int(target_size[0])), max(1, int(target_size[1]))
    if (target_w, target_h) == image_size(img):
        return img.copy()
    return cv2.resize(img, (target_w, target_h), interpolation=cv2.INTER_LANCZOS4)


def fit_longest_side(size: Tuple[int, int], longest: int) -> Tuple[int, int]:
    """Scale (width, height) so the longer side equals `longest`, keeping aspect."""
    w, h = size
    if w >= h:
        return longest, max(1, round(h * longest / w))
    return max(1, round(w * longest / h)), longest


def alpha_over(top: np.ndarray, bottom: np.ndarray) -> np.ndarray:
    """Porter-Duff `over` of two equally sized RGBA arrays."""
    top_f = top.astype(np.float32) / 255.0
    bottom_f = bottom.astype(np.float32) / 255.0

    top_a = top_f[:, :, 3:4]
    bottom_a = bottom_f[:, :, 3:4]

    out_a = top_a + bottom_a * (1.0 - top_a)
    out_rgb = top_f[:, :, :3] * top_a + bottom_f[:, :, :3] * bottom_a * (1.0 - top_a)
    out_rgb = np.divide(
        out_rgb, out_a,
        out=np.zeros_like(out_rgb),
        where=out_a > 0
    )

    result = np.concatenate([out_rgb, out_a], axis=2)
    return np.clip(result * 255.0 + 0.5, 0, 255).astype(np.uint8)


def composite(
    background: np.ndarray,
    overlay: np.ndarray,
    position: Tuple[int, int],
    blend: str = "over"
) -> np.ndarray:
    """
    Composite an RGBA overlay onto an RGBA background.

    Args:
        background: Canvas image; the result has its size
        overlay: Image placed with its top-left corner at `position`
        position: (left, top) offset, may be negative
        blend: "over" puts the overlay in front, "dest-over" puts it behind
            the background so only transparent background pixels reveal it

    Returns:
        New RGBA array; parts of the overlay outside the canvas are cropped
    """
    if blend not in BLEND_MODES:
        raise ValueError(f"Unknown blend mode: {blend}. Available: {list(BLEND_MODES)}")

    x, y = position
    overlay_w, overlay_h = image_size(overlay)
    bg_w, bg_h = image_size(background)

    result = background.copy()

    x1 = max(0, x)
    y1 = max(0, y)
    x2 = min(bg_w, x + overlay_w)
    y2 = min(bg_h, y + overlay_h)

    if x2 <= x1 or y2 <= y1:
        return result

    src_x1 = x1 - x
    src_y1 = y1 - y
    overlay_region = overlay[src_y1:src_y1 + (y2 - y1), src_x1:src_x1 + (x2 - x1)]
    bg_region = background[y1:y2, x1:x2]

    if blend == "over":
        result[y1:y2, x1:x2] = alpha_over(overlay_region, bg_region)
    else:
        result[y1:y2, x1:x2] = alpha_over(bg_region, overlay_region)

    return result


def flatten_alpha(img: np.ndarray) -> np.ndarray:
    """Drop the alpha channel, flattening onto black."""
    if img.ndim == 3 and img.shape[2] == 4:
        alpha = img[:, :, 3:4].astype(np.float32) / 255.0
        rgb = img[:, :, :3].astype(np.float32) * alpha
        return np.clip(rgb + 0.5, 0, 255).astype(np.uint8)
    return img


def save_image(img: np.ndarray, path: Union[str, Path], jpeg_quality: int = 80) -> None:
    """
    Encode an RGB/RGBA numpy array and write it to `path`.

    The file is written to a temporary sibling and moved into place, so a
    reader never observes a partially written image.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    suffix = path.suffix.lower()
    params = []
    if suffix in (".jpg", ".jpeg"):
        img = flatten_alpha(img)
        params = [cv2.IMWRITE_JPEG_QUALITY, int(jpeg_quality)]

    if img.ndim == 3:
        if img.shape[2] == 3:
            img = cv2.cvtColor(img, cv2.COLOR_RGB2BGR)
        elif img.shape[2] == 4:
            img = cv2.cvtColor(img, cv2.COLOR_RGBA2BGRA)

    ok, buffer = cv2.imencode(suffix, img, params)
    if not ok:
        raise ValueError(f"Failed to encode image: {path}")

    tmp_path = path.with_name(f".{path.stem}.tmp{path.suffix}")
    try:
        tmp_path.write_bytes(buffer.tobytes())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def save_report(report: Dict[str, Any], output_path: Path) -> None:
    """Save generation report as JSON."""
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        json.dump(report, f, indent=2, default=str)
