"""
Pure utility functions for annotation targets.

These functions have no side effects and can be tested in isolation.
Targets follow the W3C Web Annotation shape: a dict holding an optional
``source`` and a ``selector`` that is either a media fragment
(``xywh=pixel:x,y,w,h``) or an SVG polygon.
"""

import copy
import re
from typing import Any, Dict, Optional, Sequence, Tuple

import cv2
import numpy as np

FRAGMENT_SELECTOR = "FragmentSelector"
SVG_SELECTOR = "SvgSelector"
MEDIA_FRAGMENTS_SPEC = "http://www.w3.org/TR/media-frags/"

_FRAGMENT_RE = re.compile(
    r"^xywh=(?:pixel:)?\s*"
    r"(-?\d+(?:\.\d+)?),(-?\d+(?:\.\d+)?),(-?\d+(?:\.\d+)?),(-?\d+(?:\.\d+)?)$"
)
_POINTS_RE = re.compile(r"points\s*=\s*[\"']([^\"']*)[\"']")


def rect_target(
    x: float, y: float, w: float, h: float, source: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build a rectangle target.

    Args:
        x, y: Top-left corner in pixels
        w, h: Size in pixels
        source: Optional image URL

    Returns:
        Target dict with a FragmentSelector
    """
    target = {
        "selector": {
            "type": FRAGMENT_SELECTOR,
            "conformsTo": MEDIA_FRAGMENTS_SPEC,
            "value": f"xywh=pixel:{_fmt(x)},{_fmt(y)},{_fmt(w)},{_fmt(h)}",
        }
    }
    if source is not None:
        target["source"] = source
    return target


def polygon_target(
    points: Sequence[Tuple[float, float]], source: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build a polygon target.

    Args:
        points: Polygon vertices as (x, y) pairs
        source: Optional image URL

    Returns:
        Target dict with an SvgSelector
    """
    coords = " ".join(f"{_fmt(x)},{_fmt(y)}" for x, y in points)
    target = {
        "selector": {
            "type": SVG_SELECTOR,
            "value": f'<svg><polygon points="{coords}"></polygon></svg>',
        }
    }
    if source is not None:
        target["source"] = source
    return target


def clone_target(target: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Deep copy of a target, detached from the original."""
    return copy.deepcopy(target)


def parse_fragment(value: str) -> Tuple[float, float, float, float]:
    """
    Parse a media fragment value.

    Raises:
        ValueError: If the value is not an ``xywh`` fragment
    """
    match = _FRAGMENT_RE.match(value.strip())
    if match is None:
        raise ValueError(f"Unsupported fragment selector: {value!r}")
    x, y, w, h = (float(g) for g in match.groups())
    return x, y, w, h


def parse_svg_points(value: str) -> np.ndarray:
    """
    Extract polygon vertices from an SVG selector value.

    Returns:
        Array of shape (N, 2) with float32 (x, y) coordinates

    Raises:
        ValueError: If no polygon with at least three points is found
    """
    match = _POINTS_RE.search(value)
    if match is None:
        raise ValueError(f"No polygon points in SVG selector: {value!r}")

    numbers = [float(n) for n in re.split(r"[\s,]+", match.group(1).strip()) if n]
    if len(numbers) % 2 != 0 or len(numbers) < 6:
        raise ValueError(f"Invalid polygon points: {match.group(1)!r}")

    return np.array(numbers, dtype=np.float32).reshape(-1, 2)


def target_to_points(target: Dict[str, Any]) -> np.ndarray:
    """
    Get the outline of a target as polygon vertices.

    Rectangles are returned as their four corners.
    """
    selector = target.get("selector") or {}
    selector_type = selector.get("type")

    if selector_type == FRAGMENT_SELECTOR:
        x, y, w, h = parse_fragment(selector.get("value", ""))
        return np.array(
            [[x, y], [x + w, y], [x + w, y + h], [x, y + h]], dtype=np.float32
        )
    if selector_type == SVG_SELECTOR:
        return parse_svg_points(selector.get("value", ""))

    raise ValueError(f"Unsupported selector type: {selector_type!r}")


def target_bounds(target: Dict[str, Any]) -> Tuple[int, int, int, int]:
    """
    Compute the pixel bounding box of a target.

    Rectangles keep their declared size. Polygons use the inclusive pixel
    extent of their vertices.

    Returns:
        (x, y, w, h) in integer pixels
    """
    selector = target.get("selector") or {}
    if selector.get("type") == FRAGMENT_SELECTOR:
        x, y, w, h = parse_fragment(selector.get("value", ""))
        return int(round(x)), int(round(y)), int(round(w)), int(round(h))

    points = np.round(target_to_points(target)).astype(np.int32)
    x, y, w, h = cv2.boundingRect(points)
    return int(x), int(y), int(w), int(h)


def polygon_mask(shape: Tuple[int, int], points: np.ndarray) -> np.ndarray:
    """
    Rasterize a polygon.

    Args:
        shape: (height, width) of the mask
        points: Polygon vertices (N, 2)

    Returns:
        Binary mask (0 or 1)
    """
    mask = np.zeros(shape, dtype=np.uint8)
    cv2.fillPoly(mask, [np.round(points).astype(np.int32)], 1)
    return mask


def crop_snippet(image: np.ndarray, target: Dict[str, Any]) -> Optional[np.ndarray]:
    """
    Cut the region covered by a target out of an image.

    Pixels outside a polygon target are blacked out. The crop is clipped
    to the image borders.

    Returns:
        Snippet array, or None if the target lies outside the image
    """
    validate_image(image)

    img_h, img_w = image.shape[:2]
    x, y, w, h = target_bounds(target)
    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + w, img_w), min(y + h, img_h)
    if x1 <= x0 or y1 <= y0:
        return None

    snippet = image[y0:y1, x0:x1].copy()

    selector = target.get("selector") or {}
    if selector.get("type") == SVG_SELECTOR:
        points = target_to_points(target) - np.array([x0, y0], dtype=np.float32)
        mask = polygon_mask(snippet.shape[:2], points)
        snippet[mask == 0] = 0

    return snippet


def validate_image(image: np.ndarray) -> None:
    """
    Validate that image has correct format.

    Raises:
        ValueError: If image is invalid
    """
    if image is None:
        raise ValueError("Image is None")

    if not isinstance(image, np.ndarray):
        raise ValueError(f"Image must be numpy array, got {type(image)}")

    if image.ndim != 3:
        raise ValueError(f"Image must be 3D (H, W, C), got shape {image.shape}")

    if image.shape[2] not in (3, 4):
        raise ValueError(f"Image must have 3 or 4 channels, got {image.shape[2]}")

    if image.dtype not in [np.uint8, np.float32, np.float64]:
        raise ValueError(f"Invalid image dtype: {image.dtype}")


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
