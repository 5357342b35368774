"""
Artifact saving utilities for tilefill.

Handles writing debug masks, JSON metrics and SVG files.
"""

import json
import os

import cv2
import numpy as np

from tilefill.tracer import get_tracer


def ensure_dir(path):
    """Create directory if it does not exist."""
    if path:
        os.makedirs(path, exist_ok=True)


def get_debug_dir(out_dir, tile_id, stage_name):
    """
    Get the debug directory path for a stage.

    Creates the directory if it does not exist.
    """
    debug_dir = os.path.join(out_dir, "debug", tile_id, stage_name)
    ensure_dir(debug_dir)
    return debug_dir


def mask_to_image(mask):
    """Boolean mask to an 8-bit image, fill black on white."""
    return np.where(mask, 0, 255).astype(np.uint8)


def save_image(img, path, max_edge=None):
    """
    Save an image to disk.

    Optionally downscales to max_edge while preserving aspect ratio.
    """
    tracer = get_tracer()

    if max_edge and max(img.shape[:2]) > max_edge:
        scale = max_edge / max(img.shape[:2])
        new_size = (max(1, int(img.shape[1] * scale)), max(1, int(img.shape[0] * scale)))
        img = cv2.resize(img, new_size, interpolation=cv2.INTER_NEAREST)

    ensure_dir(os.path.dirname(path))
    cv2.imwrite(path, img)
    tracer.event(f"Saved image: {path}")


def save_json(data, path, indent=2):
    """
    Save a dictionary or Pydantic model to JSON.
    """
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))

    if hasattr(data, "to_record"):
        data = data.to_record()
    elif hasattr(data, "model_dump"):
        data = data.model_dump()

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, default=str)

    tracer.event(f"Saved JSON: {path}")


def save_svg(svg_content, path):
    """
    Save SVG content to file.
    """
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))

    if hasattr(svg_content, "tostring"):
        content = svg_content.tostring()
    else:
        content = str(svg_content)

    with open(path, "w", encoding="utf-8") as f:
        f.write(content)

    tracer.event(f"Saved SVG: {path}")


class DebugArtifactWriter:
    """
    Helper class to manage debug artifact writing for a single tile.

    Handles creation of debug directories and provides convenience methods
    for saving various artifact types.
    """

    def __init__(self, out_dir, tile_id, enabled=True, max_edge=1600):
        self.out_dir = out_dir
        self.tile_id = tile_id
        self.enabled = enabled
        self.max_edge = max_edge

    def get_stage_dir(self, stage_name):
        """Get the debug directory for a stage."""
        return get_debug_dir(self.out_dir, self.tile_id, stage_name)

    def save_image(self, img, stage_name, filename):
        if not self.enabled:
            return
        path = os.path.join(self.get_stage_dir(stage_name), filename)
        save_image(img, path, max_edge=self.max_edge)

    def save_mask(self, mask, stage_name, filename):
        """Save a boolean fill mask as a PNG."""
        if not self.enabled:
            return
        self.save_image(mask_to_image(mask), stage_name, filename)

    def save_json(self, data, stage_name, filename):
        if not self.enabled:
            return
        path = os.path.join(self.get_stage_dir(stage_name), filename)
        save_json(data, path)
