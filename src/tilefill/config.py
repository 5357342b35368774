"""
Configuration management for the tile fill engine.

Loads YAML configuration with sensible defaults for rasterization,
boundary discovery, vector reconstruction and export.
"""

import os
from dataclasses import asdict, dataclass, field, fields

import yaml


@dataclass
class RasterConfig:
    """Configuration for the flood-fill raster."""
    target_resolution: int = 900  # longest raster side before clamping
    min_scale: float = 1.0
    max_scale: float = 3.2
    margin_px: float = 12.0  # multiplied by the render scale
    stroke_width: float = 1.15
    wall_threshold: int = 170
    dilate_iterations: int = 2
    tile_boundary_dilate_iterations: int = 4


@dataclass
class ClosureConfig:
    """Configuration for the ink-only closure test."""
    target_resolution: int = 700
    margin_px: float = 18.0


@dataclass
class VectorConfig:
    """Configuration for vector boundary reconstruction."""
    sample_multipliers: list = field(default_factory=lambda: [1, 2, 4])
    min_sample_px: float = 0.8
    sample_side_fraction: float = 0.0025
    key_decimals: int = 4
    param_epsilon: float = 1e-6


@dataclass
class ExportConfig:
    """Configuration for SVG export."""
    ink_stroke_width: float = 2.0
    fill_color: str = "#000"
    fill_rule: str = "evenodd"
    ink_color: str = "#000"
    tile_outline_color: str = "#bdbdbd"
    padding: float = 4.0


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False


@dataclass
class DebugConfig:
    """Configuration for debug artifact generation."""
    enabled: bool = False
    out_dir: str = "tilefill_debug"
    max_edge_scale: int = 1600


@dataclass
class EngineConfig:
    """Complete engine configuration."""
    raster: RasterConfig = field(default_factory=RasterConfig)
    closure: ClosureConfig = field(default_factory=ClosureConfig)
    vector: VectorConfig = field(default_factory=VectorConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)
    debug: DebugConfig = field(default_factory=DebugConfig)
    render_scale: float = 1.0


SECTIONS = ("raster", "closure", "vector", "export", "tracing", "debug")


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values.
    """
    config = EngineConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass, ignoring unknown keys."""
    for section_name in SECTIONS:
        section_data = yaml_data.get(section_name)
        if not isinstance(section_data, dict):
            continue
        section = getattr(config, section_name)
        known = {f.name for f in fields(section)}
        for key, value in section_data.items():
            if key in known:
                setattr(section, key, value)

    if "render_scale" in yaml_data:
        config.render_scale = float(yaml_data["render_scale"])

    return config


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    config = EngineConfig()

    yaml_data = {name: asdict(getattr(config, name)) for name in SECTIONS}
    yaml_data["tracing"].pop("file_path", None)
    yaml_data["render_scale"] = config.render_scale

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
