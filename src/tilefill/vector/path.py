"""
Closed vector loops and their SVG path serialization.
"""

from typing import List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class LineTo(BaseModel):
    """Straight edge to a point."""
    kind: Literal["line"] = "line"
    to: List[float] = Field(..., min_length=2, max_length=2)

    model_config = ConfigDict(extra="forbid")


class ArcTo(BaseModel):
    """Circular edge to a point, with SVG-style large-arc and sweep flags."""
    kind: Literal["arc"] = "arc"
    to: List[float] = Field(..., min_length=2, max_length=2)
    radius: float
    large_arc: bool
    sweep: bool

    model_config = ConfigDict(extra="forbid")


class ClosedLoop(BaseModel):
    """One closed boundary loop, starting and ending at start."""
    start: List[float] = Field(..., min_length=2, max_length=2)
    commands: List[Union[LineTo, ArcTo]] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    def to_svg_d(self):
        parts = [f"M {svg_point(self.start)}"]
        for cmd in self.commands:
            if cmd.kind == "line":
                parts.append(f"L {svg_point(cmd.to)}")
            else:
                rr = fmt_svg_num(cmd.radius)
                parts.append(f"A {rr} {rr} 0 {int(cmd.large_arc)} {int(cmd.sweep)} {svg_point(cmd.to)}")
        parts.append("Z")
        return " ".join(parts)


def fmt_svg_num(n):
    """Format a coordinate with at most 4 decimals and no trailing zeros."""
    if abs(n) < 1e-8:
        n = 0.0
    text = f"{n:.4f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def svg_point(p):
    return f"{fmt_svg_num(p[0])} {fmt_svg_num(p[1])}"


def loops_to_svg_d(loops):
    """Concatenate loops into one path string (fill it with an even-odd rule)."""
    return " ".join(loop.to_svg_d() for loop in loops)


def polygon_to_svg_d(points):
    if not points:
        return ""
    d = f"M {svg_point(points[0])}"
    for p in points[1:]:
        d += f" L {svg_point(p)}"
    return d + " Z"
