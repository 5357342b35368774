"""
Pydantic data models for the tile designer document.

Ink primitives and fill regions are stored in world units (tile-local
pixels divided by the tile side) so one design can be replayed at any
rendered size. Ink ids form a single namespace across every design of a
document and are never reused.
"""

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


SAVE_DOC_VERSION = 2
APP_NAME = "tile-designer"
SHAPES = ("triangle", "square", "hexagon", "octagon")

# Tile shapes used by each tiling, primary shape first
TILINGS = {
    "triangle": ("triangle",),
    "square": ("square",),
    "hexagon": ("hexagon",),
    "tiling-3464": ("hexagon", "triangle", "square"),
    "tiling-48-2": ("octagon", "square"),
    "tiling-33-434": ("square", "triangle"),
}
DEFAULT_TILING = "triangle"


class Point(BaseModel):
    """A 2D point. Also accepts an (x, y) pair on input."""
    x: float
    y: float

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data):
        if isinstance(data, (list, tuple)) and len(data) == 2:
            return {"x": data[0], "y": data[1]}
        return data

    def as_tuple(self):
        return (self.x, self.y)


class InkLine(BaseModel):
    """A straight stroke from a to b."""
    type: Literal["line"] = "line"
    id: int = Field(..., gt=0)
    a: Point
    b: Point

    model_config = ConfigDict(extra="forbid")


class InkCircle(BaseModel):
    """A full circle stroke."""
    type: Literal["circle"] = "circle"
    id: int = Field(..., gt=0)
    c: Point
    r: float = Field(..., gt=0)

    model_config = ConfigDict(extra="forbid")


class InkArc(BaseModel):
    """
    A circular arc stroke.

    Runs from angle a0 to a1 in the direction of increasing angle, which
    in the y-down tile frame is clockwise on screen.
    """
    type: Literal["arc"] = "arc"
    id: int = Field(..., gt=0)
    c: Point
    r: float = Field(..., gt=0)
    a0: float
    a1: float

    model_config = ConfigDict(extra="forbid")


InkPrimitive = Annotated[Union[InkLine, InkCircle, InkArc], Field(discriminator="type")]


class FillRegion(BaseModel):
    """
    A paint-bucket fill, identified by its seed point.

    boundary_ink_ids is None until discovery has run (fresh documents, or
    after load stripped stale ids).
    """
    x: float
    y: float
    boundary_ink_ids: Optional[List[int]] = Field(default=None, alias="boundaryInkIds")
    uses_tile_boundary: bool = Field(default=False, alias="usesTileBoundary")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @property
    def seed(self):
        return (self.x, self.y)

    def to_record(self):
        """Serialize to the persisted {x, y, boundaryInkIds?, usesTileBoundary?} form."""
        record = {"x": self.x, "y": self.y}
        if self.boundary_ink_ids is not None:
            record["boundaryInkIds"] = list(self.boundary_ink_ids)
        if self.uses_tile_boundary:
            record["usesTileBoundary"] = True
        return record


class Design(BaseModel):
    """Ordered ink and fills drawn on one tile shape."""
    ink: List[InkPrimitive] = Field(default_factory=list)
    fills: List[FillRegion] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    def ink_ids(self):
        """Ids of all ink in drawing order."""
        return [ink.id for ink in self.ink]

    def find_ink(self, ink_id):
        for ink in self.ink:
            if ink.id == ink_id:
                return ink
        return None

    def ink_for_ids(self, ink_ids=None):
        """
        Select ink for a boundary id list.

        None selects every stroke; an empty list selects none. Drawing
        order is preserved.
        """
        if ink_ids is None:
            return list(self.ink)
        wanted = set(ink_ids)
        return [ink for ink in self.ink if ink.id in wanted]

    def to_record(self):
        return {
            "ink": [ink.model_dump() for ink in self.ink],
            "fills": [fill.to_record() for fill in self.fills],
        }


class TileDocument(BaseModel):
    """
    Root document: one design per tile shape plus the ink id allocator.

    Single-shape tilings can hold several designs of their one shape
    (single tiles). The first of them is the same object as
    designs[shape], so edits through either route agree.
    """
    app: str = APP_NAME
    version: int = SAVE_DOC_VERSION
    tiling_id: str = Field(default="triangle", alias="tilingId")
    tile_shape: str = Field(default="triangle", alias="tileShape")
    designs: Dict[str, Design] = Field(default_factory=dict)
    single_tiles: List[Design] = Field(default_factory=list, alias="singleTiles")
    active_single_tile_index: int = Field(default=0, ge=0, alias="activeSingleTileIndex")
    next_ink_id: int = Field(default=1, ge=1, exclude=True)

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="after")
    def _link_single_tiles(self):
        if not self.is_single_shape:
            self.single_tiles = []
            self.active_single_tile_index = 0
            return self
        base = self.shapes[0]
        if self.single_tiles:
            self.designs[base] = self.single_tiles[0]
        else:
            self.single_tiles = [self.design_for(base)]
        self.active_single_tile_index = min(self.active_single_tile_index, len(self.single_tiles) - 1)
        return self

    @property
    def shapes(self):
        """Tile shapes of the document's tiling."""
        return TILINGS.get(self.tiling_id, TILINGS[DEFAULT_TILING])

    @property
    def is_single_shape(self):
        return len(self.shapes) == 1

    def design_for(self, shape):
        """Get (creating if needed) the design for a tile shape."""
        if shape not in self.designs:
            self.designs[shape] = Design()
        return self.designs[shape]

    def single_tile_designs(self):
        """All single-tile designs in order; empty for multi-shape tilings."""
        if not self.is_single_shape:
            return []
        return [self.design_for(self.shapes[0])] + list(self.single_tiles[1:])

    def active_design(self, shape):
        """The design edits to a shape should go to: the active single tile if any."""
        if self.is_single_shape and shape == self.shapes[0]:
            return self.single_tile_designs()[self.active_single_tile_index]
        return self.design_for(shape)

    def add_single_tile(self):
        """Append an empty single tile and make it active."""
        if not self.is_single_shape:
            raise ValueError(f"Tiling {self.tiling_id!r} has more than one tile shape")
        design = Design()
        self.single_tiles = self.single_tile_designs() + [design]
        self.active_single_tile_index = len(self.single_tiles) - 1
        return design

    def remove_single_tile(self, index):
        """
        Remove a single tile; the last remaining one cannot be removed.

        The active tile stays active when it survives, otherwise its
        neighbour takes over. Returns True if a tile was removed.
        """
        variants = self.single_tile_designs()
        if len(variants) <= 1 or not 0 <= index < len(variants):
            return False
        variants.pop(index)
        self.single_tiles = variants
        self.designs[self.shapes[0]] = variants[0]
        if self.active_single_tile_index > index:
            self.active_single_tile_index -= 1
        self.active_single_tile_index = min(self.active_single_tile_index, len(variants) - 1)
        return True

    def all_designs(self):
        seen = {}
        for design in list(self.designs.values()) + list(self.single_tiles):
            seen[id(design)] = design
        return list(seen.values())

    def all_ink_ids(self):
        ids = set()
        for design in self.all_designs():
            ids.update(design.ink_ids())
        return ids

    def allocate_ink_id(self):
        """Hand out the next ink id; ids are never reused within a document."""
        taken = self.all_ink_ids()
        ink_id = self.next_ink_id
        while ink_id in taken:
            ink_id += 1
        self.next_ink_id = ink_id + 1
        return ink_id

    def add_line(self, shape, a, b):
        ink = InkLine(id=self.allocate_ink_id(), a=a, b=b)
        self.design_for(shape).ink.append(ink)
        return ink

    def add_circle(self, shape, c, r):
        ink = InkCircle(id=self.allocate_ink_id(), c=c, r=r)
        self.design_for(shape).ink.append(ink)
        return ink

    def add_arc(self, shape, c, r, a0, a1):
        ink = InkArc(id=self.allocate_ink_id(), c=c, r=r, a0=a0, a1=a1)
        self.design_for(shape).ink.append(ink)
        return ink

    def to_record(self):
        record = {
            "app": self.app,
            "version": self.version,
            "tilingId": self.tiling_id,
            "tileShape": self.tile_shape,
            "designs": {shape: design.to_record() for shape, design in self.designs.items()},
        }
        if self.is_single_shape:
            record["singleTiles"] = [design.to_record() for design in self.single_tile_designs()]
            record["activeSingleTileIndex"] = self.active_single_tile_index
        return record
