"""Per-dimension chunk collection and top-down image rendering."""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from PIL import Image

from .chunk import BlockLists, ChunkContext, ChunkData
from .chunkformat import DIM_OVERWORLD, ChunkFormatError
from .features import spawn_circle_feature
from .palette import HeightMode, ImageMode, pixel_color
from .spawn import CheckSpawn
from .xmldata import Registry

log = logging.getLogger(__name__)

GRID_COLOR = 0xC1FFC4
GRID_ORIGIN_COLOR = 0xEB3333
FILE_PREFIX = "bedrock_viz"

# image mode -> file name suffix for the optional images
_OPTIONAL_IMAGES = (
    ("biome", ImageMode.BIOME, "biome"),
    ("grass", ImageMode.GRASS, "grass"),
    ("height_col", ImageMode.HEIGHT_COL, "height_col"),
    ("height_col_grayscale", ImageMode.HEIGHT_COL_GRAYSCALE, "height_col_grayscale"),
    ("height_col_alpha", ImageMode.HEIGHT_COL_ALPHA, "height_col_alpha"),
    ("light_block", ImageMode.BLOCK_LIGHT, "light_block"),
    ("light_sky", ImageMode.SKY_LIGHT, "light_sky"),
)


def _rgb(color: int) -> tuple[int, int, int]:
    return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


@dataclass
class OutputOptions:
    """Which extra images and decorations to produce, by dimension id."""

    grid: Collection[int] = frozenset()
    biome: Collection[int] = frozenset()
    grass: Collection[int] = frozenset()
    height_col: Collection[int] = frozenset()
    height_col_grayscale: Collection[int] = frozenset()
    height_col_alpha: Collection[int] = frozenset()
    light_block: Collection[int] = frozenset()
    light_sky: Collection[int] = frozenset()
    height_mode: HeightMode = HeightMode.TOP


@dataclass
class DimensionData:
    """The chunks of one dimension and everything needed to render them."""

    dim_id: int
    name: str
    registry: Registry
    block_lists: BlockLists = field(default_factory=BlockLists)
    check_spawns: list[CheckSpawn] = field(default_factory=list)
    world_spawn_x: int = 0
    world_spawn_z: int = 0
    min_chunk_x: int | None = None
    max_chunk_x: int | None = None
    min_chunk_z: int | None = None
    max_chunk_z: int | None = None
    chunks: dict[tuple[int, int], ChunkData] = field(default_factory=dict)
    geojson: list[dict[str, Any]] = field(default_factory=list)

    @property
    def has_bounds(self) -> bool:
        return self.min_chunk_x is not None

    def add_to_chunk_bounds(self, chunk_x: int, chunk_z: int) -> None:
        """Extend the dimension's chunk bounds to include the given chunk."""
        if not self.has_bounds:
            self.min_chunk_x = self.max_chunk_x = chunk_x
            self.min_chunk_z = self.max_chunk_z = chunk_z
            return
        self.min_chunk_x = min(self.min_chunk_x, chunk_x)
        self.max_chunk_x = max(self.max_chunk_x, chunk_x)
        self.min_chunk_z = min(self.min_chunk_z, chunk_z)
        self.max_chunk_z = max(self.max_chunk_z, chunk_z)

    def _require_bounds(self) -> tuple[int, int, int, int]:
        if not self.has_bounds:
            raise ValueError(f"dimension {self.name!r} has no chunk bounds")
        return self.min_chunk_x, self.max_chunk_x, self.min_chunk_z, self.max_chunk_z

    @property
    def image_size(self) -> tuple[int, int]:
        """Width and height in pixels of a full top-down image."""
        min_x, max_x, min_z, max_z = self._require_bounds()
        return (max_x - min_x + 1) * 16, (max_z - min_z + 1) * 16

    def world_point_to_image_point(
        self, wx: float, wz: float, geojson: bool = False
    ) -> tuple[float, float]:
        """Map world coordinates to image coordinates.

        GeoJSON points have their y axis flipped, with the origin at the
        bottom row of the image.
        """
        min_x, _, min_z, _ = self._require_bounds()
        ix = wx + (-min_x * 16)
        iy = wz + (-min_z * 16)
        if geojson:
            iy = (self.image_size[1] - 1) - iy
        return float(ix), float(iy)

    def _context(self) -> ChunkContext:
        return ChunkContext(
            registry=self.registry,
            dimension_id=self.dim_id,
            lists=self.block_lists,
            check_spawns=self.check_spawns,
            to_geojson_point=lambda x, z: self.world_point_to_image_point(x, z, True),
            geojson=self.geojson,
        )

    def _chunk(self, chunk_x: int, chunk_z: int) -> ChunkData:
        return self.chunks.setdefault((chunk_x, chunk_z), ChunkData(chunk_x, chunk_z))

    def add_chunk(
        self, version: int, chunk_x: int, chunk_y: int, chunk_z: int, cdata: bytes
    ) -> ChunkData:
        """Fold a raw terrain record into the chunk at (chunk_x, chunk_z)."""
        chunk = self._chunk(chunk_x, chunk_z)
        if version == 2:
            chunk.add_v2(chunk_x, chunk_z, cdata, self._context())
        elif version == 3:
            chunk.add_v3(chunk_x, chunk_y, chunk_z, cdata, self._context())
        else:
            raise ChunkFormatError(f"unsupported chunk format version {version}")
        return chunk

    def add_chunk_column_data(self, chunk_x: int, chunk_z: int, cdata: bytes) -> ChunkData:
        """Fold a per-column height and biome record into its chunk."""
        chunk = self._chunk(chunk_x, chunk_z)
        chunk.add_column_v3(chunk_x, chunk_z, cdata)
        return chunk

    def render_image(
        self, path: str | Path | None, mode: ImageMode, options: OutputOptions | None = None
    ) -> Image.Image:
        """Render a top-down image, save it to ``path`` if given and return it."""
        options = options or OutputOptions()
        min_x, max_x, min_z, max_z = self._require_bounds()
        width, height = self.image_size
        rgba = mode is ImageMode.HEIGHT_COL_ALPHA
        bpp = 4 if rgba else 3
        buf = bytearray(width * height * bpp)
        grid = self.dim_id in options.grid
        report = self.dim_id == DIM_OVERWORLD and mode is ImageMode.TERRAIN

        for (chunk_x, chunk_z), chunk in self.chunks.items():
            if not (min_x <= chunk_x <= max_x and min_z <= chunk_z <= max_z):
                continue
            image_x = (chunk_x - min_x) * 16
            image_z = (chunk_z - min_z) * 16
            for cz in range(16):
                for cx in range(16):
                    color = pixel_color(
                        chunk, cx, cz, mode, self.registry, options.height_mode
                    )
                    if grid and (cx == 0 or cz == 0):
                        origin = chunk_x == 0 and chunk_z == 0 and cx == 0 and cz == 0
                        color = _rgb(GRID_ORIGIN_COLOR if origin else GRID_COLOR)
                        if rgba:
                            color = color + (255,)
                    offset = ((image_z + cz) * width + image_x + cx) * bpp
                    buf[offset:offset + bpp] = bytes(color)

                    if report:
                        wx, wz = chunk_x * 16 + cx, chunk_z * 16 + cz
                        if wx == 0 and wz == 0:
                            log.info("World (0, 0) is at image (%d, %d)",
                                     image_x + cx, image_z + cz)
                        if wx == self.world_spawn_x and wz == self.world_spawn_z:
                            log.info("World Spawn (%d, %d) is at image (%d, %d)",
                                     wx, wz, image_x + cx, image_z + cz)

        image = Image.frombytes("RGBA" if rgba else "RGB", (width, height), bytes(buf))
        if path is not None:
            image.save(path, format="PNG")
        return image

    def geojson_spawn_circles(self) -> list[dict[str, Any]]:
        """Add one bounding-circle feature per spawn-check area and return them."""
        features = [
            spawn_circle_feature(
                self.dim_id,
                area.distance,
                (area.x, 0, area.z),
                self.world_point_to_image_point(area.x, area.z, True),
            )
            for area in self.check_spawns
        ]
        self.geojson.extend(features)
        return features

    def write_images(
        self, out_dir: str | Path, options: OutputOptions | None = None
    ) -> dict[ImageMode, Path]:
        """Write the terrain map and every enabled extra image into ``out_dir/images``."""
        options = options or OutputOptions()
        log.info("Do Output: %s", self.name)
        self.geojson_spawn_circles()

        image_dir = Path(out_dir) / "images"
        image_dir.mkdir(parents=True, exist_ok=True)

        def target(suffix: str) -> Path:
            return image_dir / f"{FILE_PREFIX}.{self.name}.{suffix}.png"

        written: dict[ImageMode, Path] = {}
        path = target("map")
        self.render_image(path, ImageMode.TERRAIN, options)
        written[ImageMode.TERRAIN] = path

        for attribute, mode, suffix in _OPTIONAL_IMAGES:
            if self.dim_id in getattr(options, attribute):
                path = target(suffix)
                self.render_image(path, mode, options)
                written[mode] = path
        return written