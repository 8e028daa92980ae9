"""Top-down summary of a chunk column built from raw chunk records."""

from __future__ import annotations

from collections.abc import Callable, Collection, Sequence
from dataclasses import dataclass, field
from typing import Any

from . import chunkformat as cf
from .features import block_feature, spawnable_feature
from .spawn import CheckSpawn
from .spawnable import (
    MAX_SPAWN_LIGHT,
    chunk_needs_spawn_check,
    column_in_spawn_area,
    is_spawnable_position,
)
from .xmldata import Registry

PointFunction = Callable[[float, float], "tuple[float, float]"]


def _identity_point(x: float, z: float) -> tuple[float, float]:
    return float(x), float(z)


def _grid() -> list[list[int]]:
    return [[0] * 16 for _ in range(16)]


@dataclass(frozen=True)
class BlockLists:
    """Block ids hidden from the top view, forced to the top, or exported."""

    hide: Collection[int] = frozenset()
    force_top: Collection[int] = frozenset()
    geojson: Collection[int] = frozenset()


@dataclass
class ChunkContext:
    """Everything a chunk needs besides its own data while being parsed."""

    registry: Registry
    dimension_id: int = 0
    lists: BlockLists = field(default_factory=BlockLists)
    check_spawns: Sequence[CheckSpawn] = ()
    to_geojson_point: PointFunction = _identity_point
    geojson: list[dict[str, Any]] = field(default_factory=list)

    def block_name(self, block_id: int) -> str:
        block = self.registry.block(block_id)
        return block.name if block is not None else f"(Unknown-id-{block_id})"


@dataclass
class ChunkData:
    """Per-column top block, light, height and biome information of a chunk."""

    chunk_x: int = 0
    chunk_z: int = 0
    chunk_format_version: int = 0
    check_spawn_flag: bool = False
    blocks: list[list[int]] = field(default_factory=_grid)
    data: list[list[int]] = field(default_factory=_grid)
    top_block_y: list[list[int]] = field(default_factory=_grid)
    top_light: list[list[int]] = field(default_factory=_grid)
    height_col: list[list[int]] = field(default_factory=_grid)
    grass_and_biome: list[list[int]] = field(default_factory=_grid)

    def _begin(self, chunk_x: int, chunk_z: int, version: int, context: ChunkContext) -> None:
        self.chunk_x = chunk_x
        self.chunk_z = chunk_z
        self.chunk_format_version = version
        if chunk_needs_spawn_check(chunk_x, chunk_z, context.check_spawns):
            self.check_spawn_flag = True

    def add_v2(self, chunk_x: int, chunk_z: int, cdata: bytes, context: ChunkContext) -> None:
        """Process a legacy whole-column terrain record."""
        self._begin(chunk_x, chunk_z, 2, context)
        registry = context.registry
        lists = context.lists
        top = cf.MAX_BLOCK_HEIGHT_127
        wx, wz = chunk_x * 16, chunk_z * 16

        for cy in range(top, -1, -1):
            for cx in range(16):
                for cz in range(16):
                    block_id = cf.block_id_v2(cdata, cx, cz, cy)
                    x, z = wx + cx, wz + cz

                    if block_id in lists.geojson:
                        context.geojson.append(
                            block_feature(
                                context.block_name(block_id),
                                context.dimension_id,
                                (x, cy, z),
                                context.to_geojson_point(x, z),
                            )
                        )

                    if (
                        self.check_spawn_flag
                        and 0 < cy < top
                        and column_in_spawn_area(x, z, context.check_spawns)
                        and is_spawnable_position(
                            registry,
                            block_id,
                            cf.block_id_v2(cdata, cx, cz, cy + 1),
                            cf.block_id_v2(cdata, cx, cz, cy - 1),
                            cf.block_data_v2(cdata, cx, cz, cy - 1),
                        )
                    ):
                        light = cf.block_block_light_v2(cdata, cx, cz, cy)
                        if light <= MAX_SPAWN_LIGHT:
                            context.geojson.append(
                                spawnable_feature(
                                    light,
                                    context.dimension_id,
                                    (x, cy, z),
                                    context.to_geojson_point(x, z),
                                )
                            )

                    if block_id == 0:
                        continue
                    if (
                        self.blocks[cx][cz] == 0 and block_id not in lists.hide
                    ) or block_id in lists.force_top:
                        self.blocks[cx][cz] = block_id
                        self.data[cx][cz] = cf.block_data_v2(cdata, cx, cz, cy)
                        self.top_block_y[cx][cz] = cy
                        # light is taken from the block above a solid block
                        light_y = cy
                        block = registry.block(block_id)
                        if block is not None and block.solid:
                            light_y = min(cy + 1, top)
                        sky = cf.block_sky_light_v2(cdata, cx, cz, light_y)
                        light = cf.block_block_light_v2(cdata, cx, cz, light_y)
                        self.top_light[cx][cz] = (sky << 4) | light

        for cx in range(16):
            for cz in range(16):
                self.height_col[cx][cz] = cf.column_height_v2(cdata, cx, cz)
                self.grass_and_biome[cx][cz] = cf.column_grass_and_biome_v2(cdata, cx, cz)

    def add_v3(
        self, chunk_x: int, chunk_y: int, chunk_z: int, cdata: bytes, context: ChunkContext
    ) -> None:
        """Process one 16x16x16 sub-chunk record; spawnability is checked later."""
        self._begin(chunk_x, chunk_z, 3, context)
        registry = context.registry
        lists = context.lists
        wx, wz = chunk_x * 16, chunk_z * 16

        for cy in range(16):
            real_y = chunk_y * 16 + cy
            for cx in range(16):
                for cz in range(16):
                    block_id = cf.block_id_v3(cdata, cx, cz, cy)
                    block = registry.block(block_id)
                    if block is None:
                        continue
                    x, z = wx + cx, wz + cz

                    if block_id in lists.geojson:
                        context.geojson.append(
                            block_feature(
                                block.name,
                                context.dimension_id,
                                (x, real_y, z),
                                context.to_geojson_point(x, z),
                            )
                        )

                    if block_id == 0:
                        continue
                    if (
                        real_y >= self.top_block_y[cx][cz]
                        and self.blocks[cx][cz] not in lists.force_top
                        and block_id not in lists.hide
                    ) or block_id in lists.force_top:
                        self.blocks[cx][cz] = block_id
                        self.data[cx][cz] = cf.block_data_v3(cdata, cx, cz, cy)
                        self.top_block_y[cx][cz] = real_y
                        light_y = cy
                        if block.solid:
                            light_y = min(cy + 1, cf.MAX_BLOCK_HEIGHT)
                        sky = cf.block_sky_light_v3(cdata, cx, cz, light_y)
                        light = cf.block_block_light_v3(cdata, cx, cz, light_y)
                        self.top_light[cx][cz] = (sky << 4) | light

    def add_column_v3(self, chunk_x: int, chunk_z: int, cdata: bytes) -> None:
        """Process a per-column height and biome record."""
        self.chunk_x = chunk_x
        self.chunk_z = chunk_z
        for cx in range(16):
            for cz in range(16):
                self.height_col[cx][cz] = cf.column_height_v3(cdata, cx, cz)
                self.grass_and_biome[cx][cz] = cf.column_grass_and_biome_v3(cdata, cx, cz)