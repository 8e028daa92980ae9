"""Mob spawnability checks for chunk columns."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from .chunkformat import (
    MAX_BLOCK_HEIGHT,
    MAX_CUBIC_Y,
    RECORD_SUBCHUNK_PREFIX,
    block_block_light_v3,
    block_data_v3,
    block_id_v3,
    chunk_key,
    offset_block_v3_fullchunk,
)
from .features import spawnable_feature
from .spawn import CheckSpawn
from .xmldata import Registry

if TYPE_CHECKING:
    from .chunk import ChunkContext, ChunkData

# spawning needs darkness: block light at most this value
MAX_SPAWN_LIGHT = 7


def chunk_needs_spawn_check(
    chunk_x: int, chunk_z: int, check_spawns: Iterable[CheckSpawn]
) -> bool:
    """Whether any corner column of the chunk lies inside a spawn-check circle."""
    wx = chunk_x * 16
    wz = chunk_z * 16
    corners = ((wx, wz), (wx, wz + 15), (wx + 15, wz + 15), (wx + 15, wz))
    return any(
        area.contains(x, z) for area in check_spawns for x, z in corners
    )


def column_in_spawn_area(x: int, z: int, check_spawns: Iterable[CheckSpawn]) -> bool:
    """Whether the world column (x, z) lies inside any spawn-check circle."""
    return any(area.contains(x, z) for area in check_spawns)


def is_spawnable_position(
    registry: Registry, block_id: int, above_id: int, below_id: int, below_data: int
) -> bool:
    """Apply the spawning rules to a block and its neighbours above and below.

    The block itself must be non-opaque, non-liquid and non-solid; the block
    above must be non-opaque; the block below must allow spawning on top.
    """
    block = registry.block(block_id)
    if block is None or block.opaque or block.liquid or block.solid:
        return False
    above = registry.block(above_id)
    if above is None or above.opaque:
        return False
    below = registry.block(below_id)
    return below is not None and below.is_spawnable(below_data)


def check_spawnable(
    chunk: ChunkData, db: Mapping[bytes, bytes], context: ChunkContext
) -> list[dict[str, Any]]:
    """Find spawnable blocks in a sub-chunk based column.

    All sub-chunk records of the column are read from ``db``. New features
    are appended to ``context.geojson`` and also returned.
    """
    if chunk.chunk_format_version != 3 or not chunk.check_spawn_flag:
        return []

    size = 16 * 16 * MAX_BLOCK_HEIGHT + 1
    ids = bytearray(size)
    datas = bytearray(size)
    lights = bytearray(size)

    for cubic_y in range(MAX_CUBIC_Y):
        key = chunk_key(
            chunk.chunk_x,
            chunk.chunk_z,
            context.dimension_id,
            RECORD_SUBCHUNK_PREFIX,
            cubic_y,
        )
        record = db.get(key)
        if record is None:
            continue
        for cx in range(16):
            for cz in range(16):
                for ccy in range(16):
                    off = offset_block_v3_fullchunk(cx, cz, cubic_y * 16 + ccy)
                    ids[off] = block_id_v3(record, cx, cz, ccy)
                    datas[off] = block_data_v3(record, cx, cz, ccy)
                    lights[off] = block_block_light_v3(record, cx, cz, ccy)

    registry = context.registry
    wx = chunk.chunk_x * 16
    wz = chunk.chunk_z * 16
    found: list[dict[str, Any]] = []
    # the top and bottom layers are skipped: they lack a neighbour
    for cy in range(MAX_BLOCK_HEIGHT - 1, 0, -1):
        for cx in range(16):
            for cz in range(16):
                x, z = wx + cx, wz + cz
                if not column_in_spawn_area(x, z, context.check_spawns):
                    continue
                here = offset_block_v3_fullchunk(cx, cz, cy)
                above = offset_block_v3_fullchunk(cx, cz, cy + 1)
                below = offset_block_v3_fullchunk(cx, cz, cy - 1)
                if not is_spawnable_position(
                    registry, ids[here], ids[above], ids[below], datas[below]
                ):
                    continue
                light = lights[here]
                if light <= MAX_SPAWN_LIGHT:
                    found.append(
                        spawnable_feature(
                            light,
                            context.dimension_id,
                            (x, cy, z),
                            context.to_geojson_point(x, z),
                        )
                    )
    context.geojson.extend(found)
    return found