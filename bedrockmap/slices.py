"""Horizontal slice images, one per block layer, and movies made from them."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Mapping
from pathlib import Path

from PIL import Image

from .chunkformat import (
    MAX_BLOCK_HEIGHT,
    MAX_BLOCK_HEIGHT_127,
    MAX_CUBIC_Y,
    RECORD_LEGACY_TERRAIN,
    RECORD_SUBCHUNK_PREFIX,
    block_data_v2,
    block_data_v3,
    block_id_v2,
    block_id_v3,
    chunk_key,
)
from .dimension import DimensionData
from .palette import DEFAULT_COLOR
from .xmldata import Registry

log = logging.getLogger(__name__)

DIM_NETHER = 1
NETHER_SCALE = 8
LAYER_COUNT = MAX_BLOCK_HEIGHT + 1
_BLACK = b"\x00\x00\x00"


def _rgb_bytes(color: int) -> bytes:
    return bytes(((color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF))


def _block_color(registry: Registry, block_id: int, data_of) -> int:
    """Colour of a block; ``data_of`` is called for the block data only when needed."""
    block = registry.block(block_id)
    if block is None:
        return DEFAULT_COLOR
    if block.has_variants:
        variant = block.variant_for(data_of())
        if variant is not None and variant.color is not None:
            return variant.color
    return block.color if block.color is not None else DEFAULT_COLOR


def _bounds(dimension: DimensionData) -> tuple[int, int, int, int, int, int]:
    width, height = dimension.image_size
    return (
        dimension.min_chunk_x,
        dimension.max_chunk_x,
        dimension.min_chunk_z,
        dimension.max_chunk_z,
        width,
        height,
    )


def _top_heights(dimension: DimensionData, width: int, height: int) -> bytearray:
    """Top block height of every image pixel; unknown columns count as the build limit."""
    min_x, max_x, min_z, max_z, _, _ = _bounds(dimension)
    tops = bytearray([MAX_BLOCK_HEIGHT]) * (width * height)
    for (chunk_x, chunk_z), chunk in dimension.chunks.items():
        if not (min_x <= chunk_x <= max_x and min_z <= chunk_z <= max_z):
            continue
        ix = (chunk_x - min_x) * 16
        iz = (chunk_z - min_z) * 16
        for cz in range(16):
            for cx in range(16):
                tops[(iz + cz) * width + ix + cx] = chunk.top_block_y[cx][cz] & 0xFF
    return tops


def _slice_legacy(record, bands, tops, registry, image_x, image_z, width, hide_air):
    for cx in range(16):
        for cz in range(16):
            off = ((cz * width) + image_x + cx) * 3
            top = tops[(image_z + cz) * width + image_x + cx]
            for cy in range(MAX_BLOCK_HEIGHT_127 + 1):
                block_id = block_id_v2(record, cx, cz, cy)
                if block_id == 0 and cy > top and hide_air:
                    # air above the top block shows the top block instead
                    bands[cy][off:off + 3] = bands[top][off:off + 3]
                    continue
                color = _block_color(
                    registry,
                    block_id,
                    lambda cx=cx, cz=cz, cy=cy: block_data_v2(record, cx, cz, cy),
                )
                bands[cy][off:off + 3] = _rgb_bytes(color)
            # legacy records are 128 high; the layers above repeat the highest
            for cy in range(MAX_BLOCK_HEIGHT_127 + 1, LAYER_COUNT):
                bands[cy][off:off + 3] = bands[MAX_BLOCK_HEIGHT_127][off:off + 3]


def _slice_subchunk(record, cubic_y, bands, tops, registry, image_x, image_z, width, hide_air):
    for cx in range(16):
        for cz in range(16):
            off = ((cz * width) + image_x + cx) * 3
            top = tops[(image_z + cz) * width + image_x + cx]
            for ccy in range(16):
                cy = cubic_y * 16 + ccy
                block_id = 0 if record is None else block_id_v3(record, cx, cz, ccy)
                if block_id == 0 and cy > top and hide_air:
                    bands[cy][off:off + 3] = bands[top][off:off + 3]
                elif record is None:
                    bands[cy][off:off + 3] = _BLACK
                else:
                    color = _block_color(
                        registry,
                        block_id,
                        lambda cx=cx, cz=cz, ccy=ccy: block_data_v3(record, cx, cz, ccy),
                    )
                    bands[cy][off:off + 3] = _rgb_bytes(color)


def generate_slices(
    dimension: DimensionData, db: Mapping[bytes, bytes], base_path: str | Path
) -> list[Path]:
    """Write one full-size image per block layer and return their paths.

    Chunk records are read from ``db``; legacy whole-column records are
    preferred, sub-chunk records are used otherwise.
    """
    min_x, max_x, min_z, max_z, width, height = _bounds(dimension)
    log.info("Writing all images in one pass")
    registry = dimension.registry
    dim_id = dimension.dim_id
    hide_air = dim_id != DIM_NETHER

    paths = [
        Path(f"{base_path}.slice.full.{dimension.name}.{cy:03d}.png")
        for cy in range(LAYER_COUNT)
    ]
    images = [Image.new("RGB", (width, height)) for _ in range(LAYER_COUNT)]
    bands = [bytearray(width * 16 * 3) for _ in range(LAYER_COUNT)]
    tops = _top_heights(dimension, width, height)

    for band_index, chunk_z in enumerate(range(min_z, max_z + 1)):
        image_z = band_index * 16
        if band_index % 20 == 0:
            log.info("Row %d of %d", image_z, height)
        for column, chunk_x in enumerate(range(min_x, max_x + 1)):
            image_x = column * 16
            legacy = db.get(chunk_key(chunk_x, chunk_z, dim_id, RECORD_LEGACY_TERRAIN))
            if legacy is not None:
                _slice_legacy(legacy, bands, tops, registry, image_x, image_z, width, hide_air)
                continue

            found = 0
            for cubic_y in range(MAX_CUBIC_Y):
                record = db.get(
                    chunk_key(chunk_x, chunk_z, dim_id, RECORD_SUBCHUNK_PREFIX, cubic_y)
                )
                if record is not None:
                    found += 1
                    if record and record[0] != 0:
                        log.warning(
                            "Paletted sub-chunk at %d %d y=%d is not supported; drawn as air",
                            chunk_x, chunk_z, cubic_y,
                        )
                        record = None
                _slice_subchunk(
                    record, cubic_y, bands, tops, registry, image_x, image_z, width, hide_air
                )

            if found == 0:
                for band in bands:
                    for cz in range(16):
                        start = ((cz * width) + image_x) * 3
                        band[start:start + 16 * 3] = _BLACK * 16

        for image, band in zip(images, bands):
            image.paste(Image.frombytes("RGB", (width, 16), bytes(band)), (0, image_z))

    for image, path in zip(images, paths):
        image.save(path, format="PNG")
    return paths


def generate_movie(
    dimension: DimensionData,
    db: Mapping[bytes, bytes],
    base_path: str | Path,
    out_path: str | Path,
    make_movie: bool,
    crop: tuple[int, int, int, int] | None,
) -> list[Path]:
    """Write per-layer images from legacy chunk records, optionally as a movie.

    ``crop`` is (x, z, width, height) in overworld image pixels; in the
    nether it is scaled down by 8. Each layer starts from the previous one,
    so air above the top block keeps the colour drawn below it. With
    ``make_movie`` the layers are joined by ffmpeg into ``out_path``.
    """
    min_x, max_x, min_z, max_z, width, height = _bounds(dimension)
    divisor = NETHER_SCALE if dimension.dim_id == DIM_NETHER else 1
    if crop is not None:
        crop_x, crop_z, crop_w, crop_h = (value // divisor for value in crop)
    else:
        crop_x, crop_z, crop_w, crop_h = 0, 0, width, height
    if crop_w <= 0 or crop_h <= 0:
        raise ValueError(f"empty crop area {crop_w}x{crop_h}")

    registry = dimension.registry
    hide_air = dimension.dim_id != DIM_NETHER
    buf = bytearray(crop_w * crop_h * 3)
    records: dict[tuple[int, int], bytes | None] = {}
    infix = "" if make_movie else "full."
    paths: list[Path] = []

    for cy in range(LAYER_COUNT):
        log.info("Layer %d", cy)
        for (chunk_x, chunk_z), chunk in dimension.chunks.items():
            if not (min_x <= chunk_x <= max_x and min_z <= chunk_z <= max_z):
                continue
            image_x = (chunk_x - min_x) * 16
            image_z = (chunk_z - min_z) * 16
            if (chunk_x, chunk_z) not in records:
                record = db.get(
                    chunk_key(chunk_x, chunk_z, dimension.dim_id, RECORD_LEGACY_TERRAIN)
                )
                if record is None:
                    log.warning("Did not find chunk x=%d z=%d", chunk_x, chunk_z)
                records[(chunk_x, chunk_z)] = record
            record = records[(chunk_x, chunk_z)]
            if record is None:
                continue

            for cz in range(16):
                iz = image_z + cz
                if not crop_z <= iz < crop_z + crop_h:
                    continue
                for cx in range(16):
                    ix = image_x + cx
                    if not crop_x <= ix < crop_x + crop_w:
                        continue
                    block_id = (
                        block_id_v2(record, cx, cz, cy) if cy <= MAX_BLOCK_HEIGHT_127 else 0
                    )
                    if block_id == 0 and cy > chunk.top_block_y[cx][cz] and hide_air:
                        continue
                    color = _block_color(
                        registry, block_id, lambda cx=cx, cz=cz: chunk.data[cx][cz]
                    )
                    off = ((iz - crop_z) * crop_w + (ix - crop_x)) * 3
                    buf[off:off + 3] = _rgb_bytes(color)

        path = Path(f"{base_path}.mcpe_viz_slice.{infix}{dimension.name}.{cy:03d}.png")
        Image.frombytes("RGB", (crop_w, crop_h), bytes(buf)).save(path, format="PNG")
        paths.append(path)

    if make_movie:
        pattern = f"{base_path}.mcpe_viz_slice.{dimension.name}.%03d.png"
        command = [
            "ffmpeg", "-y", "-framerate", "1", "-i", pattern,
            "-c:v", "libx264", "-r", "30", str(out_path),
        ]
        try:
            result = subprocess.run(command, check=False)
        except OSError as exc:
            log.error("Failed to create movie cmd=(%s): %s", " ".join(command), exc)
        else:
            if result.returncode != 0:
                log.error("Failed to create movie ret=(%d) cmd=(%s)",
                          result.returncode, " ".join(command))
    return paths