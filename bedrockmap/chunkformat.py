"""Low-level access to raw chunk records of a Bedrock world database."""

from __future__ import annotations

import struct
from dataclasses import dataclass

MAX_BLOCK_HEIGHT = 255
MAX_BLOCK_HEIGHT_127 = 127
MAX_CUBIC_Y = 16

DIM_OVERWORLD = 0

RECORD_LEGACY_TERRAIN = 0x30
RECORD_SUBCHUNK_PREFIX = 0x2F
RECORD_DATA_2D = 0x2D

# v2 (legacy terrain) record layout
_V2_BLOCK_DATA = 32768
_V2_SKY_LIGHT = 32768 + 16384
_V2_BLOCK_LIGHT = 32768 + 16384 + 16384
_V2_HEIGHT = 32768 + 16384 + 16384 + 16384
_V2_GRASS_BIOME = _V2_HEIGHT + 256

# v3 (sub-chunk) record layout; byte 0 is a version byte
_V3_BLOCK_DATA = 16 * 16 * 16 + 1
_V3_SKY_LIGHT = _V3_BLOCK_DATA + 16 * 16 * 8
_V3_BLOCK_LIGHT = _V3_SKY_LIGHT + 16 * 16 * 8


class ChunkFormatError(ValueError):
    """Raised when chunk data is truncated or has an unknown layout."""


@dataclass(frozen=True)
class BlockStorageLayout:
    """How block palette indices are packed in a paletted sub-chunk."""

    blocks_per_word: int
    bits_per_block: int
    padding: bool
    palette_offset: int
    extra_offset: int


# storage-format byte -> (blocks per word, bits per block, padding, palette offset)
_LAYOUTS = {
    0x02: (32, 1, False, 512),
    0x04: (16, 2, False, 1024),
    0x06: (10, 3, True, 1640),
    0x08: (8, 4, False, 2048),
    0x0A: (6, 5, True, 2732),
    0x0C: (5, 6, True, 3280),
    0x10: (4, 8, False, (4096 // 4) * 4),
    0x20: (2, 16, False, (4096 // 2) * 4),
}


def chunk_key(
    chunk_x: int,
    chunk_z: int,
    dimension_id: int = DIM_OVERWORLD,
    record_type: int = RECORD_LEGACY_TERRAIN,
    subchunk: int | None = None,
) -> bytes:
    """Build the database key of a chunk record.

    Overworld keys omit the dimension id; sub-chunk records carry a
    trailing sub-chunk index byte.
    """
    if dimension_id == DIM_OVERWORLD:
        key = struct.pack("<iiB", chunk_x, chunk_z, record_type)
    else:
        key = struct.pack("<iiiB", chunk_x, chunk_z, dimension_id, record_type)
    if subchunk is not None:
        key += struct.pack("<B", subchunk & 0xFF)
    return key


def _byte(data: bytes, offset: int) -> int:
    if not 0 <= offset < len(data):
        raise ChunkFormatError(
            f"offset {offset} outside chunk data of length {len(data)}"
        )
    return data[offset]


def _nibble(value: int, offset: int) -> int:
    return value & 0x0F if offset % 2 == 0 else (value & 0xF0) >> 4


def offset_block_v2(x: int, z: int, y: int) -> int:
    """Offset of a block within a v2 chunk record."""
    return ((x * 16) + z) * (MAX_BLOCK_HEIGHT_127 + 1) + y


def offset_column_v2(x: int, z: int) -> int:
    """Offset of a column within v2 per-column data (z-major)."""
    return (z * 16) + x


def block_id_v2(data: bytes, x: int, z: int, y: int) -> int:
    return _byte(data, offset_block_v2(x, z, y))


def _nibble_v2(data: bytes, base: int, x: int, z: int, y: int) -> int:
    off = offset_block_v2(x, z, y)
    return _nibble(_byte(data, base + off // 2), off)


def block_data_v2(data: bytes, x: int, z: int, y: int) -> int:
    return _nibble_v2(data, _V2_BLOCK_DATA, x, z, y)


def block_sky_light_v2(data: bytes, x: int, z: int, y: int) -> int:
    return _nibble_v2(data, _V2_SKY_LIGHT, x, z, y)


def block_block_light_v2(data: bytes, x: int, z: int, y: int) -> int:
    return _nibble_v2(data, _V2_BLOCK_LIGHT, x, z, y)


def column_height_v2(data: bytes, x: int, z: int) -> int:
    """Height of the top solid block of a column."""
    return _byte(data, _V2_HEIGHT + offset_column_v2(x, z))


def column_grass_and_biome_v2(data: bytes, x: int, z: int) -> int:
    """Four bytes: low byte is the biome id, the upper three the grass colour."""
    start = _V2_GRASS_BIOME + offset_column_v2(x, z) * 4
    if start < 0 or start + 4 > len(data):
        raise ChunkFormatError(
            f"offset {start} outside chunk data of length {len(data)}"
        )
    return int.from_bytes(data[start:start + 4], "little", signed=False)


def offset_block_v3(x: int, z: int, y: int) -> int:
    """Offset of a block within a 16x16x16 sub-chunk."""
    return ((x * 16) + z) * 16 + y


def block_id_v3(data: bytes, x: int, z: int, y: int) -> int:
    return _byte(data, offset_block_v3(x, z, y) + 1)


def _nibble_v3(data: bytes, base: int, x: int, z: int, y: int) -> int:
    off = offset_block_v3(x, z, y)
    position = base + off // 2
    if position >= len(data):
        # short records (e.g. without light arrays) read as zero
        return 0
    return _nibble(data[position], off)


def block_data_v3(data: bytes, x: int, z: int, y: int) -> int:
    return _nibble_v3(data, _V3_BLOCK_DATA, x, z, y)


def block_sky_light_v3(data: bytes, x: int, z: int, y: int) -> int:
    return _nibble_v3(data, _V3_SKY_LIGHT, x, z, y)


def block_block_light_v3(data: bytes, x: int, z: int, y: int) -> int:
    return _nibble_v3(data, _V3_BLOCK_LIGHT, x, z, y)


def column_height_v3(data: bytes, x: int, z: int) -> int:
    """Low byte of the two-byte top-block height of a column."""
    return _byte(data, offset_column_v2(x, z) * 2)


def column_grass_and_biome_v3(data: bytes, x: int, z: int) -> int:
    """Biome byte of a column, or 0 where the record is incomplete.

    The byte is read as signed and widened to 32 bits.
    """
    off = 512 + offset_column_v2(x, z)
    if off + 1 > len(data):
        return 0
    value = data[off]
    if value >= 0x80:
        value -= 0x100
    return value & 0xFFFFFFFF


def offset_block_v3_fullchunk(x: int, z: int, y: int) -> int:
    """Offset of a block in a whole-column buffer assembled from sub-chunks."""
    return ((x * 16) + z) * MAX_BLOCK_HEIGHT + y


def block_storage_layout(data: bytes) -> BlockStorageLayout:
    """Describe the block storage of a paletted sub-chunk record."""
    if not data:
        raise ChunkFormatError("empty sub-chunk record")
    if data[0] == 0x01:
        selector = _byte(data, 1)
        extra_offset = 0
    else:
        # version 8+: data[1] is the number of storage groups
        selector = _byte(data, 2)
        extra_offset = 1
    try:
        blocks_per_word, bits_per_block, padding, palette_offset = _LAYOUTS[selector]
    except KeyError:
        raise ChunkFormatError(f"unknown block storage format {selector}") from None
    return BlockStorageLayout(
        blocks_per_word=blocks_per_word,
        bits_per_block=bits_per_block,
        padding=padding,
        palette_offset=palette_offset,
        extra_offset=extra_offset,
    )