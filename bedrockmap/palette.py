"""Colour palettes and per-pixel colours for the map images."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from .chunk import ChunkData
from .chunkformat import MAX_BLOCK_HEIGHT
from .xmldata import Registry

DEFAULT_COLOR = 0xFF00FF
UNKNOWN_BIOME_COLOR = 0xFF2020
SEA_LEVEL = 62
SEA_LEVEL_COLOR = 0x303030

# offset added above the build limit when computing height alpha values
_ALPHA_OFFSET = 32
_ALPHA_MAX = 235.0

_MASK32 = 0xFFFFFFFF


class ImageMode(Enum):
    """The kinds of top-down image that can be rendered."""

    TERRAIN = "terrain"
    BIOME = "biome"
    GRASS = "grass"
    HEIGHT_COL = "height_col"
    HEIGHT_COL_GRAYSCALE = "height_col_grayscale"
    HEIGHT_COL_ALPHA = "height_col_alpha"
    BLOCK_LIGHT = "light_block"
    SKY_LIGHT = "light_sky"
    SLIME_CHUNKS = "slime_chunks"


class HeightMode(Enum):
    """Which height value drives the height images."""

    TOP = "top"
    COLUMN = "column"


def _rgb(color: int) -> tuple[int, int, int]:
    return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


def _hue_to_rgb(m1: float, m2: float, h: float) -> float:
    while h < 1.0:
        h += 1.0
    while h > 1.0:
        h -= 1.0
    if h * 6.0 < 1.0:
        return m1 + (m2 - m1) * h * 6.0
    if h * 2.0 < 1.0:
        return m2
    if h * 3.0 < 2.0:
        return m1 + (m2 - m1) * (2.0 / 3.0 - h) * 6.0
    return m1


def _channel(value: float) -> int:
    return max(0, min(255, int(value * 255.0)))


def hsl_to_rgb(h: float, s: float, l: float) -> tuple[int, int, int]:
    """Convert hue, saturation and lightness (all 0..1) to 8-bit RGB."""
    m2 = l * (s + 1.0) if l <= 0.5 else l + s - l * s
    m1 = l * 2.0 - m2
    return (
        _channel(_hue_to_rgb(m1, m2, h + 1.0 / 3.0)),
        _channel(_hue_to_rgb(m1, m2, h)),
        _channel(_hue_to_rgb(m1, m2, h - 1.0 / 3.0)),
    )


def hsl_ramp(
    count: int, h1: float, h2: float, s1: float, s2: float, l1: float, l2: float
) -> list[int]:
    """A list of ``count`` 0xRRGGBB colours stepping linearly through HSL space."""
    dh = (h2 - h1) / count
    ds = (s2 - s1) / count
    dl = (l2 - l1) / count
    h, s, l = h1, s1, l1
    ramp = []
    for _ in range(count):
        r, g, b = hsl_to_rgb(h, s, l)
        ramp.append((r << 16) | (g << 8) | b)
        h += dh
        s += ds
        l += dl
    return ramp


@lru_cache(maxsize=1)
def _height_palette() -> tuple[int, ...]:
    below = hsl_ramp(SEA_LEVEL, 0.0, 0.0, 0.9, 0.9, 0.8, 0.1)
    above = hsl_ramp(MAX_BLOCK_HEIGHT - SEA_LEVEL, 0.4, 0.4, 0.9, 0.9, 0.1, 0.8)
    palette = below + [SEA_LEVEL_COLOR] + above
    palette += [DEFAULT_COLOR] * (256 - len(palette))
    return tuple(palette)


def height_palette() -> list[int]:
    """256 colours: red to black below sea level, gray at it, black to green above."""
    return list(_height_palette())


@lru_cache(maxsize=1)
def _height_alpha_lut() -> tuple[int, ...]:
    vmax = float(MAX_BLOCK_HEIGHT) * float(MAX_BLOCK_HEIGHT)
    lut = [0] * 256
    for i in range(MAX_BLOCK_HEIGHT + 1):
        ti = float((MAX_BLOCK_HEIGHT + 1) + _ALPHA_OFFSET - i)
        v = (ti * ti / vmax) * 255.0
        lut[i] = int(min(max(v, 0.0), _ALPHA_MAX))
    return tuple(lut)


def height_alpha_lut() -> list[int]:
    """Alpha value for each height: high ground is transparent, low ground dark."""
    return list(_height_alpha_lut())


def _mt19937_first_output(seed: int) -> int:
    """First 32-bit output of an MT19937 generator seeded with ``seed``."""
    state = [seed & _MASK32]
    for i in range(1, 398):
        prev = state[-1]
        state.append((1812433253 * (prev ^ (prev >> 30)) + i) & _MASK32)
    y = (state[0] & 0x80000000) | (state[1] & 0x7FFFFFFF)
    value = state[397] ^ (y >> 1)
    if y & 1:
        value ^= 0x9908B0DF
    value ^= value >> 11
    value ^= (value << 7) & 0x9D2C5680
    value ^= (value << 15) & 0xEFC60000
    value ^= value >> 18
    return value & _MASK32


def is_slime_chunk(chunk_x: int, chunk_z: int) -> bool:
    """Whether slimes may spawn in the chunk; the world seed plays no part."""
    seed = ((chunk_x & _MASK32) * 0x1F1F1F1F) ^ (chunk_z & _MASK32)
    n = _mt19937_first_output(seed & _MASK32)
    hi = ((n * 0xCCCCCCCD) >> 32) & _MASK32
    hi_shift3 = (hi >> 3) & _MASK32
    res = (((hi_shift3 + hi_shift3 * 4) & _MASK32) * 2) & _MASK32
    return n == res


def _gray(c: int) -> tuple[int, int, int]:
    c &= 0xFF
    return c, c, c


def _terrain_color(registry: Registry, block_id: int, block_data: int) -> int:
    block = registry.block(block_id)
    if block is None:
        return DEFAULT_COLOR
    if block.has_variants:
        variant = block.variant_for(block_data)
        if variant is not None and variant.color is not None:
            return variant.color
    return block.color if block.color is not None else DEFAULT_COLOR


def pixel_color(
    chunk: ChunkData,
    cx: int,
    cz: int,
    mode: ImageMode,
    registry: Registry,
    height_mode: HeightMode = HeightMode.TOP,
) -> tuple[int, ...]:
    """Colour of one column of a chunk in the given image mode.

    Returns an RGB tuple, or an RGBA tuple for the height alpha mode.
    """
    if mode in (
        ImageMode.HEIGHT_COL,
        ImageMode.HEIGHT_COL_GRAYSCALE,
        ImageMode.HEIGHT_COL_ALPHA,
    ):
        source = chunk.top_block_y if height_mode is HeightMode.TOP else chunk.height_col
        height = source[cx][cz] & 0xFF
        if mode is ImageMode.HEIGHT_COL:
            return _rgb(_height_palette()[height])
        if mode is ImageMode.HEIGHT_COL_GRAYSCALE:
            return _gray(height)
        return 0, 0, 0, _height_alpha_lut()[height]

    if mode is ImageMode.BIOME:
        biome = registry.biome(chunk.grass_and_biome[cx][cz] & 0xFF)
        if biome is None or biome.color is None:
            return _rgb(UNKNOWN_BIOME_COLOR)
        return _rgb(biome.color)
    if mode is ImageMode.GRASS:
        return _rgb((chunk.grass_and_biome[cx][cz] & _MASK32) >> 8)
    if mode is ImageMode.BLOCK_LIGHT:
        return _gray((chunk.top_light[cx][cz] & 0x0F) << 4)
    if mode is ImageMode.SKY_LIGHT:
        return _gray(chunk.top_light[cx][cz] & 0xF0)
    if mode is ImageMode.TERRAIN:
        return _rgb(_terrain_color(registry, chunk.blocks[cx][cz], chunk.data[cx][cz]))
    raise ValueError(f"image mode {mode.value} has no per-column colour")