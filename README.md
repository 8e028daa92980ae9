# bedrockmap

`bedrockmap` decodes the raw chunk records of Minecraft Bedrock Edition worlds
and turns them into top-down map images, per-layer slice images and GeoJSON
features. It works on record bytes you hand it; the world database is passed
in as any mapping from key bytes to value bytes.

## Modules

- `bedrockmap.chunkformat` – reading values out of raw records. `chunk_key()`
  builds the database key of a chunk record. The `*_v2` functions read legacy
  whole-column terrain records (`0x30`), the `*_v3` functions read 16×16×16
  sub-chunk records (`0x2f`) and per-column height/biome records (`0x2d`):
  block id, block data, sky light, block light, column height and
  grass/biome. `block_storage_layout()` describes how palette indices are
  packed in a paletted sub-chunk (`BlockStorageLayout`). Truncated or unknown
  data raises `ChunkFormatError`.
- `bedrockmap.xmldata` – a `Registry` of `Biome`, `Block` (with
  `BlockVariant`), `Item`, `Entity` and `Enchantment` definitions, filled from
  an XML definitions file with `load_xml()` or from individual list elements
  with `load_biomes()`, `load_blocks()`, `load_items()`, `load_entities()`
  and `load_enchantments()`. Missing names or ids and duplicates raise
  `XmlLoadError`.
- `bedrockmap.chunk` – `ChunkData` keeps, for each of the 16×16 columns of a
  chunk, the top visible block, its data and height, the light above it, the
  column height and the grass/biome value. `BlockLists` chooses blocks to hide
  from the top view, to force to the top, or to export as GeoJSON;
  `ChunkContext` carries the registry, lists and spawn-check areas.
- `bedrockmap.spawn` and `bedrockmap.spawnable` – `CheckSpawn` circles and
  the rules that decide whether a mob can spawn on a block (dark enough,
  passable block with a passable block above and a spawnable block below).
  `check_spawnable()` gathers all sub-chunks of a column from the database
  and lists spawnable spots.
- `bedrockmap.features` – GeoJSON point features for chosen blocks,
  spawnable spots and spawn-check circles.
- `bedrockmap.palette` – `ImageMode`, `HeightMode`, the height colour
  palette, the height alpha table, HSL helpers, `pixel_color()` and
  `is_slime_chunk()`.
- `bedrockmap.dimension` – `DimensionData` collects the chunks of one
  dimension, tracks chunk bounds, maps world to image coordinates and renders
  PNG images (`render_image()`, `write_images()`) according to
  `OutputOptions` (extra image modes, grid lines, height mode).
- `bedrockmap.slices` – `generate_slices()` writes one full-size image per
  block layer (0–255); `generate_movie()` writes per-layer images from legacy
  records, optionally cropped, and can join them into a video by running
  `ffmpeg`.

## Usage

Load the definitions and look up a block:

```python
from bedrockmap.xmldata import Registry, load_xml

registry = Registry()
load_xml("definitions.xml", registry)

block = registry.block(1)
if block is not None:
    print(block.name, block.is_spawnable(0))
```

Read values out of a raw sub-chunk record:

```python
from bedrockmap import chunkformat

key = chunkformat.chunk_key(3, -2, 0, chunkformat.RECORD_SUBCHUNK_PREFIX, 4)
value = db[key]  # db: any mapping of key bytes to value bytes
top_id = chunkformat.block_id_v3(value, 0, 0, 15)
light = chunkformat.block_block_light_v3(value, 0, 0, 15)
```

Render a terrain map of one dimension:

```python
from bedrockmap.dimension import DimensionData
from bedrockmap.palette import ImageMode

overworld = DimensionData(0, "overworld", registry)
overworld.add_to_chunk_bounds(3, -2)
overworld.add_chunk(3, 3, 4, -2, value)
overworld.render_image("map.png", ImageMode.TERRAIN)
```

Check whether a chunk is a slime chunk:

```python
from bedrockmap.palette import is_slime_chunk

print(is_slime_chunk(0, 0))
```

## What it does not do

- It does not open a world database itself; you read the records (for
  example with a LevelDB binding) and pass them in as a mapping.
- It does not parse `level.dat`, entities, block entities or other NBT
  records.
- Paletted sub-chunks (first byte not zero) are not decoded into blocks:
  `block_storage_layout()` only describes them, and `generate_slices()` draws
  them as air.
- There is no command-line program, no HTML viewer, no image tiling and no
  schematic export. Slime chunks can be tested one at a time but are not
  rendered as an image.

## Requirements

Python 3.10 or later and Pillow. `generate_movie()` with `make_movie` needs
`ffmpeg` on the `PATH`.