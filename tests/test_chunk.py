import pytest

from bedrockmap.chunk import BlockLists, ChunkContext, ChunkData
from bedrockmap.chunkformat import ChunkFormatError, offset_block_v2, offset_block_v3
from bedrockmap.spawn import CheckSpawn
from bedrockmap.xmldata import Registry

V2_SIZE = 83200
V2_DATA = 32768
V2_SKY = 32768 + 16384
V2_LIGHT = 32768 + 16384 + 16384
V2_HEIGHT = 32768 + 16384 + 16384 + 16384
V2_GRASS = V2_HEIGHT + 256

V3_SIZE = 10241
V3_DATA = 4097
V3_SKY = 4097 + 2048
V3_LIGHT = 4097 + 2048 + 2048


def make_registry():
    reg = Registry()
    air = reg.add_block(0, "air")
    air.solid = False
    air.opaque = False
    air.spawnable = False
    reg.add_block(1, "stone")
    reg.add_block(3, "dirt")
    torch = reg.add_block(50, "torch")
    torch.solid = False
    torch.opaque = False
    return reg


def set_nibble(buf, base, off, value):
    index = base + off // 2
    if off % 2 == 0:
        buf[index] = (buf[index] & 0xF0) | value
    else:
        buf[index] = (buf[index] & 0x0F) | (value << 4)


@pytest.fixture
def ctx():
    return ChunkContext(registry=make_registry())


def test_v2_top_block_and_light(ctx):
    buf = bytearray(V2_SIZE)
    buf[offset_block_v2(0, 0, 10)] = 1
    set_nibble(buf, V2_DATA, offset_block_v2(0, 0, 10), 5)
    set_nibble(buf, V2_SKY, offset_block_v2(0, 0, 11), 15)
    set_nibble(buf, V2_LIGHT, offset_block_v2(0, 0, 11), 3)
    chunk = ChunkData()
    chunk.add_v2(0, 0, bytes(buf), ctx)
    assert chunk.chunk_format_version == 2
    assert chunk.blocks[0][0] == 1
    assert chunk.data[0][0] == 5
    assert chunk.top_block_y[0][0] == 10
    assert chunk.top_light[0][0] == (15 << 4) | 3
    assert chunk.blocks[1][1] == 0
    assert chunk.check_spawn_flag is False


def test_v2_non_solid_reads_own_light(ctx):
    buf = bytearray(V2_SIZE)
    buf[offset_block_v2(0, 0, 10)] = 50
    set_nibble(buf, V2_LIGHT, offset_block_v2(0, 0, 10), 14)
    set_nibble(buf, V2_LIGHT, offset_block_v2(0, 0, 11), 2)
    chunk = ChunkData()
    chunk.add_v2(0, 0, bytes(buf), ctx)
    assert chunk.top_light[0][0] & 0x0F == 14


def test_v2_hide_list(ctx):
    ctx.lists = BlockLists(hide={1})
    buf = bytearray(V2_SIZE)
    buf[offset_block_v2(0, 0, 10)] = 1
    buf[offset_block_v2(0, 0, 5)] = 3
    chunk = ChunkData()
    chunk.add_v2(0, 0, bytes(buf), ctx)
    assert chunk.blocks[0][0] == 3
    assert chunk.top_block_y[0][0] == 5


def test_v2_force_top_list(ctx):
    ctx.lists = BlockLists(force_top={1})
    buf = bytearray(V2_SIZE)
    buf[offset_block_v2(0, 0, 10)] = 3
    buf[offset_block_v2(0, 0, 5)] = 1
    chunk = ChunkData()
    chunk.add_v2(0, 0, bytes(buf), ctx)
    assert chunk.blocks[0][0] == 1
    assert chunk.top_block_y[0][0] == 5


def test_v2_column_data(ctx):
    buf = bytearray(V2_SIZE)
    buf[V2_HEIGHT + 3 * 16 + 2] = 70
    start = V2_GRASS + (3 * 16 + 2) * 4
    buf[start:start + 4] = (0x00AABB04).to_bytes(4, "little")
    chunk = ChunkData()
    chunk.add_v2(0, 0, bytes(buf), ctx)
    assert chunk.height_col[2][3] == 70
    assert chunk.grass_and_biome[2][3] == 0x00AABB04
    assert chunk.height_col[3][2] == 0


def test_v2_geojson_block(ctx):
    ctx.lists = BlockLists(geojson={1})
    buf = bytearray(V2_SIZE)
    buf[offset_block_v2(1, 2, 10)] = 1
    chunk = ChunkData()
    chunk.add_v2(0, 0, bytes(buf), ctx)
    assert len(ctx.geojson) == 1
    feature = ctx.geojson[0]
    assert feature["properties"]["Name"] == "stone"
    assert feature["properties"]["Pos"] == [1, 10, 2]
    assert feature["geometry"]["coordinates"] == [1.0, 2.0]


def test_v2_inline_spawnable(ctx):
    ctx.check_spawns = (CheckSpawn(0, 0, 0),)
    buf = bytearray(V2_SIZE)
    buf[offset_block_v2(0, 0, 4)] = 1
    chunk = ChunkData()
    chunk.add_v2(0, 0, bytes(buf), ctx)
    assert chunk.check_spawn_flag is True
    spawnable = [f for f in ctx.geojson if f["properties"].get("Name") == "Spawnable"]
    assert [f["properties"]["Pos"] for f in spawnable] == [[0, 5, 0]]


def test_v2_truncated_record_raises(ctx):
    with pytest.raises(ChunkFormatError):
        ChunkData().add_v2(0, 0, bytes(100), ctx)


def test_v3_top_block(ctx):
    buf = bytearray(V3_SIZE)
    buf[offset_block_v3(2, 3, 4) + 1] = 1
    set_nibble(buf, V3_DATA, offset_block_v3(2, 3, 4), 6)
    set_nibble(buf, V3_SKY, offset_block_v3(2, 3, 5), 12)
    set_nibble(buf, V3_LIGHT, offset_block_v3(2, 3, 5), 4)
    chunk = ChunkData()
    chunk.add_v3(0, 2, 0, bytes(buf), ctx)
    assert chunk.chunk_format_version == 3
    assert chunk.blocks[2][3] == 1
    assert chunk.data[2][3] == 6
    assert chunk.top_block_y[2][3] == 2 * 16 + 4
    assert chunk.top_light[2][3] == (12 << 4) | 4


def test_v3_higher_subchunk_wins_in_any_order(ctx):
    low = bytearray(V3_SIZE)
    low[offset_block_v3(0, 0, 15) + 1] = 3
    high = bytearray(V3_SIZE)
    high[offset_block_v3(0, 0, 0) + 1] = 1

    forward = ChunkData()
    forward.add_v3(0, 0, 0, bytes(low), ctx)
    forward.add_v3(0, 1, 0, bytes(high), ctx)
    backward = ChunkData()
    backward.add_v3(0, 1, 0, bytes(high), ctx)
    backward.add_v3(0, 0, 0, bytes(low), ctx)

    assert forward.blocks[0][0] == backward.blocks[0][0] == 1
    assert forward.top_block_y[0][0] == backward.top_block_y[0][0] == 16


def test_v3_unknown_block_skipped(ctx):
    ctx.lists = BlockLists(geojson={77})
    buf = bytearray(V3_SIZE)
    buf[offset_block_v3(0, 0, 0) + 1] = 77
    chunk = ChunkData()
    chunk.add_v3(0, 0, 0, bytes(buf), ctx)
    assert chunk.blocks[0][0] == 0
    assert ctx.geojson == []


def test_v3_geojson_uses_real_height(ctx):
    ctx.lists = BlockLists(geojson={1})
    buf = bytearray(V3_SIZE)
    buf[offset_block_v3(0, 0, 0) + 1] = 1
    chunk = ChunkData()
    chunk.add_v3(0, 1, 0, bytes(buf), ctx)
    assert ctx.geojson[0]["properties"]["Pos"] == [0, 16, 0]


def test_v3_sets_spawn_flag(ctx):
    ctx.check_spawns = (CheckSpawn(0, 0, 1),)
    chunk = ChunkData()
    chunk.add_v3(0, 0, 0, bytes(V3_SIZE), ctx)
    assert chunk.check_spawn_flag is True


def test_column_v3():
    buf = bytearray(768)
    buf[(2 * 16 + 1) * 2] = 70
    buf[512 + 2 * 16 + 1] = 5
    chunk = ChunkData()
    chunk.add_column_v3(4, 5, bytes(buf))
    assert (chunk.chunk_x, chunk.chunk_z) == (4, 5)
    assert chunk.height_col[1][2] == 70
    assert chunk.grass_and_biome[1][2] == 5


def test_column_v3_short_biome_data():
    buf = bytearray(520)
    buf[512] = 3
    buf[512 + 2 * 16 + 1] if len(buf) > 545 else None
    chunk = ChunkData()
    chunk.add_column_v3(0, 0, bytes(buf))
    assert chunk.grass_and_biome[0][0] == 3
    assert chunk.grass_and_biome[1][2] == 0