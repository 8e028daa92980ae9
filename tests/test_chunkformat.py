import pytest

from bedrockmap import chunkformat as cf
from bedrockmap.chunkformat import ChunkFormatError

V2_SIZE = 32768 + 16384 + 16384 + 16384 + 256 + 1024


def test_overworld_key_bytes():
    assert cf.chunk_key(1, 2, 0, 0x30) == b"\x01\x00\x00\x00\x02\x00\x00\x00\x30"


def test_negative_coordinates_key():
    key = cf.chunk_key(-1, 0, 0, 0x30)
    assert key[:4] == b"\xff\xff\xff\xff"


def test_key_lengths():
    assert len(cf.chunk_key(3, 4, 0, 0x2F, 5)) == 10
    assert len(cf.chunk_key(3, 4, 1, 0x30)) == 13
    assert len(cf.chunk_key(3, 4, 1, 0x2F, 5)) == 14


def test_nether_key_layout():
    key = cf.chunk_key(3, 4, 1, 0x2F, 5)
    assert key[8:12] == b"\x01\x00\x00\x00"
    assert key[12] == 0x2F
    assert key[13] == 5


def test_v2_offsets_cover_block_array():
    offsets = {
        cf.offset_block_v2(x, z, y)
        for x in range(16)
        for z in range(16)
        for y in range(128)
    }
    assert len(offsets) == 32768
    assert min(offsets) == 0
    assert max(offsets) == 32767


def test_v2_column_offsets_z_major():
    assert cf.offset_column_v2(1, 0) + 15 == cf.offset_column_v2(0, 1)


def test_v2_block_id_round_trip():
    buf = bytearray(V2_SIZE)
    buf[cf.offset_block_v2(3, 7, 64)] = 42
    assert cf.block_id_v2(bytes(buf), 3, 7, 64) == 42
    assert cf.block_id_v2(bytes(buf), 3, 7, 65) == 0


def test_v2_nibbles():
    buf = bytearray(V2_SIZE)
    off = cf.offset_block_v2(2, 5, 10)
    buf[32768 + off // 2] = 0xA5
    buf[32768 + 16384 + off // 2] = 0x3C
    buf[32768 + 16384 + 16384 + off // 2] = 0x71
    data = bytes(buf)
    assert cf.block_data_v2(data, 2, 5, 10) == 0x5
    assert cf.block_data_v2(data, 2, 5, 11) == 0xA
    assert cf.block_sky_light_v2(data, 2, 5, 10) == 0xC
    assert cf.block_block_light_v2(data, 2, 5, 11) == 0x7


def test_v2_column_data():
    buf = bytearray(V2_SIZE)
    col = cf.offset_column_v2(4, 9)
    buf[32768 + 16384 * 3 + col] = 200
    start = 32768 + 16384 * 3 + 256 + col * 4
    buf[start:start + 4] = (0x11223344).to_bytes(4, "little")
    data = bytes(buf)
    assert cf.column_height_v2(data, 4, 9) == 200
    assert cf.column_grass_and_biome_v2(data, 4, 9) == 0x11223344


def test_v2_truncated_raises():
    with pytest.raises(ChunkFormatError):
        cf.block_data_v2(bytes(100), 15, 15, 127)
    with pytest.raises(ChunkFormatError):
        cf.column_grass_and_biome_v2(bytes(100), 0, 0)


def test_v3_block_id_skips_version_byte():
    buf = bytearray(10241)
    buf[0] = 9
    buf[cf.offset_block_v3(1, 2, 3) + 1] = 17
    assert cf.block_id_v3(bytes(buf), 1, 2, 3) == 17
    assert cf.block_id_v3(bytes(buf), 0, 0, 0) == 0


def test_v3_nibbles_round_trip():
    buf = bytearray(10241)
    off = cf.offset_block_v3(6, 6, 6)
    buf[4097 + off // 2] = 0x9B
    buf[4097 + 2048 + off // 2] = 0x0E
    buf[4097 + 4096 + off // 2] = 0xD0
    data = bytes(buf)
    assert cf.block_data_v3(data, 6, 6, 6) == 0xB
    assert cf.block_data_v3(data, 6, 6, 7) == 0x9
    assert cf.block_sky_light_v3(data, 6, 6, 6) == 0xE
    assert cf.block_block_light_v3(data, 6, 6, 7) == 0xD


def test_v3_short_record_lights_read_zero():
    buf = bytes([0xFF]) * 6145
    assert cf.block_data_v3(buf, 15, 15, 15) == 0xF
    assert cf.block_sky_light_v3(buf, 0, 0, 0) == 0
    assert cf.block_block_light_v3(buf, 15, 15, 15) == 0


def test_v3_column_height_and_biome():
    buf = bytearray(768)
    col = cf.offset_column_v2(5, 3)
    buf[col * 2] = 70
    buf[512 + col] = 7
    data = bytes(buf)
    assert cf.column_height_v3(data, 5, 3) == 70
    assert cf.column_grass_and_biome_v3(data, 5, 3) == 7


def test_v3_biome_sign_extended():
    buf = bytearray(768)
    buf[512] = 0x80
    assert cf.column_grass_and_biome_v3(bytes(buf), 0, 0) == 0xFFFFFF80


def test_v3_biome_incomplete_record():
    buf = bytes([5]) * 512
    assert cf.column_grass_and_biome_v3(buf, 0, 0) == 0


def test_fullchunk_offset_stride():
    assert cf.offset_block_v3_fullchunk(0, 0, 5) == 5
    assert cf.offset_block_v3_fullchunk(0, 1, 0) == cf.MAX_BLOCK_HEIGHT


def test_layout_version_one():
    layout = cf.block_storage_layout(bytes([1, 0x08]) + bytes(10))
    assert layout.bits_per_block == 4
    assert layout.blocks_per_word == 8
    assert layout.palette_offset == 2048
    assert layout.extra_offset == 0
    assert layout.padding is False


def test_layout_version_eight():
    layout = cf.block_storage_layout(bytes([8, 1, 0x06]) + bytes(10))
    assert layout.extra_offset == 1
    assert layout.padding is True
    assert layout.palette_offset == 1640
    assert layout.bits_per_block == 3


@pytest.mark.parametrize("selector", [0x02, 0x04, 0x06, 0x08, 0x0A, 0x0C, 0x10, 0x20])
def test_layout_fits_in_words(selector):
    layout = cf.block_storage_layout(bytes([1, selector]))
    assert layout.blocks_per_word * layout.bits_per_block <= 32
    assert layout.bits_per_block * 2 == selector


def test_layout_unknown_selector():
    with pytest.raises(ChunkFormatError):
        cf.block_storage_layout(bytes([1, 0x03]))


def test_layout_empty_record():
    with pytest.raises(ChunkFormatError):
        cf.block_storage_layout(b"")