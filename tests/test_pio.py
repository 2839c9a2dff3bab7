import pytest

from avstream import pio


def _sample_vec():
    return [bytes([1, 2, 3]), bytes([4, 5, 6, 7, 8, 9]), bytes([10, 11, 12, 13])]


def test_vec_len():
    assert pio.vec_len(_sample_vec()) == 13


def test_vec_slice_example_chain():
    vec = pio.vec_slice(_sample_vec(), 1, -1)
    assert vec == [bytes([2, 3]), bytes([4, 5, 6, 7, 8, 9]), bytes([10, 11, 12, 13])]

    vec = pio.vec_slice(vec, 2, -1)
    assert vec == [bytes([4, 5, 6, 7, 8, 9]), bytes([10, 11, 12, 13])]

    vec = pio.vec_slice(vec, 8, 8)
    assert vec == []


def test_vec_slice_middle_range():
    vec = pio.vec_slice(_sample_vec(), 2, 10)
    assert vec == [bytes([3]), bytes([4, 5, 6, 7, 8, 9]), bytes([10])]
    assert pio.vec_len(vec) == 8


def test_vec_slice_inverted_bounds():
    with pytest.raises(ValueError):
        pio.vec_slice(_sample_vec(), 5, 2)


def test_vec_slice_start_out_of_range():
    with pytest.raises(ValueError):
        pio.vec_slice(_sample_vec(), 20, -1)


def test_vec_slice_end_out_of_range():
    with pytest.raises(ValueError):
        pio.vec_slice(_sample_vec(), 0, 20)


@pytest.mark.parametrize(
    "reader,data,expected",
    [
        (pio.u8, b"\xab", 0xAB),
        (pio.u16be, b"\x12\x34", 0x1234),
        (pio.i16be, b"\xff\xfe", -2),
        (pio.u24be, b"\x12\x34\x56", 0x123456),
        (pio.i24be, b"\x80\x00\x00", -0x800000),
        (pio.u32be, b"\x11\x22\x33\x44", 0x11223344),
        (pio.i32be, b"\xff\xff\xff\xff", -1),
        (pio.u32le, b"\x44\x33\x22\x11", 0x11223344),
        (pio.u40be, b"\x01\x02\x03\x04\x05", 0x0102030405),
        (pio.u64be, b"\x01\x02\x03\x04\x05\x06\x07\x08", 0x0102030405060708),
        (pio.i64be, b"\xff" * 8, -1),
    ],
)
def test_readers(reader, data, expected):
    assert reader(data) == expected


def test_reader_ignores_trailing_bytes():
    assert pio.u16be(b"\x00\x01\xff\xff") == 1


def test_reader_short_input():
    with pytest.raises(ValueError):
        pio.u32be(b"\x00\x01")


@pytest.mark.parametrize(
    "packer,value,expected",
    [
        (pio.pack_u8, 0x1FF, b"\xff"),
        (pio.pack_u16be, 0x1234, b"\x12\x34"),
        (pio.pack_i16be, -2, b"\xff\xfe"),
        (pio.pack_u24be, 0x123456, b"\x12\x34\x56"),
        (pio.pack_i24be, -1, b"\xff\xff\xff"),
        (pio.pack_u32be, 0x11223344, b"\x11\x22\x33\x44"),
        (pio.pack_i32be, -2, b"\xff\xff\xff\xfe"),
        (pio.pack_u32le, 0x11223344, b"\x44\x33\x22\x11"),
        (pio.pack_u40be, 0x0102030405, b"\x01\x02\x03\x04\x05"),
        (pio.pack_u48be, 0x010203040506, b"\x01\x02\x03\x04\x05\x06"),
        (pio.pack_u64be, 0x0102030405060708, b"\x01\x02\x03\x04\x05\x06\x07\x08"),
        (pio.pack_i64be, -1, b"\xff" * 8),
    ],
)
def test_packers(packer, value, expected):
    assert packer(value) == expected


@pytest.mark.parametrize(
    "packer,reader,value",
    [
        (pio.pack_i16be, pio.i16be, -12345),
        (pio.pack_i24be, pio.i24be, -70000),
        (pio.pack_i32be, pio.i32be, -123456789),
        (pio.pack_u32le, pio.u32le, 0xDEADBEEF),
        (pio.pack_i64be, pio.i64be, -(2**62)),
        (pio.pack_u64be, pio.u64be, 2**63 + 5),
    ],
)
def test_round_trip(packer, reader, value):
    assert reader(packer(value)) == value