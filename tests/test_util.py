import pytest

from qrcc import base, constants, util
from qrcc.exceptions import DataOverflowError, EmptyDataError

N = constants.NUMERIC_MODE
A = constants.ALPHANUMERIC_MODE
B = constants.EIGHT_BIT_BYTE_MODE
L, M, Q, H = (constants.ERR_CORR_L, constants.ERR_CORR_M,
              constants.ERR_CORR_Q, constants.ERR_CORR_H)


@pytest.mark.parametrize('text, mode', [
    ('0123456789', N),
    ('HELLO WORLD', A),
    ('hello world', A),
    ('A$%*+-./:1', A),
    ('hello, world', B),
    ('café', B),
    ('²', B),
    ('ß', B),
])
def test_detect_mode(text, mode):
    assert util.detect_mode(text) == mode


def test_qrdata_alphanumeric_is_upper_cased():
    data = util.QRData('hello world')
    assert data.data == b'HELLO WORLD'
    assert data.mode_name == 'ALPHANUMERIC'


def test_qrdata_byte_length_is_utf8_length():
    data = util.QRData('café')
    assert data.mode == B
    assert len(data) == 5


def test_qrdata_empty():
    with pytest.raises(EmptyDataError):
        util.QRData('')
    with pytest.raises(EmptyDataError):
        util.QRData(None)


def test_qrdata_forced_mode():
    assert util.QRData('123', mode=B).mode == B
    with pytest.raises(ValueError):
        util.QRData('ABC', mode=N)
    with pytest.raises(TypeError):
        util.QRData('ABC', mode=3)


def test_bit_buffer():
    buffer = util.BitBuffer()
    buffer.put(0b101, 3)
    buffer.put(0x1F, 5)
    buffer.set(True)
    assert len(buffer) == 9
    assert buffer.buffer == [0b10111111, 0b10000000]
    assert buffer.get(0) and not buffer.get(1) and buffer.get(8)


def test_payload_bits():
    assert util.payload_bits(N, 8) == 27
    assert util.payload_bits(N, 7) == 24
    assert util.payload_bits(A, 11) == 61
    assert util.payload_bits(B, 3) == 24


def test_hello_world_codewords():
    data = util.QRData('HELLO WORLD')
    assert util.best_version(len(data), M, data.mode) == 1
    assert util.create_data_codewords(1, M, data) == [
        0x20, 0x5B, 0x0B, 0x78, 0xD1, 0x72, 0xDC, 0x4D,
        0x43, 0x40, 0xEC, 0x11, 0xEC, 0x11, 0xEC, 0x11]


def test_numeric_codewords():
    data = util.QRData('01234567')
    assert util.create_data_codewords(1, M, data) == [
        0x10, 0x20, 0x0C, 0x56, 0x61, 0x80, 0xEC, 0x11,
        0xEC, 0x11, 0xEC, 0x11, 0xEC, 0x11, 0xEC, 0x11]


def test_terminator_clipped_at_capacity():
    # 4 + 8 + 7 * 8 = 68 bits of 72: terminator takes the last 4
    data = util.QRData('a!b!c!d')
    codewords = util.create_data_codewords(1, H, data)
    assert len(codewords) == 9
    assert codewords[-1] & 0x0F == 0


def test_create_data_codewords_overflow():
    with pytest.raises(DataOverflowError):
        util.create_data_codewords(1, H, util.QRData('a!b!c!d!'))


def test_byte_capacity_boundary():
    assert util.best_version(7, H, B) == 1
    assert util.best_version(8, H, B) == 2
    assert util.best_version(8, L, B) == 1


@pytest.mark.parametrize('mode, limit', [(N, 7089), (A, 4296), (B, 2953)])
def test_version_40_capacity(mode, limit):
    assert util.best_version(limit, L, mode) == 40
    with pytest.raises(DataOverflowError):
        util.best_version(limit + 1, L, mode)


@pytest.mark.parametrize('mode', [N, A, B])
@pytest.mark.parametrize('err_corr', [L, M, Q, H])
def test_version_selection_monotonic(mode, err_corr):
    previous = 1
    for length in range(1, 7100, 13):
        try:
            version = util.best_version(length, err_corr, mode)
        except DataOverflowError:
            break
        assert version >= previous
        previous = version


def test_best_version_start():
    assert util.best_version(1, M, N, start=5) == 5
    with pytest.raises(ValueError):
        util.best_version(1, M, N, start=0)


@pytest.mark.parametrize('version', range(1, 41))
@pytest.mark.parametrize('err_corr', [L, M, Q, H])
def test_interleave_lengths(version, err_corr):
    blocks = base.rs_blocks(version, err_corr)
    total = sum(b.total_count for b in blocks)
    ecc_per_block = blocks[0].ecc_count
    data_count = sum(b.data_count for b in blocks)
    assert data_count == total - ecc_per_block * len(blocks)
    assert data_count * 8 == util.BIT_LIMIT_TABLE[err_corr][version]

    data = [i % 256 for i in range(data_count)]
    assert len(util.interleave(data, blocks)) == total


def test_interleave_order_mixed_blocks():
    blocks = base.rs_blocks(5, Q)
    data = list(range(62))
    result = util.interleave(data, blocks)

    assert result[:4] == [0, 15, 30, 46]
    assert result[56:62] == [14, 29, 44, 60, 45, 61]

    first_ecc = base.compute_ecc(data[:15], 18)
    last_ecc = base.compute_ecc(data[46:], 18)
    assert result[62] == first_ecc[0]
    assert result[65] == last_ecc[0]
    assert result[-1] == last_ecc[-1]


def test_codewords_to_bits_remainder():
    bits = util.codewords_to_bits([0xA5], 2)
    assert bits == [1, 0, 1, 0, 0, 1, 0, 1] + [0] * 7


@pytest.mark.parametrize('mask_pattern', range(8))
def test_apply_mask_twice_restores(mask_pattern):
    size = 21
    modules = [[(r * 7 + c * 3) % 2 for c in range(size)] for r in range(size)]
    reserved = [[r < 9 and c < 9 for c in range(size)] for r in range(size)]

    masked = util.apply_mask(modules, reserved, mask_pattern)
    assert util.apply_mask(masked, reserved, mask_pattern) == modules
    for r in range(9):
        assert masked[r][:9] == modules[r][:9]


def test_mask_function_formulas():
    assert util.mask_function(0)(0, 0) and not util.mask_function(0)(0, 1)
    assert util.mask_function(2)(5, 3) and not util.mask_function(2)(5, 4)
    assert util.mask_function(4)(2, 3) and not util.mask_function(4)(0, 3)
    assert util.mask_function(5)(0, 9)
    with pytest.raises(ValueError):
        util.mask_function(8)


def test_penalty_uniform_matrix():
    modules = [[0] * 5 for _ in range(5)]
    assert util.lost_count_1(modules, 5) == 30
    assert util.lost_count_2(modules, 5) == 48
    assert util.lost_count_3(modules, 5) == 0
    assert util.lost_count_4(modules, 5) == 100


def test_penalty_long_run():
    modules = [[1] * 7] + [[(r + c) % 2 for c in range(7)] for r in range(1, 7)]
    # one run of 7 in the top row, nothing else
    assert util.lost_count_1(modules, 7) == 5


def test_penalty_checkerboard():
    modules = [[(r + c) % 2 for c in range(6)] for r in range(6)]
    assert util.lost_calculator(modules) == 0


def test_penalty_finder_like():
    pattern = list(constants.FINDER_LIKE_PATTERNS[0])
    modules = [pattern] + [[1] * 11 for _ in range(10)]
    assert util.lost_count_3(modules, 11) == 40

    modules = [list(constants.FINDER_LIKE_PATTERNS[1])] + [[1] * 11 for _ in range(10)]
    assert util.lost_count_3(modules, 11) == 40


@pytest.mark.parametrize('dark, points', [(50, 0), (54, 0), (55, 10), (60, 20), (39, 20)])
def test_penalty_dark_proportion(dark, points):
    flat = [1] * dark + [0] * (100 - dark)
    modules = [flat[i:i + 10] for i in range(0, 100, 10)]
    assert util.lost_count_4(modules, 10) == points


def test_penalty_unset_modules():
    # unset modules run and block with each other but are never dark
    modules = [[None] * 5 for _ in range(5)]
    assert util.lost_count_1(modules, 5) == 30
    assert util.lost_count_2(modules, 5) == 48
    assert util.lost_count_4(modules, 5) == 100

    row = [1, 0, 1, 1, 1, 0, 1, 0, 0, 0, None]
    modules = [row] + [[1] * 11 for _ in range(10)]
    assert util.lost_count_3(modules, 11) == 0

    modules = [[1, None], [None, 1]]
    assert util.lost_count_2(modules, 2) == 0
    assert util.lost_count_4(modules, 2) == 0
