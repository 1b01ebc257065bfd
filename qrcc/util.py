import logging

from . import constants
from .base import compute_ecc, rs_blocks
from .exceptions import DataOverflowError, EmptyDataError

logger = logging.getLogger(__name__)


# Precompute bit count limits, indexed by error correction level and code size
_data_count = lambda block: block.data_count
BIT_LIMIT_TABLE = [
    [0] + [8*sum(map(_data_count, rs_blocks(version, err_corr))) for version in range(1, 41)]
    for err_corr in range(4)
]


def detect_mode(text):
    '''
    Smallest mode able to hold the whole text.
    Lowercase ASCII letters count as alphanumeric; they are upper-cased when
    written.
    '''
    if isinstance(text, str):
        text = text.encode('utf-8')
    if constants.RE_NUMERIC.match(text):
        return constants.NUMERIC_MODE
    elif constants.RE_ALPHANUMERIC_NUM.match(text.upper()):
        return constants.ALPHANUMERIC_MODE
    else:
        return constants.EIGHT_BIT_BYTE_MODE


# QRcode valid data type
class QRData:
    '''
    Data valid for Qr
    '''
    def __init__(self, data, mode = None):
        if data is None or len(data) == 0:
            raise EmptyDataError('Data cannot be empty')
        if not isinstance(data, bytes):
            data = data.encode('utf-8')

        if mode == None:
            self.mode = detect_mode(data)
        else:
            if mode not in constants.MODE_INDICATORS:
                raise TypeError("Invalid mode!")
            if mode < detect_mode(data):
                raise ValueError("Data cannot be represented in mode {}".format(mode))
            self.mode = mode

        if self.mode == constants.ALPHANUMERIC_MODE:
            data = data.upper()
        self.data = data

    def __len__(self):
        # characters for numeric and alphanumeric, UTF-8 bytes otherwise
        return len(self.data)

    def write(self, buffer):
        if self.mode == constants.NUMERIC_MODE:
            for i in range(0, len(self.data), 3):
                chars = self.data[i:i+3]
                bit_length = constants.NUMBER_LENGTH[len(chars)]
                buffer.put(int(chars), bit_length)
        elif self.mode == constants.ALPHANUMERIC_MODE:
            for i in range(0, len(self.data), 2):
                chars = self.data[i:i+2]
                if len(chars) > 1:
                    buffer.put(constants.ALPHANUMERIC_NUM.find(chars[0]) * 45
                    + constants.ALPHANUMERIC_NUM.find(chars[1]), 11)
                else:
                    buffer.put(constants.ALPHANUMERIC_NUM.find(chars[0]), 6)
        else:
            for c in self.data:
                buffer.put(c, 8)

    def __repr__(self):
        return repr(self.data)

    @property
    def mode_name(self):
        return constants.MODE_NAMES[self.mode]


class BitBuffer:
    '''
    Bits packed MSB-first into codewords
    '''
    def __init__(self):
        self.buffer = []
        self.length = 0

    def __repr__(self):
        return '.'.join([str(n) for n in self.buffer])

    def __len__(self):
        return self.length

    def get(self, index):
        '''
        Gets the n-th bit of the buffer
        '''
        buf_index = index // 8
        position = index % 8
        return ((self.buffer[buf_index] >> (7 - position)) & 1) == 1

    def set(self, bit = 1):
        '''
        Appends one bit
        '''
        buf_index = self.length // 8
        position = self.length % 8
        if len(self.buffer) <= buf_index:
            self.buffer.append(0)
        if bit:
            self.buffer[buf_index] |= 1 << (7 - position)
        self.length += 1

    def put(self, data, length):
        '''
        put num by bit, most significant first
        '''
        for i in range(length):
            self.set(((data >> (length-i-1)) & 1) == 1)


def bits_number_for_version(version):
    if version < 10:
        return constants.MODE_SIZE_SMALL
    elif version < 27:
        return constants.MODE_SIZE_MEDIUM
    else:
        return constants.MODE_SIZE_LARGE


def payload_bits(mode, length):
    '''
    Bits taken by the payload alone, without mode and count indicators
    '''
    if mode == constants.NUMERIC_MODE:
        groups, remainder = divmod(length, 3)
        return groups * 10 + (constants.NUMBER_LENGTH[remainder] if remainder else 0)
    elif mode == constants.ALPHANUMERIC_MODE:
        pairs, remainder = divmod(length, 2)
        return pairs * 11 + remainder * 6
    return length * 8


def best_version(length, err_corr, mode, start = 1):
    '''
    First version, counting up from start, whose data capacity holds the
    mode indicator, the character count and the payload
    '''
    if start < 1 or start > 40:
        raise ValueError("Invalid version")

    for version in range(start, 41):
        bits_needed = (4 + bits_number_for_version(version)[mode]
                       + payload_bits(mode, length))
        if bits_needed <= BIT_LIMIT_TABLE[err_corr][version]:
            return version

    raise DataOverflowError(
        'Data overflow: {} {} characters do not fit any version at this '
        'error correction level'.format(length, constants.MODE_NAMES[mode]))


select_version = best_version


def copy_mat(x):
    return [row[:] for row in x]


def create_data_codewords(version, err_corr, data):
    '''
    Data encodation: mode indicator, character count, payload, terminator,
    byte alignment and pad codewords up to the version's data capacity
    '''
    buffer = BitBuffer()
    buffer.put(data.mode, 4)
    buffer.put(len(data), bits_number_for_version(version)[data.mode])
    data.write(buffer)

    # Calculate the maximum bits
    max_bit = BIT_LIMIT_TABLE[err_corr][version]
    if len(buffer) > max_bit:
        raise DataOverflowError(
            'Data overflow for version {}: {} bits needed, {} available'.format(
                version, len(buffer), max_bit))

    # Terminate
    for _ in range(min(max_bit - len(buffer), 4)):
        buffer.set(False)

    # Align to a codeword boundary
    if len(buffer) % 8:
        for _ in range(8 - len(buffer) % 8):
            buffer.set(False)

    # Fill the remaining capacity with alternating pad codewords
    padding_bytes = (max_bit - len(buffer)) // 8
    for i in range(padding_bytes):
        if i % 2:
            buffer.put(constants.PAD1, 8)
        else:
            buffer.put(constants.PAD0, 8)

    return buffer.buffer


def interleave(data_codewords, blocks):
    '''
    Split the data codewords into blocks, compute each block's error
    correction codewords and interleave data then error correction
    codewords column by column. Shorter blocks drop out once exhausted.
    '''
    offset = 0
    data_encode = []
    err_encode = []

    for block in blocks:
        block_data = data_codewords[offset:offset + block.data_count]
        offset += block.data_count
        data_encode.append(block_data)
        err_encode.append(compute_ecc(block_data, block.ecc_count))

    max_data_cnt = max(block.data_count for block in blocks)
    ecc_per_block = blocks[0].ecc_count

    data = []
    for i in range(max_data_cnt):
        for block_data in data_encode:
            if i < len(block_data):
                data.append(block_data[i])

    for i in range(ecc_per_block):
        for block_err in err_encode:
            data.append(block_err[i])

    return data


def put_data(version, err_corr, data):
    '''
    Final codeword sequence for one piece of data
    '''
    blocks = rs_blocks(version, err_corr)
    return interleave(create_data_codewords(version, err_corr, data), blocks)


def codewords_to_bits(codewords, version):
    '''
    Serialize codewords MSB-first and append the version's remainder bits
    '''
    bits = []
    for codeword in codewords:
        for i in range(7, -1, -1):
            bits.append((codeword >> i) & 1)
    bits.extend([0] * constants.REMAINDER_BITS[version])
    return bits


def mask_function(mask_pattern):
    '''
    Give the mask funtion for given pattern 000-111
    According to Table 10
    '''
    if mask_pattern == 0:
        return lambda i, j: (i + j) % 2 == 0
    elif mask_pattern == 1:
        return lambda i, j: i % 2 == 0
    elif mask_pattern == 2:
        return lambda i, j: j % 3 == 0
    elif mask_pattern == 3:
        return lambda i, j: (i + j) % 3 == 0
    elif mask_pattern == 4:
        return lambda i, j: (i // 2 + j // 3) % 2 == 0
    elif mask_pattern == 5:
        return lambda i, j: (i*j) % 2 + (i*j) % 3 == 0
    elif mask_pattern == 6:
        return lambda i, j: ((i * j) % 2 + (i * j) % 3) % 2 == 0
    elif mask_pattern == 7:
        return lambda i, j: ((i + j) % 2 + (i * j) % 3) % 2 == 0
    else:
        raise ValueError('Invalid mask pattern {}'.format(mask_pattern))


def apply_mask(modules, reserved, mask_pattern):
    '''
    Copy of modules with every unreserved module flipped where the mask
    formula holds. Reserved modules are left untouched.
    '''
    mask_func = mask_function(mask_pattern)
    masked = copy_mat(modules)
    modules_cnt = len(modules)

    for r in range(modules_cnt):
        row = masked[r]
        for c in range(modules_cnt):
            if not reserved[r][c] and mask_func(r, c):
                row[c] ^= 1

    return masked


def lost_calculator(modules):
    '''
    Scoring penalty points for each orrcurence of defined features
    See in 7.8.3 and Table 11
    Unset modules (metadata not yet written) form a third color: they
    run and block only with each other, never match the finder-like
    patterns and are not dark.
    '''
    modules_cnt = len(modules)

    return (lost_count_1(modules, modules_cnt) + lost_count_2(modules, modules_cnt)
            + lost_count_3(modules, modules_cnt) + lost_count_4(modules, modules_cnt))


def _lines(modules):
    # every row, then every column
    return [tuple(row) for row in modules] + list(zip(*modules))


def lost_count_1(modules, modules_cnt):
    '''
    Adjacent modules in row/column in same color
    No. of modules = (5 + i) -> Points = N1 + i
    '''
    points = 0

    for line in _lines(modules):
        previous_color = line[0]
        i = 1
        for c in range(1, modules_cnt):
            if line[c] == previous_color:
                i += 1 # calculate consecutive modules
            else:
                if i >= 5:
                    points += i + constants.MASK_EVAL_N1 - 5
                i = 1
                previous_color = line[c]
        if i >= 5:
            points += i + constants.MASK_EVAL_N1 - 5

    return points


def lost_count_2(modules, modules_cnt):
    '''
    2*2 blocks of modules in same color, overlapping blocks counted
    separately
    '''
    points = 0

    for r in range(modules_cnt - 1):
        row = modules[r]
        next_row = modules[r + 1]
        for c in range(modules_cnt - 1):
            color = row[c]
            if row[c + 1] == color and next_row[c] == color and next_row[c + 1] == color:
                points += constants.MASK_EVAL_N2
    return points


def lost_count_3(modules, modules_cnt):
    '''
    1:1:3:1:1 Ratio Detection
    pattern1: 10111010000
    pattern2: 00001011101
    '''
    points = 0
    patterns = constants.FINDER_LIKE_PATTERNS

    for line in _lines(modules):
        for c in range(modules_cnt - 10):
            if line[c:c + 11] in patterns:
                points += constants.MASK_EVAL_N3
    return points


def lost_count_4(modules, modules_cnt):
    '''
    Proportion of dark in the entire mat
    50 +- (5 * k) % to 50 +- (5* (k+1)) % -> points = N4 * k
    '''
    dark_cnt = sum(row.count(1) for row in modules)
    percent = dark_cnt * 100 / (modules_cnt * modules_cnt)
    return constants.MASK_EVAL_N4 * int(abs(percent - 50) // 5)
