from functools import lru_cache

from . import constants

# Galois field GF(256) over the primitive polynomial x^8 + x^4 + x^3 + x^2 + 1
PRIMITIVE_POLY = 0x11D

EXP_TABLE = [0] * 512
LOG_TABLE = [0] * 256


def _init_tables():
    x = 1
    for i in range(255):
        EXP_TABLE[i] = x
        LOG_TABLE[x] = i
        x <<= 1
        if x & 0x100:
            x ^= PRIMITIVE_POLY

    # doubled so that a sum of two logs never needs a modulo
    for i in range(255, 512):
        EXP_TABLE[i] = EXP_TABLE[i - 255]


# Runs once, at first import
_init_tables()


def gf_multiply(a, b):
    if a == 0 or b == 0:
        return 0
    return EXP_TABLE[LOG_TABLE[a] + LOG_TABLE[b]]


def gf_divide(a, b):
    if b == 0:
        raise ZeroDivisionError('division by the zero element of GF(256)')
    if a == 0:
        return 0
    return EXP_TABLE[(LOG_TABLE[a] - LOG_TABLE[b]) % 255]


@lru_cache(maxsize=None)
def generator_polynomial(ecc_count):
    '''
    Product of (x - 2^i) for i in 0..ecc_count-1.
    poly[k] holds the coefficient of x^k, so poly[ecc_count] is the monic
    leading term.
    '''
    poly = [0] * (ecc_count + 1)
    poly[0] = 1

    for i in range(ecc_count):
        factor = EXP_TABLE[i]
        for j in range(ecc_count, 0, -1):
            poly[j] = poly[j - 1] ^ gf_multiply(poly[j], factor)
        poly[0] = gf_multiply(poly[0], factor)

    return tuple(poly)


def compute_ecc(data, ecc_count):
    '''
    Reed-Solomon error correction codewords for one block.

    Long division of the data polynomial (leading codeword first) by the
    generator, using a shift register of ecc_count codewords. ecc[j] holds
    the coefficient of x^(ecc_count-1-j), which pairs it with
    generator[ecc_count - 1 - j].
    '''
    generator = generator_polynomial(ecc_count)
    ecc = [0] * ecc_count

    for codeword in data:
        coef = codeword ^ ecc[0]
        ecc.pop(0)
        ecc.append(0)

        if coef:
            for j in range(ecc_count):
                ecc[j] ^= gf_multiply(generator[ecc_count - 1 - j], coef)

    return ecc


class RSBlock:

    def __init__(self, total_count, data_count):
        self.total_count = total_count
        self.data_count = data_count

    @property
    def ecc_count(self):
        return self.total_count - self.data_count

    def __repr__(self):
        return 'RSBlock(total_count={}, data_count={})'.format(
            self.total_count, self.data_count)


RS_BLOCK_OFFSET = {
    constants.ERR_CORR_L: 0,
    constants.ERR_CORR_M: 1,
    constants.ERR_CORR_Q: 2,
    constants.ERR_CORR_H: 3,
}


def rs_blocks(version, err_corr):
    if err_corr not in RS_BLOCK_OFFSET:
        raise ValueError(
            "bad rs block @ version: {} / error_correction: {}".format(version, err_corr))
    if not 1 <= version <= 40:
        raise ValueError('Invalid version {}'.format(version))

    offset = RS_BLOCK_OFFSET[err_corr]
    rs_block = constants.RS_BLOCK_TABLE[(version - 1) * 4 + offset]

    blocks = []

    for i in range(0, len(rs_block), 3):
        count, total_count, data_count = rs_block[i:i + 3]
        for j in range(count):
            blocks.append(RSBlock(total_count, data_count))

    return blocks
