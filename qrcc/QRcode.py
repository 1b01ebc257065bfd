import logging
import os
import sys
from dataclasses import dataclass

from . import constants
from . import util
from .exceptions import EmptyDataError

logger = logging.getLogger(__name__)

# Function patterns and reserved areas per version, copied before use
cache_qr_mat = {}


def parse_err_corr(err_corr):
    '''
    Accept an error correction level as a letter or as an ERR_CORR_* value
    '''
    if isinstance(err_corr, str):
        level = constants.ERR_CORR_LEVELS.get(err_corr.upper())
        if level is not None:
            return level
    elif isinstance(err_corr, int) and not isinstance(err_corr, bool):
        if err_corr in constants.ERR_CORR_NAMES:
            return err_corr
    raise ValueError('Invalid error correction level {!r}'.format(err_corr))


@dataclass(frozen=True)
class QRSymbol:
    '''
    A finished symbol. matrix is a tuple of rows of 0 (light) / 1 (dark),
    indexed [row][column] from the top left.
    '''
    matrix: tuple
    version: int
    size: int
    ecc_level: str
    mask_pattern: int
    mode: str
    data_length: int

    def is_dark(self, row, col):
        return self.matrix[row][col] == 1


class QRcode:
    def __init__(self, version = None,
                err_corr = constants.ERR_CORR_M,
                box_size = 10, border = 4,
                mask_pattern = None):
        if box_size < 1 or border < 0:
            raise ValueError('Expect box size >= 1 and border >= 0.')
        if version is not None and not 1 <= int(version) <= 40:
            raise ValueError('Invalid version {}'.format(version))
        if mask_pattern is not None and mask_pattern not in range(8):
            raise ValueError('Invalid mask pattern {}'.format(mask_pattern))
        self.version = version and int(version)
        self.err_corr = parse_err_corr(err_corr)
        self.box_size = int(box_size)
        self.border = int(border)
        self.mask_pattern = mask_pattern
        self.clear()

    def clear(self):
        '''
        Reset all data
        '''
        self.modules = None
        self.reserved = None
        self.modules_cnt = 0 # No of modules/side
        self.data = None
        self.data_cache = None
        self.data_modules = None
        self.chosen_mask = None

    def set_data(self, data):
        '''
        Set the data to encode, replacing any previous data
        '''
        if isinstance(data, util.QRData):
            self.data = data
        else:
            self.data = util.QRData(data)
        self.data_cache = None
        self.data_modules = None
        self.chosen_mask = None

    def make(self, fit = True):
        '''
        Data analysis + data encodation + error correction coding +
        structure final message + placement in matrix + masking
        :param fit: True -> use best_fit to find an optimal size(version)
        '''
        if self.data is None:
            raise EmptyDataError('Data cannot be empty')
        if fit or self.version is None:
            self.best_fit(start=self.version)

        if self.mask_pattern is None:
            mask_pattern = self.best_mask_pattern()
        else:
            mask_pattern = self.mask_pattern
        self.makeImpl(mask_pattern)
        self.chosen_mask = mask_pattern

        logger.debug('version %d, mode %s, mask %d', self.version,
                     self.data.mode_name, mask_pattern)

    def best_fit(self, start = None):
        '''
        Finds an optimal size(version) for data
        '''
        version = util.best_version(len(self.data), self.err_corr,
                                    self.data.mode, start or 1)
        if version != self.version:
            self.data_cache = None
            self.data_modules = None
        self.version = version
        return self.version

    def best_mask_pattern(self):
        '''
        Find the mask pattern with the lowest penalty, the lowest index
        winning ties. Candidates are scored before format and version
        information is written, those modules still unset.
        '''
        self.place_data()

        mask_pattern = 0
        min_lost_needed = 0

        for i in range(8):
            candidate = util.apply_mask(self.data_modules, self.reserved, i)

            lost_current = util.lost_calculator(candidate)
            logger.debug('mask %d: penalty %d', i, lost_current)

            if i == 0 or min_lost_needed > lost_current:
                min_lost_needed = lost_current
                mask_pattern = i

        return mask_pattern

    def place_data(self):
        '''
        Function patterns plus the placed, unmasked codewords
        '''
        if self.data_modules is not None:
            return

        self.setup_function_patterns()

        if self.data_cache is None:
            self.data_cache = util.put_data(self.version, self.err_corr, self.data)

        self.mapping(util.codewords_to_bits(self.data_cache, self.version))
        self.data_modules = self.modules

    def makeImpl(self, mask_pattern):
        '''
        Make the masked mat, format and version information included
        '''
        self.place_data()

        self.modules = util.apply_mask(self.data_modules, self.reserved, mask_pattern)

        self.setup_type_info(mask_pattern)
        if self.version >= 7:
            self.setup_version_info()

    def setup_function_patterns(self):
        '''
        Fresh mat with every function pattern drawn and every metadata area
        reserved
        '''
        if self.version < 1 or self.version > 40:
            raise ValueError('Invalid version')
        self.modules_cnt = self.version*4 + 17

        if self.version in cache_qr_mat:
            modules, reserved = cache_qr_mat[self.version]
            self.modules = util.copy_mat(modules)
            self.reserved = util.copy_mat(reserved)
            return

        # Initialize the mat
        self.modules = [[None] * self.modules_cnt for _ in range(self.modules_cnt)]
        self.reserved = [[False] * self.modules_cnt for _ in range(self.modules_cnt)]

        self.setup_finder_pattern(0, 0)
        self.setup_finder_pattern(self.modules_cnt - 7, 0)
        self.setup_finder_pattern(0, self.modules_cnt - 7)
        self.setup_position_align_pattern()
        self.setup_timing_pattern()
        self.setup_dark_module()
        self.reserve_type_info()
        if self.version >= 7:
            self.reserve_version_info()

        # save current modules
        cache_qr_mat[self.version] = (util.copy_mat(self.modules),
                                      util.copy_mat(self.reserved))

    def _set_function(self, row, col, dark):
        self.modules[row][col] = 1 if dark else 0
        self.reserved[row][col] = True

    def setup_finder_pattern(self, row, col):
        '''
        Set the finder pattern for localization, 1:1:3:1:1,
        with its light separator
        '''
        for r in range(-1, 8):
            if row + r <= -1 or self.modules_cnt <= row + r:
                continue

            for c in range(-1, 8):

                if col + c <= -1 or self.modules_cnt <= col + c:
                    continue
                self._set_function(row + r, col + c,
                    (0 <= r <= 6 and c in {0, 6})
                    or (0 <= c <= 6 and r in {0, 6})
                    or (2 <= r <= 4 and 2 <= c <= 4)
                )

    def setup_position_align_pattern(self):
        '''
        Align Pattern for high version
        '''
        pos = constants.PATTERN_POSITION[self.version]
        for row in pos:
            for col in pos:
                if self._overlaps_reserved(row, col):
                    continue

                for r in range(-2, 3):
                    for c in range(-2, 3):
                        self._set_function(row + r, col + c,
                            r == -2 or r == 2 or c == -2 or c == 2
                            or (r == 0 and c == 0))

    def _overlaps_reserved(self, row, col):
        return any(
            self.reserved[row + r][col + c]
            for r in range(-2, 3) for c in range(-2, 3))

    def setup_timing_pattern(self):
        '''
        Set up Timing pattern
        Used as axis in QR code
        '''
        for r in range(8, self.modules_cnt - 8):
            if self.reserved[r][6]:
                continue
            self._set_function(r, 6, r % 2 == 0)

        for c in range(8, self.modules_cnt - 8):
            if self.reserved[6][c]:
                continue
            self._set_function(6, c, c % 2 == 0)

    def setup_dark_module(self):
        self._set_function(4 * self.version + 9, 8, True)

    def reserve_type_info(self):
        '''
        Reserve, without filling, both copies of the format information
        '''
        for i in range(9):
            self.reserved[8][i] = True
            self.reserved[i][8] = True

        for i in range(8):
            self.reserved[self.modules_cnt - 1 - i][8] = True
            self.reserved[8][self.modules_cnt - 1 - i] = True

    def reserve_version_info(self):
        for i in range(6):
            for j in range(3):
                self.reserved[self.modules_cnt - 11 + j][i] = True
                self.reserved[i][self.modules_cnt - 11 + j] = True

    def setup_type_info(self, mask_pattern):
        '''
        Format information: error correction level and mask pattern,
        BCH protected, looked up in Annex C
        '''
        data_BCH = constants.FORMAT_INFO[(self.err_corr << 3) | mask_pattern]

        # vertical
        for r in range(15):
            mod = (data_BCH >> r) & 1
            if r < 6:
                self.modules[r][8] = mod
            elif r < 8:
                self.modules[r + 1][8] = mod
            else:
                self.modules[self.modules_cnt - 15 + r][8] = mod

        # horizontal
        for c in range(15):
            mod = (data_BCH >> c) & 1
            if c < 8:
                self.modules[8][self.modules_cnt - c - 1] = mod
            elif c < 9:
                self.modules[8][7] = mod
            else:
                self.modules[8][15 - c - 1] = mod

    def setup_version_info(self):
        '''
        Version information for version 7 and up, looked up in Annex D
        '''
        data_BCH = constants.VERSION_INFO[self.version]

        for i in range(18):
            mod = (data_BCH >> i) & 1
            self.modules[i // 3][i % 3 + self.modules_cnt - 11] = mod
            self.modules[i % 3 + self.modules_cnt - 11][i // 3] = mod

    def mapping(self, bits):
        '''
        Module placement in matrix
        Two-module wide columns from the right, alternately upwards and
        downwards, skipping the vertical timing pattern and reserved modules.
        See in 7.7.3
        '''
        increment = -1
        r = self.modules_cnt - 1
        bit_index = 0
        length = len(bits)

        for c in range(self.modules_cnt - 1, 0, -2):
            if c <= 6:
                c -= 1
            col_range = (c, c-1)

            while True:
                for c_ in col_range:
                    if not self.reserved[r][c_]:
                        dark = 0

                        if bit_index < length:
                            dark = bits[bit_index]
                            bit_index += 1

                        self.modules[r][c_] = dark

                r += increment

                if r < 0 or self.modules_cnt <= r:
                    r -= increment
                    increment = -increment
                    break

    def get_symbol(self):
        '''
        The finished symbol, made on first use
        '''
        if self.chosen_mask is None:
            self.make()

        return QRSymbol(
            matrix=tuple(tuple(row) for row in self.modules),
            version=self.version,
            size=self.modules_cnt,
            ecc_level=constants.ERR_CORR_NAMES[self.err_corr],
            mask_pattern=self.chosen_mask,
            mode=self.data.mode_name,
            data_length=len(self.data),
        )

    def get_mat(self):
        '''
        Return the Qrcode in mat, quiet zone included
        '''
        if self.chosen_mask is None:
            self.make()

        if not self.border:
            return util.copy_mat(self.modules)

        mat_size_with_border = self.modules_cnt + 2 * self.border
        margin = [0] * self.border
        mat = [[0] * mat_size_with_border for _ in range(self.border)]
        for module in self.modules:
            mat.append(margin + module + margin)
        mat.extend([0] * mat_size_with_border for _ in range(self.border))

        return mat

    def make_image(self, name = None, save_dir = None):
        '''
        Make QRcode image
        param: name without suffix
        '''
        from .image import make_image

        symbol = self.get_symbol()

        if save_dir == None:
            save_dir = 'MyQrCode'

        if not os.path.exists(save_dir):
            os.mkdir(save_dir)

        if name == None:
            name = repr(self.data).replace('\'', '')[1:]
            if len(name) > 15:
                name = name[:15]

        path = os.path.join(save_dir, name + '.png')
        make_image(symbol, path, module_size=self.box_size, border=self.border)
        return path


def generate(text, ecc_level = 'M'):
    '''
    Encode text into a QR symbol at the given error correction level
    (L, M, Q or H), choosing the mode, the smallest version and the best
    mask pattern.
    '''
    q = QRcode(err_corr=ecc_level)
    q.set_data(text)
    return q.get_symbol()


if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG)
    q = QRcode()
    q.set_data(' '.join(sys.argv[1:]) or 'HELLO WORLD')
    print(q.make_image(name='qrcode'))
