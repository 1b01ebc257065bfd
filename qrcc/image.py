import numpy as np
from matplotlib import pyplot as plt


def render_array(symbol, module_size = 1, border = 4):
    '''
    Pixel array of a symbol: 1 for dark, 0 for light, with a quiet zone of
    border modules on every side and module_size pixels per module
    '''
    if module_size < 1:
        raise ValueError('Expect module size >= 1.')
    if border < 0:
        raise ValueError('Expect border >= 0.')

    array = np.array(symbol.matrix, dtype=np.uint8)
    array = np.pad(array, border, mode='constant', constant_values=0)
    return np.kron(array, np.ones((module_size, module_size), dtype=np.uint8))


def make_image(symbol, path, module_size = 10, border = 4):
    '''
    Save a symbol as a PNG, dark modules black
    '''
    array = render_array(symbol, module_size, border)
    plt.imsave(fname = path, arr = array, cmap = 'gray_r', vmin = 0, vmax = 1)
