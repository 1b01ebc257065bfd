from .constants import ERR_CORR_L, ERR_CORR_M, ERR_CORR_Q, ERR_CORR_H
from .exceptions import QRCodeError, EmptyDataError, DataOverflowError
from .QRcode import QRcode, QRSymbol, generate

__all__ = [
    'generate',
    'QRcode',
    'QRSymbol',
    'QRCodeError',
    'EmptyDataError',
    'DataOverflowError',
    'ERR_CORR_L',
    'ERR_CORR_M',
    'ERR_CORR_Q',
    'ERR_CORR_H',
]
