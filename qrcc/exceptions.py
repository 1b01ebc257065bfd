class QRCodeError(Exception):
    pass


class EmptyDataError(QRCodeError, ValueError):
    '''
    Nothing to encode
    '''


class DataOverflowError(QRCodeError, OverflowError):
    '''
    The data does not fit the requested (or any) version at the requested
    error correction level
    '''
