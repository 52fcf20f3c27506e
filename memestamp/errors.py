class MemeStampError(Exception):
    """Base error for compositing failures"""


class ValidationError(MemeStampError):
    """Missing or empty required request fields"""


class InvalidGeometry(MemeStampError):
    """Non-finite or out-of-range numeric layer fields"""


class CodecError(MemeStampError):
    """Image could not be decoded or encoded"""


class DecodeError(CodecError):
    """Image source unreachable or not a supported raster"""


class EncodeError(CodecError):
    """Surface could not be encoded"""
