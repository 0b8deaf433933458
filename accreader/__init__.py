from accreader.base import (
    SupportsFill,
    SupportsRead,
    SupportsSeek,
)
from accreader.stream import (
    DEFAULT_CHUNK_SIZE,
    AccumulatingReader,
    NegativeSeekError,
    SeekBeyondEndError,
    ensure_seekable,
)

__version__ = '0.1.0'

__all__ = [
    'DEFAULT_CHUNK_SIZE',
    'AccumulatingReader',
    'NegativeSeekError',
    'SeekBeyondEndError',
    'SupportsFill',
    'SupportsRead',
    'SupportsSeek',
    'ensure_seekable',
]
