import io
import logging
from typing import IO, Optional, cast

from accreader.base import SupportsRead, WritableBuffer

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024

# upper bound for a single source request issued by a forward seek
MAX_PULL_SIZE = 1 << 20


class NegativeSeekError(ValueError):
    def __init__(self, offset: int) -> None:
        super().__init__(f'seeking before the beginning of stream (to {offset})')
        self.offset = offset


class SeekBeyondEndError(EOFError):
    def __init__(self, offset: int, length: int) -> None:
        super().__init__(f'seeking to {offset} beyond end of stream ({length} bytes)')
        self.offset = offset
        self.length = length


class AccumulatingReader(io.RawIOBase):
    """
    Seekable binary stream on top of a sequential, non-seekable source.

    Every byte pulled from the source is kept in an internal buffer for the
    lifetime of the reader, so any region read so far can be revisited with
    `seek` without touching the source again. Seeking forward pulls from the
    source only as far as the target offset. Seeking relative to the end
    (`io.SEEK_END`) has to pull the whole source first, which blocks forever
    on endless streams.

    Memory use grows with the number of bytes read or skipped and is never
    given back: do not use this on unbounded streams which will be traversed
    to the end, and drop the reader as soon as it is no longer needed.

    Besides the regular file interface, the reader exposes its buffer through
    `fill_buf` / `consume`: `fill_buf` returns a read-only view of the unread
    buffered bytes. The view is valid until the next call on the reader and
    must not be kept (or sliced into longer-lived views) past it, as the
    buffer cannot grow while views of it are alive.

    Seeking beyond the end of the source raises `SeekBeyondEndError`,
    seeking before the start raises `NegativeSeekError`. Errors raised by
    the source propagate unchanged; bytes accumulated before the error stay
    available.
    """

    def __init__(
        self,
        source: SupportsRead[bytes],
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        super().__init__()
        # set before validation, close() runs on collection of a failed instance
        self._source: Optional[SupportsRead[bytes]] = None
        self._view: Optional[memoryview] = None
        if chunk_size <= 0:
            raise ValueError(f'chunk size must be positive, got {chunk_size}')
        self._source = source
        self._chunk_size = chunk_size
        self._buf = bytearray()
        # invariant: 0 <= pos <= len(buf)
        self._pos = 0
        self._eof = False

    @property
    def source(self) -> Optional[SupportsRead[bytes]]:
        """The wrapped stream, None once detached."""
        return self._source

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def buffered(self) -> int:
        """Number of bytes pulled from the source so far."""
        return len(self._buf)

    @property
    def exhausted(self) -> bool:
        """Whether the source reached end of data, `buffered` is then its length."""
        return self._eof

    def _check_open(self) -> SupportsRead[bytes]:
        if self.closed:
            raise ValueError('I/O operation on closed file.')
        if self._source is None:
            raise ValueError('raw stream has been detached')
        return self._source

    def _release_view(self) -> None:
        if self._view is not None:
            self._view.release()
            self._view = None

    def _pull(self, size: int) -> int:
        # Request up to size bytes from the source and append them to the buffer.
        data = self._check_open().read(size)
        if not data:
            self._eof = True
            logger.debug('source exhausted after %d bytes', len(self._buf))
            return 0
        self._release_view()
        self._buf += data
        return len(data)

    def _fill_to(self, end: Optional[int]) -> None:
        # Pull until the buffer holds `end` bytes, or everything if end is None.
        while not self._eof and (end is None or len(self._buf) < end):
            if end is None:
                size = self._chunk_size
            else:
                size = min(end - len(self._buf), MAX_PULL_SIZE)
            try:
                self._pull(size)
            except InterruptedError:
                continue

    def readable(self) -> bool:
        self._check_open()
        return True

    def writable(self) -> bool:
        self._check_open()
        return False

    def seekable(self) -> bool:
        self._check_open()
        return True

    def tell(self) -> int:
        self._check_open()
        return self._pos

    def readinto(self, b: WritableBuffer) -> int:  # type: ignore[override]
        self._check_open()
        with memoryview(b) as view, view.cast('B') as target:
            size = len(target)
            if self._pos == len(self._buf) and not self._eof and size:
                # past the buffered data, pass the request straight to the source
                self._pull(size)
            count = min(size, len(self._buf) - self._pos)
            target[:count] = self._buf[self._pos : self._pos + count]
            self._pos += count
            return count

    def read(self, size: Optional[int] = -1) -> bytes:
        """
        Read `size` bytes, fewer only when the stream ends first.

        Unlike a bare `readinto`, which stops at the end of the buffered data,
        this keeps requesting from the source, so format parsers get the
        whole field they asked for.
        """
        if size is None or size < 0:
            return self.readall()
        chunks = []
        while size > 0:
            chunk = super().read(size)
            if not chunk:
                break
            chunks.append(chunk)
            size -= len(chunk)
        return b''.join(chunks)

    def fill_buf(self) -> memoryview:
        """
        Return a read-only view of the buffered bytes not read yet.

        When all buffered bytes were read, one chunk is pulled from the
        source first. An empty view means end of stream.
        """
        self._check_open()
        if self._pos == len(self._buf) and not self._eof:
            self._pull(self._chunk_size)
        self._release_view()
        with memoryview(self._buf) as whole:
            self._view = whole[self._pos :].toreadonly()
        return self._view

    def consume(self, size: int) -> None:
        """Mark `size` bytes returned by `fill_buf` as read."""
        self._check_open()
        available = len(self._buf) - self._pos
        if not 0 <= size <= available:
            raise ValueError(
                f'cannot consume {size} bytes, only {available} are buffered'
            )
        self._pos += size

    def peek(self, size: int = 0) -> bytes:
        """Return buffered bytes without advancing, like `io.BufferedReader.peek`."""
        data = bytes(self.fill_buf())
        self._release_view()
        return data

    def read1(self, size: int = -1) -> bytes:
        self._check_open()
        if size == 0:
            return b''
        view = self.fill_buf()
        if size is None or size < 0:
            size = len(view)
        data = bytes(view[:size])
        self._release_view()
        self._pos += len(data)
        return data

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._check_open()
        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = self._pos + offset
        elif whence == io.SEEK_END:
            if not self._eof:
                logger.debug('draining source from offset %d', len(self._buf))
                self._fill_to(None)
            target = len(self._buf) + offset
        else:
            raise ValueError(f'invalid whence ({whence}, should be 0, 1 or 2)')

        if target < 0:
            raise NegativeSeekError(target)

        if target > len(self._buf):
            self._fill_to(target)
            if target > len(self._buf):  # still not enough
                self._pos = len(self._buf)
                logger.debug(
                    'seek to %d failed, stream ends at %d', target, len(self._buf)
                )
                raise SeekBeyondEndError(target, len(self._buf))

        self._pos = target
        return self._pos

    def detach(self) -> SupportsRead[bytes]:
        """
        Separate the source from the reader and return it.

        Accumulated data is dropped and the reader becomes unusable.
        """
        source = self._check_open()
        self._release_view()
        self._source = None
        self._buf = bytearray()
        self._pos = 0
        return source

    def close(self) -> None:
        if self.closed:
            return
        self._release_view()
        source, self._source = self._source, None
        try:
            super().close()
        finally:
            close = getattr(source, 'close', None)
            if close is not None:
                close()


def ensure_seekable(
    stream: SupportsRead[bytes],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> IO[bytes]:
    """Return `stream` if it can seek, otherwise wrap it in an `AccumulatingReader`."""
    try:
        seekable = stream.seekable()  # type: ignore[attr-defined]
    except (AttributeError, ValueError, OSError):
        seekable = False
    if seekable:
        return cast(IO[bytes], stream)
    return cast(IO[bytes], AccumulatingReader(stream, chunk_size=chunk_size))
