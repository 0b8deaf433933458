import io
from typing import Callable, List, Optional

import pytest


class SequentialSource:
    """Forward-only byte source which records the size of every request."""

    def __init__(
        self,
        data: bytes,
        max_chunk: Optional[int] = None,
        fail_on: Optional[int] = None,
        interrupt_on: Optional[int] = None,
    ) -> None:
        self._data = data
        self._pos = 0
        self.max_chunk = max_chunk
        self.fail_on = fail_on
        self.interrupt_on = interrupt_on
        self.requests: List[int] = []
        self.closed = False

    def read(self, size: int = -1) -> bytes:
        self.requests.append(size)
        if len(self.requests) == self.fail_on:
            raise OSError('source read failed')
        if len(self.requests) == self.interrupt_on:
            raise InterruptedError('interrupted')
        if size < 0:
            size = len(self._data) - self._pos
        if self.max_chunk is not None:
            size = min(size, self.max_chunk)
        chunk = self._data[self._pos : self._pos + size]
        self._pos += len(chunk)
        return chunk

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def seek(self, *args, **kwargs):
        raise io.UnsupportedOperation('seek')

    def close(self) -> None:
        self.closed = True


SourceFactory = Callable[..., SequentialSource]


@pytest.fixture
def make_source() -> SourceFactory:
    return SequentialSource
