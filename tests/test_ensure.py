import io

from accreader import AccumulatingReader, ensure_seekable


def test_seekable_stream_is_returned(make_source):
    stream = io.BytesIO(b'abc')

    assert ensure_seekable(stream) is stream


def test_non_seekable_stream_is_wrapped(make_source):
    source = make_source(b'abc')

    stream = ensure_seekable(source, chunk_size=2)

    assert isinstance(stream, AccumulatingReader)
    assert stream.source is source
    assert stream.chunk_size == 2
    assert stream.read() == b'abc'
    assert stream.seek(1) == 1
    assert stream.read() == b'bc'


def test_stream_without_seekable_is_wrapped():
    class ReadOnly:
        def __init__(self, data: bytes) -> None:
            self._data = io.BytesIO(data)

        def read(self, size: int = -1) -> bytes:
            return self._data.read(size)

    stream = ensure_seekable(ReadOnly(b'xyz'))

    assert isinstance(stream, AccumulatingReader)
    assert stream.seek(-1, io.SEEK_END) == 2
    assert stream.read() == b'z'


def test_closed_stream_is_wrapped():
    raw = io.BytesIO(b'abc')
    raw.close()

    assert isinstance(ensure_seekable(raw), AccumulatingReader)
