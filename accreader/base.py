from typing import Protocol, TypeVar, Union

ReadT = TypeVar('ReadT', covariant=True)
WritableBuffer = Union[bytearray, memoryview]


class SupportsRead(Protocol[ReadT]):
    def read(self, size: int = ...) -> ReadT:
        ...


class SupportsFill(Protocol):
    def fill_buf(self) -> memoryview:
        ...

    def consume(self, size: int) -> None:
        ...


class SupportsSeek(Protocol):
    def seek(self, pos: int, whence: int = ...) -> int:
        ...

    def tell(self) -> int:
        ...
