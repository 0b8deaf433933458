import argparse
import io
import logging
import pathlib
import sys
from dataclasses import dataclass
from typing import IO, Optional, Sequence

from accreader.base import SupportsFill
from accreader.stream import (
    DEFAULT_CHUNK_SIZE,
    AccumulatingReader,
    NegativeSeekError,
    SeekBeyondEndError,
)

logger = logging.getLogger('accreader')

WHENCE = {'start': io.SEEK_SET, 'current': io.SEEK_CUR, 'end': io.SEEK_END}


def non_negative(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f'expected a non-negative number, got {value}')
    return number


def positive(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f'expected a positive number, got {value}')
    return number


@dataclass
class ProgramArgs:
    source: Optional[pathlib.Path]
    offset: int
    whence: int
    size: Optional[int]
    chunk_size: int
    verbose: bool


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='accreader',
        description='Copy a range of a non-seekable stream to stdout.',
    )
    parser.add_argument(
        'source',
        nargs='?',
        type=pathlib.Path,
        help='File to read from. If omitted or -, stdin is used.',
    )
    parser.add_argument(
        '--offset',
        '-o',
        type=int,
        default=0,
        help='position to start copying from, relative to --whence',
    )
    parser.add_argument(
        '--whence',
        '-w',
        choices=tuple(WHENCE),
        default='start',
        help='reference point of --offset',
    )
    parser.add_argument(
        '--size',
        '-s',
        type=non_negative,
        default=None,
        help='number of bytes to copy, everything up to the end if omitted',
    )
    parser.add_argument(
        '--chunk-size',
        '-c',
        type=positive,
        default=DEFAULT_CHUNK_SIZE,
        help='size of reads issued to the source',
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true', help='log source access to stderr'
    )
    return parser


def parse_args(
    parser: argparse.ArgumentParser,
    argv: Optional[Sequence[str]] = None,
) -> ProgramArgs:
    args = parser.parse_args(argv)
    source = args.source
    if source is not None and str(source) == '-':
        source = None
    return ProgramArgs(
        source=source,
        offset=args.offset,
        whence=WHENCE[args.whence],
        size=args.size,
        chunk_size=args.chunk_size,
        verbose=args.verbose,
    )


def copy_range(reader: SupportsFill, output: IO[bytes], size: Optional[int]) -> int:
    copied = 0
    while size is None or copied < size:
        view = reader.fill_buf()
        if not view:
            break
        count = len(view) if size is None else min(len(view), size - copied)
        output.write(view[:count])
        reader.consume(count)
        copied += count
    return copied


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parse_args(parser, argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(name)s: %(message)s',
    )

    source = sys.stdin.buffer if args.source is None else args.source.open('rb')
    reader = AccumulatingReader(source, chunk_size=args.chunk_size)
    try:
        position = reader.seek(args.offset, args.whence)
        output = sys.stdout.buffer
        copied = copy_range(reader, output, args.size)
        output.flush()
        logger.debug('copied %d bytes from offset %d', copied, position)
    except (NegativeSeekError, SeekBeyondEndError) as exc:
        parser.exit(1, f'{parser.prog}: error: {exc}\n')
    finally:
        if args.source is None:
            reader.detach()
        else:
            reader.close()


if __name__ == '__main__':
    main()
