"""
Data I/O Module
===============

Binary serialization of hypercomplex arrays and raw byte conversion.

Array file layout (all header words are unsigned 64-bit):

    magic  d  n  k  len  word_size  sz[0] ... sz[k-1]  x[0] ... x[len-1]

The magic word spells ``HXNDARRY`` in little-endian byte order. Files are
written little-endian; on read the byte order is detected from the magic
word, so big-endian files are accepted too.
"""

import io
import logging
import struct
import sys
import numpy as np
from pathlib import Path
from typing import BinaryIO, Optional, TextIO, Union

from . import index as hxindex
from .algebra import MAX_DIMS
from .array import HxArray
from .errors import ArrayFormatError


logger = logging.getLogger(__name__)

MAGIC = 0x59525241444e5848
WORD_SIZE = 8                     # bytes per stored coefficient (float64)
HEADER_WORDS = 6                  # magic, d, n, k, len, word_size
MAX_RANK = 32                     # topological dimensions accepted on read

PathLike = Union[str, Path]


def fwrite(x: HxArray, fh: BinaryIO):
    """
    Write an array to an open binary file.

    Args:
        x: Array to write
        fh: File object opened for binary writing
    """
    header = struct.pack('<6Q', MAGIC, x.d, x.n, x.k, x.len, WORD_SIZE)
    sizes = struct.pack(f'<{x.k}Q', *x.sz)

    fh.write(header)
    fh.write(sizes)
    fh.write(x.x.astype('<f8').tobytes())


def _read_exact(fh: BinaryIO, nbytes: int, name: str, what: str) -> bytes:
    buf = fh.read(nbytes)
    if len(buf) != nbytes:
        raise ArrayFormatError(f"{name}: short read of {what} ({len(buf)} of {nbytes} bytes)")

    return buf


def _remaining(fh: BinaryIO) -> Optional[int]:
    """Bytes left after the current position, or None for unseekable streams"""
    if not fh.seekable():
        return None

    pos = fh.tell()
    end = fh.seek(0, io.SEEK_END)
    fh.seek(pos)
    return end - pos


def _byte_order(magic: bytes) -> Optional[str]:
    for order in ('<', '>'):
        if struct.unpack(f'{order}Q', magic)[0] == MAGIC:
            return order

    return None


def fread(fh: BinaryIO, name: str = "<stream>") -> HxArray:
    """
    Read an array from an open binary file.

    Args:
        fh: File object opened for binary reading
        name: Name used in error messages

    Returns:
        Loaded array

    Raises:
        ArrayFormatError: Bad magic number, short read, inconsistent header
    """
    magic = _read_exact(fh, 8, name, "magic number")
    order = _byte_order(magic)
    if order is None:
        raise ArrayFormatError(f"{name}: invalid magic number 0x{magic.hex()}")

    words = struct.unpack(f'{order}5Q', _read_exact(fh, 40, name, "header"))
    d, n, k, length, word_size = (int(w) for w in words)

    if word_size != WORD_SIZE:
        raise ArrayFormatError(f"{name}: word size {word_size} does not match {WORD_SIZE}")
    if d > MAX_DIMS:
        raise ArrayFormatError(f"{name}: algebraic dimensionality {d} out of bounds [0,{MAX_DIMS}]")
    if n != 1 << d:
        raise ArrayFormatError(f"{name}: coefficient count {n} inconsistent with d={d}")
    if k < 1 or k > MAX_RANK:
        raise ArrayFormatError(f"{name}: topological dimensionality {k} out of bounds [1,{MAX_RANK}]")

    remaining = _remaining(fh)
    if remaining is not None and 8 * k + word_size * length > remaining:
        raise ArrayFormatError(
            f"{name}: header describes {8 * k + word_size * length} bytes, only {remaining} remain"
        )

    sz = list(struct.unpack(f'{order}{k}Q', _read_exact(fh, 8 * k, name, "sizes")))
    if length != n * int(np.prod(sz, dtype=np.int64)):
        raise ArrayFormatError(f"{name}: length {length} inconsistent with sizes {sz}")

    data = np.frombuffer(_read_exact(fh, word_size * length, name, "coefficients"), dtype=f'{order}f8')

    x = HxArray(d, k, sz)
    x.x[:] = data
    return x


def save(x: HxArray, path: PathLike):
    """Write an array to a file"""
    with open(path, 'wb') as fh:
        fwrite(x, fh)

    logger.debug("wrote %r to %s", x, path)


def load(path: PathLike) -> HxArray:
    """
    Read an array from a file.

    Example:
        >>> save(x, "spectrum.hx")
        >>> y = load("spectrum.hx")
    """
    with open(path, 'rb') as fh:
        try:
            x = fread(fh, str(path))
        except ArrayFormatError as err:
            raise ArrayFormatError(f"failed to read array from '{path}'") from err

    logger.debug("read %r from %s", x, path)
    return x


def check_magic(path: PathLike) -> bool:
    """Check whether a file starts with the array magic word (either byte order)"""
    with open(path, 'rb') as fh:
        magic = fh.read(8)

    return len(magic) == 8 and _byte_order(magic) is not None


def print_array(x: HxArray, fh: Optional[TextIO] = None):
    """
    Write a text dump of an array, one grid point per line.

    Each line holds the index tuple followed by the coefficients.
    """
    fh = fh or sys.stdout

    fh.write(f"# d={x.d} k={x.k} sz={x.sz}\n")
    pts = x.points()
    idx = hxindex.index_alloc(x.k)
    pos = 0
    while True:
        coeffs = " ".join(f"{v:.6e}" for v in pts[pos])
        fh.write(f"{' '.join(str(i) for i in idx)}  {coeffs}\n")
        pos += 1

        if not hxindex.incr(x.sz, idx):
            break


def bytes_to_array(
    buf: bytes,
    endian: str = 'little',
    word_size: int = 4,
    is_float: bool = False
) -> HxArray:
    """
    Convert raw acquisition bytes into a real vector.

    Args:
        buf: Raw bytes
        endian: 'little' or 'big'
        word_size: Bytes per word (float: 2, 4, 8; integer: 1, 2, 4, 8)
        is_float: Whether the words are IEEE floating point

    Returns:
        (d=0, k=1) array with one point per word. Integer words are scaled
        into [-1, 1) by 1/2^(bits-1).
    """
    if endian not in ('little', 'big'):
        raise ArrayFormatError(f"invalid byte order '{endian}'")

    order = '<' if endian == 'little' else '>'
    if is_float:
        if word_size not in (2, 4, 8):
            raise ArrayFormatError(f"unsupported float word size {word_size}")
        dtype = np.dtype(f'{order}f{word_size}')
        scale = 1.0
    else:
        if word_size not in (1, 2, 4, 8):
            raise ArrayFormatError(f"unsupported integer word size {word_size}")
        dtype = np.dtype(f'{order}i{word_size}')
        scale = 1.0 / 2.0 ** (8 * word_size - 1)

    if len(buf) % word_size:
        raise ArrayFormatError(f"buffer of {len(buf)} bytes is not a whole number of {word_size}-byte words")
    if len(buf) == 0:
        raise ArrayFormatError("empty byte buffer")

    values = np.frombuffer(buf, dtype=dtype).astype(float) * scale
    return HxArray.from_points(0, [values.size], values)


def read_raw(
    path: PathLike,
    endian: str = 'little',
    word_size: int = 4,
    is_float: bool = False,
    offset: int = 0
) -> HxArray:
    """
    Read a raw byte file into a real vector.

    Args:
        path: File path
        endian: 'little' or 'big'
        word_size: Bytes per word
        is_float: Whether the words are IEEE floating point
        offset: Header bytes to skip
    """
    data = Path(path).read_bytes()
    if offset < 0 or offset > len(data):
        raise ArrayFormatError(f"{path}: header offset {offset} outside file of {len(data)} bytes")

    try:
        return bytes_to_array(data[offset:], endian, word_size, is_float)
    except ArrayFormatError as err:
        raise ArrayFormatError(f"failed to convert raw data in '{path}'") from err
