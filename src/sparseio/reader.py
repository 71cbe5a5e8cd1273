# Copyright (c) 2020-2023, Andrea Zoppi.
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

r"""Dense views over sparse data.

Holes are filled with bytes read from a `fallback` stream, which defaults to
an endless source of zeros.
"""

import io
from typing import BinaryIO
from typing import Optional

from bytesparse.base import Address

from .base import SEEK_END
from .base import SEEK_SET
from .base import BaseReadFinder
from .base import BaseSparseReader
from .base import BytesLike
from .seek import resolve_seek


class ZeroReader(io.RawIOBase):
    r"""Endless stream of zeros.

    Examples:
        >>> reader = ZeroReader()
        >>> reader.read(4)
        b'\x00\x00\x00\x00'
        >>> reader.seek(100)
        100
        >>> reader.read(2)
        b'\x00\x00'
        >>> reader.tell()
        102
    """

    def __init__(
        self,
    ):

        super().__init__()
        self._position: Address = 0

    def readable(
        self,
    ) -> bool:

        return True

    def readall(
        self,
    ) -> bytes:

        raise io.UnsupportedOperation('endless stream')

    def readinto(
        self,
        buffer: BytesLike,
    ) -> int:

        view = memoryview(buffer).cast('B')
        size = len(view)
        view[:] = bytes(size)
        self._position += size
        return size

    def seek(
        self,
        offset: Address,
        whence: int = SEEK_SET,
    ) -> Address:

        if whence == SEEK_END:
            raise io.UnsupportedOperation('endless stream')
        self._position = resolve_seek(offset, whence, self._position, 0)
        return self._position

    def seekable(
        self,
    ) -> bool:

        return True

    def tell(
        self,
    ) -> Address:

        return self._position


def _readinto_fully(
    stream: BinaryIO,
    view: memoryview,
) -> int:

    total = len(view)
    size = 0
    while size < total:
        chunk = stream.readinto(view[size:])
        if not chunk:
            break
        size += chunk
    return size


class ReadSeeker(io.RawIOBase):
    r"""Random access dense view of sparse data.

    Reads within holes come from the `fallback` stream, at the same address.
    Reading stops at the end of the last segment, so that nothing is
    synthesized after it.

    Arguments:
        source (:obj:`~sparseio.base.BaseReadFinder`):
            Sparse data. Its own position is not preserved.

        fallback (binary stream):
            Seekable stream filling the holes; ``None`` for zeros.

    Examples:
        +---+---+---+---+---+---+---+---+---+---+
        | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 |
        +===+===+===+===+===+===+===+===+===+===+
        |   |   |[A | B | C]|   |   |[x | y | z]|
        +---+---+---+---+---+---+---+---+---+---+

        >>> from sparseio import Buffer
        >>> buffer = Buffer.from_blocks([[2, b'ABC'], [7, b'xyz']])
        >>> reader = ReadSeeker(buffer)
        >>> reader.read()
        b'\x00\x00ABC\x00\x00xyz'
        >>> reader.read_at(4, 4)
        b'C\x00\x00x'

        >>> reader = ReadSeeker(buffer, io.BytesIO(b'0123456789'))
        >>> reader.read()
        b'01ABC56xyz'
    """

    def __init__(
        self,
        source: BaseReadFinder,
        fallback: Optional[BinaryIO] = None,
    ):

        super().__init__()

        if fallback is None:
            fallback = ZeroReader()

        self._source: BaseReadFinder = source
        self._fallback: BinaryIO = fallback
        self._position: Address = 0

    @property
    def fallback(
        self,
    ) -> BinaryIO:
        r"""binary stream: Stream filling the holes."""

        return self._fallback

    def read_at(
        self,
        size: int,
        offset: Address,
    ) -> bytes:
        r"""Reads bytes at an address.

        The stream position is left untouched.

        Arguments:
            size (int):
                Maximum number of bytes to read.

            offset (int):
                Address of the first byte to read.

        Returns:
            bytes: Bytes read; fewer than `size` only past the last segment.
        """

        buffer = bytearray(size)
        count = self.readinto_at(buffer, offset)
        return bytes(buffer[:count])

    def readable(
        self,
    ) -> bool:

        return True

    def readinto(
        self,
        buffer: BytesLike,
    ) -> int:

        size = self.readinto_at(buffer, self._position)
        self._position += size
        return size

    def readinto_at(
        self,
        buffer: BytesLike,
        offset: Address,
    ) -> int:
        r"""Reads bytes at an address into a buffer.

        The stream position is left untouched.

        Arguments:
            buffer (writable byte-like):
                Target buffer.

            offset (int):
                Address of the first byte to read.

        Returns:
            int: Number of bytes read; zero past the last segment.
        """

        if offset < 0:
            raise ValueError(f'negative offset {offset!r}')

        view = memoryview(buffer).cast('B')
        total = len(view)
        source = self._source
        size = 0

        while size < total:
            found = source.find(offset)
            if found is None:
                break
            data_start = found[0]

            if offset < data_start:
                limit = min(total, size + data_start - offset)
                self._fallback.seek(offset)
                chunk = _readinto_fully(self._fallback, view[size:limit])
                size += chunk
                offset += chunk
                if offset < data_start:
                    break  # buffer full, or fallback exhausted

            chunk = source.readinto(view[size:])
            if not chunk:
                break
            size += chunk
            offset += chunk

        return size

    def seek(
        self,
        offset: Address,
        whence: int = SEEK_SET,
    ) -> Address:

        source = self._source
        self._position = resolve_seek(offset, whence, self._position, source.size(), source)
        return self._position

    def seekable(
        self,
    ) -> bool:

        return True

    @property
    def source(
        self,
    ) -> BaseReadFinder:
        r""":obj:`~sparseio.base.BaseReadFinder`: Sparse data."""

        return self._source

    def tell(
        self,
    ) -> Address:

        return self._position


class StreamReader(io.RawIOBase):
    r"""Sequential dense view of sparse data.

    Holes are filled with bytes read from the `fallback` stream, which is read
    continuously, hole after hole.
    The stream ends at the logical end of the sparse data, trailing hole
    included.

    Errors raised by the source or the fallback are remembered, and raised
    again by any later read.
    The end of the source is remembered too.

    Arguments:
        source (:obj:`~sparseio.base.BaseSparseReader`):
            Sparse data.

        fallback (binary stream):
            Readable stream filling the holes; ``None`` for zeros.

    Examples:
        >>> from sparseio import Buffer
        >>> buffer = Buffer.from_blocks([[2, b'AAA'], [7, b'BBB']])
        >>> StreamReader(buffer).read()
        b'\x00\x00AAA\x00\x00BBB'

        >>> buffer = Buffer.from_blocks([[2, b'AAA'], [7, b'BBB']])
        >>> StreamReader(buffer, io.BytesIO(b'0123456789')).read()
        b'01AAA23BBB'
    """

    def __init__(
        self,
        source: BaseSparseReader,
        fallback: Optional[BinaryIO] = None,
    ):

        super().__init__()

        if fallback is None:
            fallback = ZeroReader()

        self._source: BaseSparseReader = source
        self._fallback: BinaryIO = fallback
        self._owed: Address = 0
        self._ended: bool = False
        self._error: Optional[Exception] = None

    def readable(
        self,
    ) -> bool:

        return True

    def readinto(
        self,
        buffer: BytesLike,
    ) -> int:

        if self._error is not None:
            raise self._error

        size = 0
        with memoryview(buffer) as buffer_view, buffer_view.cast('B') as view:
            total = len(view)
            try:
                while size < total and not self._ended:
                    while size < total and self._owed:
                        limit = min(total, size + self._owed)
                        chunk = self._fallback.readinto(view[size:limit])
                        if not chunk:
                            raise EOFError('fallback stream exhausted within a hole')
                        self._owed -= chunk
                        size += chunk

                    if size == total:
                        break

                    chunk = self._source.readinto(view[size:])
                    size += chunk

                    if not chunk:
                        skip = self._source.next()
                        if skip is None:
                            self._ended = True
                        else:
                            self._owed = skip

            except Exception as exc:
                self._error = exc
                if not size:
                    raise  # else raised by the next call
        return size

    @property
    def source(
        self,
    ) -> BaseSparseReader:
        r""":obj:`~sparseio.base.BaseSparseReader`: Sparse data."""

        return self._source
