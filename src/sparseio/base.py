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

r"""Common stuff, shared across modules.

Sparse data is consumed through two narrow contracts:

* :class:`BaseSparseReader` streams forward through the data: :meth:`readinto`
  reads bytes of the segment at the current position, :meth:`next` skips the
  following hole.

* :class:`BaseFinder` discovers segments by address: :meth:`find` locates the
  segment at or after an address, :meth:`size` tells the logical size.

Anything implementing them can be fed to the adapters in :mod:`sparseio.reader`
and to :func:`sparseio.transfer.copy`, regardless of where the segments come
from.
"""

import abc
import io
from typing import Any
from typing import Optional
from typing import Tuple
from typing import Union

from bytesparse.base import Address

try:
    from typing import TypeAlias
except ImportError:  # pragma: no cover
    TypeAlias = Any  # Python < 3.10

BytesLike: TypeAlias = Union[bytes, bytearray, memoryview]
Segment: TypeAlias = Tuple[Address, Address]

SEEK_SET: int = io.SEEK_SET
SEEK_CUR: int = io.SEEK_CUR
SEEK_END: int = io.SEEK_END
SEEK_DATA: int = 3
SEEK_HOLE: int = 4


class SeekEOFError(EOFError):
    r"""No data or hole at or after the requested seek offset."""


class InvariantError(RuntimeError):
    r"""The segment list would become inconsistent."""


class BaseSparseReader(abc.ABC):
    r"""Streams sparse data.

    When the stream position reaches a hole in the data, which could be at the
    very start of the stream, :meth:`readinto` reads nothing.
    Callers then use :meth:`next` to advance to the following segment of data,
    and call :meth:`readinto` again to retrieve its bytes.

    The true end of the stream is reached when :meth:`next` returns ``None``.

    Examples:
        >>> from sparseio import Buffer
        >>> buffer = Buffer()
        >>> buffer.write_at(b'AAA', 2)
        3
        >>> buffer.read()
        b''
        >>> buffer.next()
        2
        >>> buffer.read()
        b'AAA'
        >>> buffer.next() is None
        True
    """

    @abc.abstractmethod
    def next(
        self,
    ) -> Optional[Address]:
        r"""Advances to the next segment.

        If the position lies within a segment, the rest of that segment is
        skipped too.

        Returns:
            int: Number of hole bytes skipped, ``None`` at the end of the
            stream.

        Examples:
            >>> from sparseio import Buffer
            >>> buffer = Buffer.from_blocks([[0, b'AAA'], [5, b'BBB']])
            >>> buffer.next()
            5
            >>> buffer.read()
            b'BBB'
            >>> buffer.next() is None
            True
        """
        ...

    def read(
        self,
        size: Optional[int] = -1,
    ) -> bytes:
        r"""Reads bytes of the current segment.

        Arguments:
            size (int):
                Maximum number of bytes to read. If ``None`` or negative, the
                current segment is drained.

        Returns:
            bytes: Bytes read; empty within a hole or at the end.

        Examples:
            >>> from sparseio import Buffer
            >>> buffer = Buffer.from_blocks([[0, b'Hello'], [8, b'World']])
            >>> buffer.read(3)
            b'Hel'
            >>> buffer.read()
            b'lo'
            >>> buffer.read()
            b''
        """

        if size is None or size < 0:
            chunks = []
            chunk = bytearray(io.DEFAULT_BUFFER_SIZE)
            while True:
                count = self.readinto(chunk)
                chunks.append(bytes(chunk[:count]))
                if count < len(chunk):  # segment drained
                    return b''.join(chunks)
        else:
            chunk = bytearray(size)
            count = self.readinto(chunk)
            return bytes(chunk[:count])

    @abc.abstractmethod
    def readinto(
        self,
        buffer: BytesLike,
    ) -> int:
        r"""Reads bytes of the current segment into a buffer.

        Reading never crosses a hole: once the current segment is exhausted,
        nothing more is read until :meth:`next` is called.

        Arguments:
            buffer (writable byte-like):
                Target buffer.

        Returns:
            int: Number of bytes read; zero within a hole, at the end, or if
            `buffer` is empty.
        """
        ...


class BaseFinder(abc.ABC):
    r"""Discovers sparse data by address.

    If the object also has a stream position, :meth:`find` moves it.
    """

    @abc.abstractmethod
    def find(
        self,
        offset: Address,
    ) -> Optional[Segment]:
        r"""Finds the segment at or after an address.

        The position is moved to `offset` if it lies within a segment, else to
        the start of the following segment.

        Arguments:
            offset (int):
                Address where to start looking.

        Returns:
            (int, int): Start address and length of the segment found, ``None``
            if no data lies at or after `offset`.
            The new position is `offset` if the returned start is not greater
            than `offset`, else the returned start.

        Examples:
            >>> from sparseio import Buffer
            >>> buffer = Buffer.from_blocks([[2, b'AAA'], [7, b'BBB']])
            >>> buffer.find(0)
            (2, 3)
            >>> buffer.find(3)
            (2, 3)
            >>> buffer.read()
            b'AA'
            >>> buffer.find(5)
            (7, 3)
            >>> buffer.find(10) is None
            True
        """
        ...

    @abc.abstractmethod
    def size(
        self,
    ) -> Address:
        r"""int: Logical size, possibly beyond the end of the last segment."""
        ...


class BaseReadFinder(BaseSparseReader, BaseFinder):
    r"""Reads and discovers sparse data.

    This is the sparse counterpart of a readable and seekable stream.
    """
