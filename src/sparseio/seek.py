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

r"""Seek resolution, including data and hole seeking."""

from typing import List
from typing import Optional

from bytesparse.base import Address

from .base import SEEK_CUR
from .base import SEEK_DATA
from .base import SEEK_END
from .base import SEEK_HOLE
from .base import SEEK_SET
from .base import BaseFinder
from .base import SeekEOFError


def data_boundaries(
    finder: BaseFinder,
) -> List[Address]:
    r"""Lists data and hole boundaries.

    Arguments:
        finder (:obj:`BaseFinder`):
            Sparse data to scan. Its position is moved.

    Returns:
        list of int: Alternating data start and hole start addresses, clipped
        to the logical size, and terminated by the logical size itself.

    Examples:
        +---+---+---+---+---+---+---+---+---+---+---+---+
        | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 | 10| 11|
        +===+===+===+===+===+===+===+===+===+===+===+===+
        |   |   |[A | B]|   |   |[x | y | z]|   |   |   |
        +---+---+---+---+---+---+---+---+---+---+---+---+

        >>> from sparseio import Buffer
        >>> buffer = Buffer.from_blocks([[2, b'AB'], [6, b'xyz']])
        >>> data_boundaries(buffer)
        [2, 4, 6, 9, 9]
        >>> buffer.truncate(12)
        12
        >>> data_boundaries(buffer)
        [2, 4, 6, 9, 12]
    """

    size = finder.size()
    boundaries = []
    offset = 0

    while offset < size:
        found = finder.find(offset)
        if found is None:
            break

        block_start, block_size = found
        if block_start >= size:
            break
        block_endex = min(block_start + block_size, size)

        if block_start < block_endex:
            if boundaries and boundaries[-1] == block_start:
                boundaries[-1] = block_endex  # contiguous segments
            else:
                boundaries.append(max(block_start, offset))
                boundaries.append(block_endex)

        offset = max(block_endex, block_start + 1)

    boundaries.append(size)
    return boundaries


def _resolve_extended(
    offset: Address,
    whence: int,
    finder: BaseFinder,
) -> Address:

    if offset < 0:
        raise ValueError(f'negative seek position {offset!r}')

    boundaries = data_boundaries(finder)
    size = boundaries[-1]
    if offset >= size:
        if offset == size and whence == SEEK_HOLE:
            return offset  # the end counts as a hole
        raise SeekEOFError(f'seek beyond EOF: {offset!r}')

    for index in range(0, len(boundaries) - 1, 2):
        data_start = boundaries[index]
        hole_start = boundaries[index + 1]

        if whence == SEEK_DATA:
            if offset < hole_start:
                return max(offset, data_start)
        else:
            if offset < data_start:
                return offset
            if offset < hole_start:
                return hole_start

    if whence == SEEK_DATA:
        raise SeekEOFError(f'no data after {offset!r}')
    return offset


def resolve_seek(
    offset: Address,
    whence: int,
    position: Address,
    size: Address,
    finder: Optional[BaseFinder] = None,
) -> Address:
    r"""Resolves a seek request.

    Standard whences are plain arithmetic.
    :data:`SEEK_DATA` and :data:`SEEK_HOLE` follow the ``lseek`` semantics,
    with the logical end counting as a hole.

    Arguments:
        offset (int):
            Requested offset, relative to `whence`.

        whence (int):
            One of :data:`SEEK_SET`, :data:`SEEK_CUR`, :data:`SEEK_END`,
            :data:`SEEK_DATA`, :data:`SEEK_HOLE`.

        position (int):
            Current position, for :data:`SEEK_CUR`.

        size (int):
            Logical size, for :data:`SEEK_END`.

        finder (:obj:`BaseFinder`):
            Sparse data discovery, required by :data:`SEEK_DATA` and
            :data:`SEEK_HOLE`.

    Returns:
        int: Absolute resolved position.

    Raises:
        :obj:`ValueError`: Invalid whence or negative position.

        :obj:`SeekEOFError`: No data or hole at or after `offset`.
            The logical size itself is a valid hole position.

    Examples:
        +---+---+---+---+---+---+---+---+---+---+
        | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 |
        +===+===+===+===+===+===+===+===+===+===+
        |   |   |[A | B | C]|   |   |[x | y | z]|
        +---+---+---+---+---+---+---+---+---+---+

        >>> from sparseio import Buffer
        >>> buffer = Buffer.from_blocks([[2, b'ABC'], [7, b'xyz']])
        >>> resolve_seek(3, SEEK_CUR, 4, buffer.size())
        7
        >>> resolve_seek(-1, SEEK_END, 4, buffer.size())
        9
        >>> resolve_seek(0, SEEK_DATA, 0, buffer.size(), buffer)
        2
        >>> resolve_seek(3, SEEK_HOLE, 0, buffer.size(), buffer)
        5
        >>> resolve_seek(8, SEEK_HOLE, 0, buffer.size(), buffer)
        10
    """

    if whence == SEEK_SET:
        pass
    elif whence == SEEK_CUR:
        offset += position
    elif whence == SEEK_END:
        offset += size
    elif (whence == SEEK_DATA or whence == SEEK_HOLE) and finder is not None:
        return _resolve_extended(offset, whence, finder)
    else:
        raise ValueError(f'invalid whence ({whence!r})')

    if offset < 0:
        raise ValueError(f'negative seek position {offset!r}')
    return offset
