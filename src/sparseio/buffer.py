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

r"""Sparse in-memory byte buffer."""

from typing import Any
from typing import Iterable
from typing import Optional
from typing import Set
from typing import Tuple
from typing import Type

from bytesparse import Memory
from bytesparse.base import Address
from bytesparse.base import BlockIndex
from bytesparse.base import BlockList

from .base import SEEK_SET
from .base import BaseReadFinder
from .base import BytesLike
from .base import InvariantError
from .base import Segment
from .seek import resolve_seek

Span = Tuple[BlockIndex, BlockIndex, Address, Address]


class Buffer(BaseReadFinder):
    r"""Sparse in-memory collection of bytes.

    Data is stored with :meth:`write`, :meth:`write_at` or :meth:`store_at`,
    and read back through the sparse reader and finder contracts.

    Only written ranges are held in memory, as a list of `blocks`
    ``[start, data]`` sorted by address, where no two blocks overlap nor
    touch each other: writes touching or overlapping existing blocks merge
    them into a single one.

    Attributes:
        _blocks (list of blocks):
            A sequence of spaced blocks, sorted by address.

        _position (int):
            Stream position.

        _current (int):
            Index of the block enclosing the stream position, if known.
            Any write resets it, as block indices may change.

        _trim (int):
            Logical size set by :meth:`truncate`.

        _stored (set of int):
            Identities of the payloads kept by :meth:`store_at`, which are
            never grown in place.

    Examples:
        +---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+
        | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 | 10| 11| 12| 13| 14| 15|
        +===+===+===+===+===+===+===+===+===+===+===+===+===+===+===+===+
        |   |   |   |   |   |[A | A | A]|   |   |   |   |   |[B | B | B]|
        +---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+
        |   |   |   |   |   |   |   |   |[C | C | C]|   |   |   |   |   |
        +---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+
        |   |   |   |   |   |[A | A | A | C | C | C]|   |   |[B | B | B]|
        +---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+

        >>> buffer = Buffer()
        >>> buffer.write_at(b'AAA', 5)
        3
        >>> buffer.write_at(b'BBB', 13)
        3
        >>> buffer.write_at(b'CCC', 8)
        3
        >>> buffer.to_blocks()
        [[5, b'AAACCC'], [13, b'BBB']]
        >>> buffer.size()
        16
    """

    def __init__(
        self,
    ):

        self._blocks: BlockList = []
        self._position: Address = 0
        self._current: Optional[BlockIndex] = None
        self._trim: Address = 0
        self._stored: Set[int] = set()

    def __repr__(
        self,
    ) -> str:

        return f'<{self.__class__.__name__}[0x0:0x{self.size():X}]@0x{id(self):X}>'

    def _block_index_at(
        self,
        address: Address,
    ) -> Optional[BlockIndex]:

        index = self._block_index_start(address)
        blocks = self._blocks
        if index < len(blocks) and blocks[index][0] <= address:
            return index
        return None

    def _block_index_start(
        self,
        address: Address,
    ) -> BlockIndex:
        r"""Locates the first block ending after an address.

        Arguments:
            address (int):
                Inclusive start address of the scanned range.

        Returns:
            int: Index of the block enclosing `address`, else of the following
            block; the block count if none.

        Example:
            +---+---+---+---+---+---+---+---+---+---+---+---+
            | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 | 10| 11|
            +===+===+===+===+===+===+===+===+===+===+===+===+
            |   |[A | B | C | D]|   |[$]|   |[x | y | z]|   |
            +---+---+---+---+---+---+---+---+---+---+---+---+
            | 0 | 0 | 0 | 0 | 0 | 1 | 1 | 2 | 2 | 2 | 2 | 3 |
            +---+---+---+---+---+---+---+---+---+---+---+---+

            >>> buffer = Buffer.from_blocks([[1, b'ABCD'], [6, b'$'], [8, b'xyz']])
            >>> [buffer._block_index_start(i) for i in range(12)]
            [0, 0, 0, 0, 0, 1, 1, 2, 2, 2, 2, 3]
        """

        blocks = self._blocks
        if blocks:
            if address <= blocks[0][0]:
                return 0

            block_start, block_data = blocks[-1]
            if block_start + len(block_data) <= address:
                return len(blocks)
        else:
            return 0

        left = 0
        right = len(blocks) - 1

        while left <= right:
            center = (left + right) >> 1
            block_start, block_data = blocks[center]

            if block_start + len(block_data) <= address:
                left = center + 1
            elif address < block_start:
                right = center - 1
            else:
                return center
        else:
            return left

    def _span(
        self,
        offset: Address,
        size: Address,
    ) -> Optional[Span]:
        r"""Finds the blocks overlapping or touching a range.

        Arguments:
            offset (int):
                Range start address.

            size (int):
                Range size.

        Returns:
            (int, int, int, int): Indices of the leftmost and rightmost blocks,
            followed by the sizes of their parts outside of the range, ``None``
            if no block overlaps or touches the range.

        Example:
            +---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+
            | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 | 10| 11| 12| 13| 14| 15|
            +===+===+===+===+===+===+===+===+===+===+===+===+===+===+===+===+
            |   |   |   |   |[A | A | A | A | A]|   |   |[B]|   |   |[C | C |
            +---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+

            >>> buffer = Buffer.from_blocks([[4, b'AAAAA'], [11, b'B'], [14, b'CCCCC']])
            >>> buffer._span(6, 10)
            (0, 2, 2, 3)
            >>> buffer._span(5, 2)
            (0, 0, 1, 2)
            >>> buffer._span(9, 5)
            (0, 2, 5, 5)
            >>> buffer._span(1, 2) is None
            True
        """

        blocks = self._blocks
        endex = offset + size
        left = self._block_index_start(offset)

        if left:
            block_start, block_data = blocks[left - 1]
            if block_start + len(block_data) == offset:
                left -= 1  # touching on the left

        if left >= len(blocks) or blocks[left][0] > endex:
            return None

        right = left
        while right + 1 < len(blocks) and blocks[right + 1][0] <= endex:
            right += 1

        keep_left = max(offset - blocks[left][0], 0)
        block_start, block_data = blocks[right]
        keep_right = max(block_start + len(block_data) - endex, 0)
        return left, right, keep_left, keep_right

    def _insert(
        self,
        offset: Address,
        data: BytesLike,
    ) -> None:

        blocks = self._blocks
        index = self._block_index_start(offset)

        if index < len(blocks) and blocks[index][0] < offset + len(data):
            raise InvariantError('insertion would overlap another block')

        blocks.insert(index, [offset, data])

    def _merge(
        self,
        offset: Address,
        data: BytesLike,
        span: Span,
    ) -> None:

        blocks = self._blocks
        left, right, keep_left, keep_right = span
        left_start, left_data = blocks[left]
        right_data = blocks[right][1]

        tail = right_data[len(right_data) - keep_right:] if keep_right else b''

        if isinstance(left_data, bytearray) and id(left_data) not in self._stored:
            merged = left_data
            del merged[keep_left:]
        else:
            merged = bytearray(left_data[:keep_left])
        merged += data
        merged += tail

        blocks[left] = [min(left_start, offset), merged]
        del blocks[left + 1:right + 1]

    def _write(
        self,
        data: BytesLike,
        offset: Address,
        own: bool,
    ) -> int:

        if offset < 0:
            raise ValueError(f'negative offset {offset!r}')

        self._current = None
        size = len(data)
        if size:
            span = self._span(offset, size)
            if span is None:
                if not own or not isinstance(data, (bytes, bytearray)):
                    data = bytearray(data)
                elif isinstance(data, bytearray):
                    self._stored.add(id(data))
                self._insert(offset, data)
            else:
                self._merge(offset, data, span)
        return size

    def find(
        self,
        offset: Address,
    ) -> Optional[Segment]:

        if offset < 0:
            raise ValueError(f'negative offset {offset!r}')

        self._current = None
        index = self._block_index_start(offset)
        blocks = self._blocks
        if index >= len(blocks):
            return None

        block_start, block_data = blocks[index]
        self._position = max(offset, block_start)
        self._current = index
        return block_start, len(block_data)

    @classmethod
    def from_blocks(
        cls: Type['Buffer'],
        blocks: Iterable[Any],
    ) -> 'Buffer':
        r"""Creates a buffer from blocks.

        Arguments:
            blocks (list of blocks):
                A sequence of ``[start, data]`` blocks, in any order; later
                blocks overwrite earlier ones where they overlap.

        Returns:
            :obj:`Buffer`: The new buffer.

        Examples:
            >>> buffer = Buffer.from_blocks([[1, b'ABC'], [4, b'xyz'], [9, b'!']])
            >>> buffer.to_blocks()
            [[1, b'ABCxyz'], [9, b'!']]
        """

        buffer = cls()
        for block_start, block_data in blocks:
            buffer.write_at(block_data, block_start)
        return buffer

    @classmethod
    def from_memory(
        cls: Type['Buffer'],
        memory: Memory,
    ) -> 'Buffer':
        r"""Creates a buffer from a :obj:`bytesparse.Memory` object.

        Arguments:
            memory (:obj:`bytesparse.Memory`):
                Source memory; its blocks are copied.

        Returns:
            :obj:`Buffer`: The new buffer.
        """

        return cls.from_blocks(memory.to_blocks())

    def next(
        self,
    ) -> Optional[Address]:

        position = self._position
        blocks = self._blocks
        index = self._block_index_start(position)

        if index < len(blocks) and blocks[index][0] <= position:
            index += 1  # skip the enclosing block

        if index < len(blocks):
            block_start = blocks[index][0]
            self._position = block_start
            self._current = index
            return block_start - position

        size = self.size()
        if position < size:
            self._position = size
            self._current = None
            return size - position

        return None

    def readinto(
        self,
        buffer: BytesLike,
    ) -> int:

        view = memoryview(buffer).cast('B')
        if not len(view):
            return 0

        blocks = self._blocks
        position = self._position
        index = self._current

        if index is not None:
            block_start, block_data = blocks[index]
            if not block_start <= position < block_start + len(block_data):
                index = None

        if index is None:
            index = self._block_index_at(position)
            self._current = index
            if index is None:
                return 0

        block_start, block_data = blocks[index]
        start = position - block_start
        size = min(len(view), len(block_data) - start)
        view[:size] = block_data[start:start + size]
        self._position = position + size
        return size

    def reset(
        self,
    ) -> None:
        r"""Empties the buffer, and moves the position back to zero."""

        self._blocks = []
        self._position = 0
        self._current = None
        self._trim = 0
        self._stored.clear()

    def seek(
        self,
        offset: Address,
        whence: int = SEEK_SET,
    ) -> Address:
        r"""Moves the stream position.

        Besides the standard whences, :data:`~sparseio.base.SEEK_DATA` and
        :data:`~sparseio.base.SEEK_HOLE` are supported, see
        :func:`~sparseio.seek.resolve_seek`.

        Arguments:
            offset (int):
                Offset relative to `whence`.

            whence (int):
                Seek mode.

        Returns:
            int: The new absolute position.
            The position is left untouched if an exception is raised.

        Examples:
            >>> from sparseio import SEEK_DATA, SEEK_HOLE
            >>> buffer = Buffer.from_blocks([[2, b'ABC'], [7, b'xyz']])
            >>> buffer.seek(0, SEEK_DATA)
            2
            >>> buffer.seek(0, SEEK_HOLE)
            0
            >>> buffer.seek(3, SEEK_HOLE)
            5
            >>> buffer.seek(8, SEEK_HOLE)
            10
        """

        position = self._position
        try:
            position = resolve_seek(offset, whence, position, self.size(), self)
        finally:
            self._position = position  # unchanged on error, moved by find
            self._current = None
        return position

    def size(
        self,
    ) -> Address:

        blocks = self._blocks
        if blocks:
            block_start, block_data = blocks[-1]
            return max(block_start + len(block_data), self._trim)
        return self._trim

    def store_at(
        self,
        data: BytesLike,
        offset: Address,
    ) -> None:
        r"""Stores data, taking ownership of it.

        Same as :meth:`write_at`, but a :obj:`bytes` or :obj:`bytearray`
        object written where no other block overlaps or touches is kept as it
        is, instead of being copied.
        Callers must not modify `data` afterwards, while the buffer never does:
        later writes touching it merge into a copy.

        Arguments:
            data (byte-like):
                Data to store.

            offset (int):
                Address where to store `data`.
        """

        self._write(data, offset, True)

    def tell(
        self,
    ) -> Address:
        r"""int: Current stream position."""

        return self._position

    def to_blocks(
        self,
    ) -> BlockList:
        r"""Exports blocks.

        The stream position is left untouched.

        Returns:
            list of blocks: A copy of the stored blocks, as ``[start, data]``
            lists with :obj:`bytes` data.
        """

        return [[block_start, bytes(block_data)]
                for block_start, block_data in self._blocks]

    def to_memory(
        self,
    ) -> Memory:
        r"""Exports blocks into a :obj:`bytesparse.Memory` object.

        Returns:
            :obj:`bytesparse.Memory`: A copy of the stored data.
        """

        return Memory.from_blocks(self.to_blocks())

    def truncate(
        self,
        size: Optional[Address] = None,
    ) -> Address:
        r"""Sets the logical size.

        Data at and after `size` is deleted.
        A larger `size` just extends the logical size, without storing
        anything.

        Arguments:
            size (int):
                New logical size; ``None`` for the current position.

        Returns:
            int: The new logical size, which is at least `size` until the next
            write.

        Examples:
            +---+---+---+---+---+---+---+---+---+---+---+---+
            | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 | 10| 11|
            +===+===+===+===+===+===+===+===+===+===+===+===+
            |   |[A | B | C | D]|   |[$]|   |[x | y | z]|   |
            +---+---+---+---+---+---+---+---+---+---+---+---+
            |   |[A | B]|   |   |   |   |   |   |   |   |   |
            +---+---+---+---+---+---+---+---+---+---+---+---+

            >>> buffer = Buffer.from_blocks([[1, b'ABCD'], [6, b'$'], [8, b'xyz']])
            >>> buffer.truncate(3)
            3
            >>> buffer.to_blocks()
            [[1, b'AB']]
            >>> buffer.truncate(12)
            12
            >>> buffer.to_blocks()
            [[1, b'AB']]
        """

        if size is None:
            size = self._position
        if size < 0:
            raise ValueError(f'negative size value {size!r}')

        self._trim = size
        self._current = None
        blocks = self._blocks
        index = self._block_index_start(size)

        if index < len(blocks):
            block_start, block_data = blocks[index]
            if block_start < size:
                blocks[index][1] = block_data[:size - block_start]
                index += 1
            del blocks[index:]

        return size

    def write(
        self,
        data: BytesLike,
    ) -> int:
        r"""Writes data at the stream position, advancing it.

        Arguments:
            data (byte-like):
                Data to write.

        Returns:
            int: Number of bytes written.
        """

        size = self.write_at(data, self._position)
        self._position += size
        return size

    def write_at(
        self,
        data: BytesLike,
        offset: Address,
    ) -> int:
        r"""Writes a copy of data.

        Blocks overlapping or touching the written range are merged with it.
        The stream position is left untouched.

        Arguments:
            data (byte-like):
                Data to write.

            offset (int):
                Address where to write `data`.

        Returns:
            int: Number of bytes written.

        Examples:
            +---+---+---+---+---+---+---+---+---+
            | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 |
            +===+===+===+===+===+===+===+===+===+
            |[A | A]|   |[B | B]|   |[C | C]|   |
            +---+---+---+---+---+---+---+---+---+
            |   |[D | D | D | D | D | D]|   |   |
            +---+---+---+---+---+---+---+---+---+
            |[A | D | D | D | D | D | D | C]|   |
            +---+---+---+---+---+---+---+---+---+

            >>> buffer = Buffer.from_blocks([[0, b'AA'], [3, b'BB'], [6, b'CC']])
            >>> buffer.write_at(b'DDDDDD', 1)
            6
            >>> buffer.to_blocks()
            [[0, b'ADDDDDDC']]
        """

        return self._write(data, offset, False)
