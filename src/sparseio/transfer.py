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

r"""Moving sparse data around, holes preserved."""

import errno
import io
from typing import Any
from typing import Iterator

from bytesparse.base import Address
from bytesparse.base import Block

from .base import SEEK_CUR
from .base import SEEK_END
from .base import SEEK_SET
from .base import BaseSparseReader


def copy(
    sink: Any,
    source: BaseSparseReader,
    buffer_size: int = io.DEFAULT_BUFFER_SIZE,
) -> Address:
    r"""Copies sparse data, holes preserved.

    Segments are written to `sink`; holes are skipped by seeking `sink`
    forward instead of writing zeros.
    If the data ends with a hole, `sink` is extended up to the final position
    via ``truncate``, unless it is already long enough.

    Errors raised by either side propagate immediately, carrying the number
    of data bytes copied so far as their `bytes_copied` attribute.
    A sink unable to write without blocking raises :obj:`BlockingIOError`.

    Arguments:
        sink (binary stream):
            Destination, supporting ``write``, ``seek`` and ``tell``;
            ``truncate`` too if the data ends with a hole.

        source (:obj:`~sparseio.base.BaseSparseReader`):
            Sparse data, read from its current position up to its end.

        buffer_size (int):
            Size of the transfer buffer.

    Returns:
        int: Number of data bytes copied, holes excluded.

    Examples:
        >>> from sparseio import Buffer
        >>> source = Buffer.from_blocks([[2, b'AAA'], [7, b'BBB']])
        >>> source.truncate(12)
        12
        >>> sink = Buffer()
        >>> copy(sink, source)
        6
        >>> sink.to_blocks()
        [[2, b'AAA'], [7, b'BBB']]
        >>> sink.size()
        12
    """

    if buffer_size < 1:
        raise ValueError(f'invalid buffer size {buffer_size!r}')

    buffer = bytearray(buffer_size)
    view = memoryview(buffer)
    copied = 0
    skipped = False

    try:
        while True:
            while True:
                size = source.readinto(buffer)
                if not size:
                    break

                written = 0
                while written < size:
                    chunk = sink.write(view[written:size])
                    if chunk is None:
                        raise BlockingIOError(errno.EAGAIN, 'sink not ready for writing', written)
                    written += chunk
                    copied += chunk
                skipped = False

            skip = source.next()
            if skip is None:
                break

            if skip:
                sink.seek(skip, SEEK_CUR)
                skipped = True

        if skipped:
            position = sink.tell()
            if sink.seek(0, SEEK_END) < position:
                sink.truncate(position)
            sink.seek(position, SEEK_SET)

    except Exception as exc:
        exc.bytes_copied = copied
        raise

    return copied


def read_blocks(
    source: BaseSparseReader,
    offset: Address = 0,
) -> Iterator[Block]:
    r"""Walks through sparse data.

    Arguments:
        source (:obj:`~sparseio.base.BaseSparseReader`):
            Sparse data, read from its current position up to its end.

        offset (int):
            Address of the current position of `source`.

    Yields:
        block: Each segment as a ``[start, data]`` list, with :obj:`bytes`
        data. Empty segments are not yielded.

    Examples:
        >>> from sparseio import Decoder
        >>> decoder = Decoder(io.BytesIO(b'\0\0ABC\0\0\0xyz'), 2)
        >>> list(read_blocks(decoder))
        [[2, b'ABC'], [8, b'xyz']]
    """

    while True:
        data = source.read()
        if data:
            yield [offset, data]
            offset += len(data)

        skip = source.next()
        if skip is None:
            break
        offset += skip
