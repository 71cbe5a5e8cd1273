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

r"""Sparse data out of dense byte streams."""

import io
import re
from typing import Any
from typing import Optional

from bytesparse.base import Address

from .base import BaseSparseReader
from .base import BytesLike

_ZEROS_REGEX = re.compile(b'\\x00*')
_NONZEROS_REGEX = re.compile(b'[^\\x00]*')


class Decoder(BaseSparseReader):
    r"""Sparse reader of a dense byte stream.

    Runs of at least `min_hole` zero bytes become holes; shorter runs are read
    as ordinary data.

    Errors raised by the stream are remembered, and raised again by any later
    call. The end of the stream is remembered only after :meth:`next` has
    skipped any trailing hole.

    Arguments:
        stream (binary stream):
            Dense data, any object with a ``read(size)`` method.

        min_hole (int):
            Minimum length of a zero run to become a hole.

        chunk_size (int):
            Size of the chunks read from `stream`.

    Examples:
        +---+---+---+---+---+---+---+---+---+---+---+---+
        | 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 | 10| 11|
        +===+===+===+===+===+===+===+===+===+===+===+===+
        | A | B | 0 | C | 0 | 0 | 0 | 0 | D | E | 0 | 0 |
        +---+---+---+---+---+---+---+---+---+---+---+---+
        |[A | B | 0 | C]|   |   |   |   |[D | E]|   |   |
        +---+---+---+---+---+---+---+---+---+---+---+---+

        >>> decoder = Decoder(io.BytesIO(b'AB\0C\0\0\0\0DE\0\0'), 2)
        >>> decoder.read()
        b'AB\x00C'
        >>> decoder.next()
        4
        >>> decoder.read()
        b'DE'
        >>> decoder.next()
        2
        >>> decoder.read()
        b''
        >>> decoder.next() is None
        True
    """

    def __init__(
        self,
        stream: Any,
        min_hole: Address,
        chunk_size: int = io.DEFAULT_BUFFER_SIZE,
    ):

        if min_hole < 1:
            raise ValueError(f'invalid minimum hole length {min_hole!r}')
        if chunk_size < 1:
            raise ValueError(f'invalid chunk size {chunk_size!r}')

        self._stream: Any = stream
        self._min_hole: Address = min_hole
        self._chunk_size: int = chunk_size

        self._chunk: bytes = b''
        self._index: int = 0
        self._data: memoryview = memoryview(b'')
        self._zeros: Address = 0
        self._ended: bool = False
        self._error: Optional[Exception] = None

        self._scan()

    def _scan(
        self,
    ) -> None:
        r"""Scans the next run of non-zero bytes.

        The zero bytes preceding it are added to the pending zero count.
        """

        try:
            while True:
                chunk = self._chunk
                index = self._index

                if index >= len(chunk):
                    chunk = self._stream.read(self._chunk_size)
                    if not chunk:
                        if not self._zeros:
                            self._ended = True
                        return
                    chunk = bytes(chunk)
                    self._chunk = chunk
                    index = 0

                start = _ZEROS_REGEX.match(chunk, index).end()
                endex = _NONZEROS_REGEX.match(chunk, start).end()
                self._zeros += start - index
                self._index = endex

                if start < endex:
                    self._data = memoryview(chunk)[start:endex]
                    return

        except Exception as exc:
            self._error = exc

    @property
    def min_hole(
        self,
    ) -> Address:
        r"""int: Minimum length of a zero run to become a hole."""

        return self._min_hole

    def next(
        self,
    ) -> Optional[Address]:

        if self._zeros >= self._min_hole:
            skip = self._zeros
            self._zeros = 0
            if not self._data and self._error is None:
                self._scan()
            return skip

        if self._error is not None:
            raise self._error
        if self._ended:
            return None
        return 0

    def readinto(
        self,
        buffer: BytesLike,
    ) -> int:

        with memoryview(buffer) as buffer_view, buffer_view.cast('B') as view:
            total = len(view)
            size = 0

            while size < total:
                if self._error is not None:
                    if size:
                        break  # raised by the next call
                    raise self._error

                if self._ended or self._zeros >= self._min_hole:
                    break

                if self._zeros:
                    chunk = min(self._zeros, total - size)
                    view[size:size + chunk] = bytes(chunk)
                    self._zeros -= chunk
                    size += chunk
                    continue

                data = self._data
                chunk = min(len(data), total - size)
                view[size:size + chunk] = data[:chunk]
                self._data = data[chunk:]
                size += chunk

                if not self._data:
                    self._scan()

        return size
