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

r"""Sparse byte streams.

The audience of this package are those who handle a very broad address space
(*e.g.* a disk image, a sparse file) where data is present only in some sparse
parts, and want to treat it like ordinary streams without materializing the
empty parts.

Written parts are called `segments`, the unwritten parts in between are
called `holes`:

+---+---+---+---+---+---+---+---+---+---+---+---+
| 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9 | 10| 11|
+===+===+===+===+===+===+===+===+===+===+===+===+
|   |   |[A | B | C]|   |   |[x | y | z]|   |   |
+---+---+---+---+---+---+---+---+---+---+---+---+

Here the segments are ``[2, b'ABC']`` and ``[7, b'xyz']``, and the holes span
addresses 0 to 1, 5 to 6, and 10 to 11 if the logical size is 12.

:obj:`Buffer` holds segments in memory, merging any overlapping or touching
writes:

>>> buffer = Buffer()
>>> buffer.write_at(b'ABC', 2)
3
>>> buffer.write_at(b'xyz', 7)
3
>>> buffer.truncate(12)
12
>>> buffer.to_blocks()
[[2, b'ABC'], [7, b'xyz']]

Sparse data is read segment by segment, skipping holes explicitly:

>>> buffer.seek(0)
0
>>> buffer.next()
2
>>> buffer.read()
b'ABC'
>>> buffer.next()
2
>>> buffer.read()
b'xyz'
>>> buffer.next()
2
>>> buffer.next() is None
True

:obj:`ReadSeeker` and :obj:`StreamReader` present sparse data as dense data,
filling the holes with zeros or with the bytes of a fallback stream:

>>> buffer.seek(0)
0
>>> StreamReader(buffer).read()
b'\x00\x00ABC\x00\x00xyz\x00\x00'

:obj:`Decoder` does the opposite, turning long enough runs of zeros into holes,
and :func:`copy` transfers sparse data by seeking over the holes:

>>> import io
>>> decoder = Decoder(io.BytesIO(b'\0\0ABC\0\0xyz\0\0'), 2)
>>> sink = Buffer()
>>> copy(sink, decoder)
6
>>> sink.to_blocks()
[[2, b'ABC'], [7, b'xyz']]
>>> sink.size()
12
"""

__version__ = '0.1.0'

from .base import SEEK_CUR  # noqa: F401
from .base import SEEK_DATA  # noqa: F401
from .base import SEEK_END  # noqa: F401
from .base import SEEK_HOLE  # noqa: F401
from .base import SEEK_SET  # noqa: F401
from .base import BaseFinder  # noqa: F401
from .base import BaseReadFinder  # noqa: F401
from .base import BaseSparseReader  # noqa: F401
from .base import InvariantError  # noqa: F401
from .base import SeekEOFError  # noqa: F401
from .buffer import Buffer  # noqa: F401
from .decoder import Decoder  # noqa: F401
from .reader import ReadSeeker  # noqa: F401
from .reader import StreamReader  # noqa: F401
from .reader import ZeroReader  # noqa: F401
from .seek import data_boundaries  # noqa: F401
from .seek import resolve_seek  # noqa: F401
from .transfer import copy  # noqa: F401
from .transfer import read_blocks  # noqa: F401
