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

import io
import random
import re
from typing import Optional

import pytest
from _common import *

from sparseio import Decoder
from sparseio import StreamReader
from sparseio import read_blocks


class FailingStream:

    def __init__(self, chunks, error):
        self.chunks = list(chunks)
        self.error = error
        self.calls = 0

    def read(self, size):
        self.calls += 1
        if self.chunks:
            return self.chunks.pop(0)
        raise self.error


def dense_to_blocks(
    dense: bytes,
    min_hole: int,
) -> BlockList:

    blocks = []
    block_start = 0
    for match in re.finditer(b'\\x00{%d,}' % min_hole, dense):
        if block_start < match.start():
            blocks.append([block_start, dense[block_start:match.start()]])
        block_start = match.end()
    if block_start < len(dense):
        blocks.append([block_start, dense[block_start:]])
    return blocks


def create_random_dense(
    rng: random.Random,
    max_runs: int = 12,
    max_run_size: int = 9,
) -> bytes:

    dense = bytearray()
    for _ in range(rng.randint(0, max_runs)):
        if rng.random() < 0.5:
            dense.extend(bytes(rng.randint(1, max_run_size)))
        else:
            dense.extend(rng.randint(1, 255) for _ in range(rng.randint(1, max_run_size)))
    return bytes(dense)


class TestDecoder(BaseSparseReaderSuite):

    CHUNK_SIZE: int = io.DEFAULT_BUFFER_SIZE

    def create(
        self,
        blocks: BlockList,
        size: Optional[Address] = None,
    ) -> Decoder:

        dense = blocks_to_bytes(blocks, size)
        return Decoder(io.BytesIO(dense), self.MIN_HOLE, chunk_size=self.CHUNK_SIZE)


class TestDecoder_chunk1(TestDecoder):
    CHUNK_SIZE: int = 1


class TestDecoder_chunk3(TestDecoder):
    CHUNK_SIZE: int = 3


def test_example():
    decoder = Decoder(io.BytesIO(b'AB\0C\0\0\0\0DE\0\0'), 2)
    assert decoder.min_hole == 2
    assert decoder.read() == b'AB\0C'
    assert decoder.next() == 4
    assert decoder.read() == b'DE'
    assert decoder.next() == 2
    assert decoder.read() == b''
    assert decoder.next() is None


def test_short_zeros_as_data():
    dense = b'A\0B\0\0C\0\0\0D'
    decoder = Decoder(io.BytesIO(dense), 4)
    assert decoder.read() == dense
    assert decoder.next() is None


def test_short_zeros_bounded():
    decoder = Decoder(io.BytesIO(b'A\0\0\0\0\0B'), 6)
    assert decoder.read(2) == b'A\0'
    assert decoder.read(2) == b'\0\0'
    assert decoder.read(2) == b'\0\0'
    assert decoder.read(2) == b'B'
    assert decoder.read(2) == b''
    assert decoder.next() is None


def test_threshold():
    dense = b'A\0\0\0B'
    assert list(read_blocks(Decoder(io.BytesIO(dense), 3))) == [[0, b'A'], [4, b'B']]
    assert list(read_blocks(Decoder(io.BytesIO(dense), 4))) == [[0, dense]]


def test_next_within_data():
    decoder = Decoder(io.BytesIO(b'ABC\0\0\0\0DEF'), 2)
    assert decoder.read(1) == b'A'
    assert decoder.next() == 0
    assert decoder.read() == b'BC'
    assert decoder.next() == 4
    assert decoder.read() == b'DEF'


def test_only_zeros():
    decoder = Decoder(io.BytesIO(bytes(100)), 8, chunk_size=7)
    assert decoder.read() == b''
    assert decoder.next() == 100
    assert decoder.read() == b''
    assert decoder.next() is None


def test_empty():
    decoder = Decoder(io.BytesIO(b''), 1)
    assert decoder.read() == b''
    assert decoder.next() is None
    assert decoder.next() is None


def test_invalid():
    with pytest.raises(ValueError, match='minimum hole'):
        Decoder(io.BytesIO(b''), 0)
    with pytest.raises(ValueError, match='chunk size'):
        Decoder(io.BytesIO(b''), 1, chunk_size=0)


def test_stream_error_sticky():
    error = OSError('broken stream')
    stream = FailingStream([b'ABC'], error)
    decoder = Decoder(stream, 2)

    assert decoder.read(2) == b'AB'
    assert decoder.read(10) == b'C'
    for _ in range(MAX_TIMES):
        with pytest.raises(OSError) as info:
            decoder.read(10)
        assert info.value is error
        with pytest.raises(OSError) as info:
            decoder.next()
        assert info.value is error
    assert stream.calls == 2


def test_stream_error_after_hole():
    error = OSError('broken stream')
    decoder = Decoder(FailingStream([b'AB\0\0\0'], error), 2)
    assert decoder.read() == b'AB'
    assert decoder.next() == 3
    with pytest.raises(OSError) as info:
        decoder.read()
    assert info.value is error


def test_stream_error_initial():
    error = OSError('broken stream')
    decoder = Decoder(FailingStream([], error), 2)
    with pytest.raises(OSError):
        decoder.read(1)
    with pytest.raises(OSError):
        decoder.next()


def test_round_trip():
    rng = random.Random(0xDEC0DE)
    for _ in range(MAX_TIMES * 20):
        dense = create_random_dense(rng)
        for min_hole in (1, 2, 3, 5, 8):
            for chunk_size in (1, 4, 1024):
                decoder = Decoder(io.BytesIO(dense), min_hole, chunk_size=chunk_size)
                assert StreamReader(decoder).read() == dense


def test_round_trip_blocks():
    rng = random.Random(0xB10C)
    for _ in range(MAX_TIMES * 20):
        dense = create_random_dense(rng)
        for min_hole in (1, 2, 4):
            decoder = Decoder(io.BytesIO(dense), min_hole, chunk_size=5)
            assert list(read_blocks(decoder)) == dense_to_blocks(dense, min_hole)


def test_stream_error_releases_buffer():
    error = OSError('broken stream')
    decoder = Decoder(FailingStream([b'ABC'], error), 2)

    buffer = bytearray(10)
    assert decoder.readinto(buffer) == 3
    del buffer[3:]
    assert buffer == b'ABC'
    with pytest.raises(OSError) as info:
        decoder.read(4)
    assert info.value is error
