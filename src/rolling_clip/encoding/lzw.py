"""
GIF LZW Codec
=============

Variable-width LZW as used by GIF image data.

Codes are packed least-significant-bit first. The code width starts at
min_code_size + 1 bits, grows as the dictionary fills, and is capped at
12 bits; when the dictionary is full a clear code resets it.

The decoder is the inverse of lzw_encode and exists so encoded frames can
be verified without an external image library.
"""

from typing import Iterable, List

MAX_CODE_BITS = 12
MAX_CODES = 1 << MAX_CODE_BITS
SUB_BLOCK_SIZE = 255


class _BitWriter:
    """Little-endian bit packer."""

    __slots__ = ("_out", "_accumulator", "_bits")

    def __init__(self) -> None:
        self._out = bytearray()
        self._accumulator = 0
        self._bits = 0

    def write(self, code: int, width: int) -> None:
        self._accumulator |= code << self._bits
        self._bits += width
        while self._bits >= 8:
            self._out.append(self._accumulator & 0xFF)
            self._accumulator >>= 8
            self._bits -= 8

    def getvalue(self) -> bytes:
        if self._bits:
            return bytes(self._out) + bytes((self._accumulator & 0xFF,))
        return bytes(self._out)


def lzw_encode(indices: bytes, min_code_size: int) -> bytes:
    """
    Compress a stream of palette indices.

    Args:
        indices: One byte per pixel, each < 2**min_code_size
        min_code_size: Initial code size written before the data (2..8)

    Returns:
        Packed code stream, starting with a clear code and ending
        with an end-of-information code.
    """
    if not 2 <= min_code_size <= 8:
        raise ValueError(f"min_code_size must be in 2..8, got {min_code_size}")

    clear_code = 1 << min_code_size
    end_code = clear_code + 1

    writer = _BitWriter()
    code_size = min_code_size + 1
    next_code = end_code + 1
    table = {}

    writer.write(clear_code, code_size)

    data = memoryview(bytes(indices))
    if len(data) == 0:
        writer.write(end_code, code_size)
        return writer.getvalue()

    prefix = data[0]
    for pixel in data[1:]:
        key = (prefix << 8) | pixel
        code = table.get(key)
        if code is not None:
            prefix = code
            continue

        writer.write(prefix, code_size)
        if next_code >= (1 << code_size) and code_size < MAX_CODE_BITS:
            code_size += 1

        if next_code >= MAX_CODES - 1:
            writer.write(clear_code, code_size)
            table.clear()
            code_size = min_code_size + 1
            next_code = end_code + 1
        else:
            table[key] = next_code
            next_code += 1
        prefix = pixel

    writer.write(prefix, code_size)
    if next_code >= (1 << code_size) and code_size < MAX_CODE_BITS:
        code_size += 1
    writer.write(end_code, code_size)
    return writer.getvalue()


def lzw_decode(data: bytes, min_code_size: int) -> bytes:
    """
    Decompress a GIF LZW code stream back to palette indices.

    Args:
        data: Packed code stream (sub-blocks already joined)
        min_code_size: Initial code size from the image data header

    Returns:
        One byte per decoded pixel.

    Raises:
        ValueError: If the stream references an undefined code
    """
    clear_code = 1 << min_code_size
    end_code = clear_code + 1

    def fresh_table() -> List[bytes]:
        return [bytes((i,)) for i in range(clear_code)] + [b"", b""]

    table = fresh_table()
    code_size = min_code_size + 1
    previous = None
    out = bytearray()

    accumulator = 0
    bits = 0
    position = 0
    while True:
        while bits < code_size and position < len(data):
            accumulator |= data[position] << bits
            bits += 8
            position += 1
        if bits < code_size:
            break

        code = accumulator & ((1 << code_size) - 1)
        accumulator >>= code_size
        bits -= code_size

        if code == clear_code:
            table = fresh_table()
            code_size = min_code_size + 1
            previous = None
            continue
        if code == end_code:
            break

        if previous is None:
            if code >= clear_code:
                raise ValueError(f"first code after clear must be a literal, got {code}")
            entry = table[code]
        elif code < len(table):
            entry = table[code]
            if len(table) < MAX_CODES:
                table.append(previous + entry[:1])
        elif code == len(table):
            entry = previous + previous[:1]
            table.append(entry)
        else:
            raise ValueError(f"undefined LZW code {code} (table size {len(table)})")

        out.extend(entry)
        if previous is not None and len(table) == (1 << code_size) and code_size < MAX_CODE_BITS:
            code_size += 1
        previous = entry

    return bytes(out)


def pack_sub_blocks(data: bytes) -> bytes:
    """Split data into length-prefixed sub-blocks ending with a terminator."""
    out = bytearray()
    for start in range(0, len(data), SUB_BLOCK_SIZE):
        chunk = data[start:start + SUB_BLOCK_SIZE]
        out.append(len(chunk))
        out.extend(chunk)
    out.append(0)
    return bytes(out)


def unpack_sub_blocks(blocks: Iterable[int]) -> bytes:
    """Join length-prefixed sub-blocks, stopping at the terminator."""
    data = bytes(blocks)
    out = bytearray()
    position = 0
    while position < len(data):
        size = data[position]
        position += 1
        if size == 0:
            break
        out.extend(data[position:position + size])
        position += size
    return bytes(out)
