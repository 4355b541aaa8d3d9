"""Register value conversion between raw 16-bit words and typed values.

Pure functions, no I/O.  Words are the values pymodbus returns for each
register: unsigned integers 0..0xFFFF, already in big-endian byte order.

Amtron conventions:
  - 32-bit values (uint32, int32, float32) are sent low word first:
    word[0] holds the low 16 bits, word[1] the high 16 bits.
  - float32 is IEEE-754 big-endian once the two words are swapped back,
    so ``[0x0000, 0x41A0]`` is ``41 A0 00 00`` = 20.0.
  - ASCII strings have the two bytes inside every word reversed,
    so ``[0x3256, 0x312E]`` is ``56 32 2E 31`` = "V2.1".
"""

from __future__ import annotations

import math
import struct
from collections.abc import Sequence

from pyamtron.exceptions import DecodeError, EncodeError
from pyamtron.registers.amtron import WORDS_PER_TYPE, DataType, RegisterDefinition

_INT_LIMITS: dict[DataType, tuple[int, int]] = {
    DataType.UINT16: (0, 0xFFFF),
    DataType.INT16: (-0x8000, 0x7FFF),
    DataType.UINT32: (0, 0xFFFFFFFF),
    DataType.INT32: (-0x80000000, 0x7FFFFFFF),
}


def _check_words(data_type: DataType, words: Sequence[int]) -> None:
    expected = WORDS_PER_TYPE.get(data_type)
    if expected is not None and len(words) != expected:
        raise DecodeError(f"{data_type} expects {expected} word(s), got {len(words)}")
    if not words:
        raise DecodeError(f"{data_type} expects at least one word")
    for word in words:
        if not isinstance(word, int) or not 0 <= word <= 0xFFFF:
            raise DecodeError(f"Register word out of range: {word!r}")


def decode_registers(data_type: DataType | str, words: Sequence[int]) -> int | float | str:
    """Convert raw register words to a typed value.

    Args:
        data_type: Wire data type of the register.
        words: Register words as received, in wire order.

    Returns:
        int for integer types, float for float32, str for ascii.

    Raises:
        DecodeError: Unknown data type, wrong word count or invalid words.
    """
    try:
        data_type = DataType(data_type)
    except ValueError:
        raise DecodeError(f"Unknown data type: {data_type!r}") from None

    _check_words(data_type, words)

    if data_type == DataType.UINT16:
        return words[0]

    if data_type == DataType.INT16:
        value = words[0]
        return value - 0x10000 if value > 0x7FFF else value

    if data_type in (DataType.UINT32, DataType.INT32):
        low, high = words
        value = (high << 16) | low
        if data_type == DataType.INT32 and value > 0x7FFFFFFF:
            value -= 0x100000000
        return value

    if data_type == DataType.FLOAT32:
        low, high = words
        result: float = struct.unpack(">f", struct.pack(">HH", high, low))[0]
        return result

    # ASCII: un-reverse the bytes of each word
    raw = b"".join(struct.pack("<H", word) for word in words)
    try:
        text = raw.decode("ascii")
    except UnicodeDecodeError as err:
        raise DecodeError(f"Non-ASCII bytes in string register: {raw!r}") from err
    return text.replace("\x00", "").strip()


def encode_value(
    data_type: DataType | str,
    value: int | float,
) -> list[int]:
    """Convert a typed value to register words in wire order.

    Raises:
        EncodeError: The value does not fit the data type, or the type
            cannot be written.
    """
    try:
        data_type = DataType(data_type)
    except ValueError:
        raise EncodeError(f"Unknown data type: {data_type!r}") from None

    if data_type == DataType.ASCII:
        raise EncodeError("ascii registers cannot be written")

    if isinstance(value, bool):
        value = int(value)

    if data_type == DataType.FLOAT32:
        if not isinstance(value, (int, float)):
            raise EncodeError(f"float32 expects a number, got {type(value).__name__}")
        try:
            packed = struct.pack(">f", float(value))
        except (OverflowError, struct.error) as err:
            raise EncodeError(f"{value!r} does not fit in float32") from err
        high, low = struct.unpack(">HH", packed)
        return [low, high]

    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise EncodeError(f"{data_type} expects an integer, got {value!r}")
        value = int(value)
    if not isinstance(value, int):
        raise EncodeError(f"{data_type} expects an integer, got {type(value).__name__}")

    low_limit, high_limit = _INT_LIMITS[data_type]
    if not low_limit <= value <= high_limit:
        raise EncodeError(f"{value} out of range for {data_type} ({low_limit}..{high_limit})")

    if data_type in (DataType.UINT16, DataType.INT16):
        return [value & 0xFFFF]

    unsigned = value & 0xFFFFFFFF
    return [unsigned & 0xFFFF, (unsigned >> 16) & 0xFFFF]


def decode(reg: RegisterDefinition, words: Sequence[int]) -> int | float | str:
    """Decode *words* read from *reg*."""
    if len(words) != reg.word_count:
        raise DecodeError(f"{reg.name} expects {reg.word_count} word(s), got {len(words)}")
    return decode_registers(reg.data_type, words)


def encode(reg: RegisterDefinition, value: int | float) -> list[int]:
    """Encode *value* for writing to *reg*."""
    words = encode_value(reg.data_type, value)
    if len(words) != reg.word_count:
        raise EncodeError(f"{reg.name} expects {reg.word_count} word(s), got {len(words)}")
    return words


__all__ = ["decode", "decode_registers", "encode", "encode_value"]
