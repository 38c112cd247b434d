import re
from typing import Callable, Optional


ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
PAD_CHAR = "="
BLOCK_SIZE = 8

# Only these padding lengths line up 5-bit symbols with whole bytes
VALID_PADDING_LENGTHS = (0, 6, 4, 3, 1)

_BASE32_RE = re.compile(
    "(?P<codes>[A-Z2-7]*)(?P<padding>"
    + "|".join(f"{re.escape(PAD_CHAR)}{{{n}}}" for n in VALID_PADDING_LENGTHS)
    + ")"
)


class FormatError(ValueError):
    """Raised when a string is not valid RFC 4648 Base32."""


def decode_base32(base32_string: str, trace: Optional[Callable[[str, dict], None]] = None) -> bytes:
    """
    Decode an RFC 4648 Base32 string into raw bytes.

    Args:
        base32_string: upper-case Base32 text, padded to a multiple of 8 chars
        trace: optional callable receiving (event, details) for verbose output

    Returns:
        decoded bytes (empty for an empty string)
    """
    # 1. Block size check
    if len(base32_string) % BLOCK_SIZE != 0:
        raise FormatError(f"base32 string must be a multiple of {BLOCK_SIZE} characters in length")

    # 2. Alphabet + padding check
    match = _BASE32_RE.fullmatch(base32_string)
    if not match:
        raise FormatError("illegal format for base32 string")
    codes = match.group("codes")
    padding = match.group("padding")

    # 3. Push 5 bits per symbol, pop 8 bits per byte (MSB first)
    result = bytearray()
    bits = 0
    bit_count = 0
    for code in codes:
        bits = (bits << 5) | ALPHABET.index(code)
        bit_count += 5
        if bit_count >= 8:
            bit_count -= 8
            result.append(bits >> bit_count)
            bits &= (1 << bit_count) - 1

    # 4. Whatever is left must be exactly the zero fill of the last block
    padded_bits = 5 * (BLOCK_SIZE - len(padding)) % 8
    if bit_count != padded_bits:
        raise FormatError(f"leftover bit count {bit_count} does not match padding ({padded_bits} expected)")
    if bits != 0:
        raise FormatError(f"leftover bits {bits:0{bit_count}b} are not zero; the input was improperly padded")

    if trace:
        trace("decode_base32", {"base32_string": base32_string, "result": result.hex(), "length": len(result)})

    return bytes(result)
