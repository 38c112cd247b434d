import time
from typing import Callable, Optional

from cryptography.hazmat.primitives import hashes, hmac

from totp_config import Configuration, secret_to_bytes


Trace = Callable[[str, dict], None]

COUNTER_BYTES = 8

HASH_ALGORITHMS = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
    "sha512": hashes.SHA512,
}


def current_time_seconds() -> int:
    return int(time.time())


def derive_counter(config: Configuration, time_seconds: int, trace: Optional[Trace] = None) -> bytes:
    """
    Turn a Unix time into the rfc6238 time step counter.

    Args:
        config: validated configuration (t0, period)
        time_seconds: seconds since 1970-01-01T00:00:00Z, not before config.t0

    Returns:
        8-byte big-endian counter
    """
    if time_seconds < config.t0:
        raise ValueError(f"time {time_seconds} precedes t0 {config.t0}")

    periods = (time_seconds - config.t0) // config.period
    if periods >= 1 << (8 * COUNTER_BYTES):
        raise OverflowError(f"time step counter {periods} does not fit in {COUNTER_BYTES} bytes")

    if trace:
        trace("derive_counter", {"time": time_seconds, "periods": periods, "counter": f"{periods:016X}"})

    return periods.to_bytes(COUNTER_BYTES, "big")


def compute_digest(algorithm: str, key: bytes, message: bytes) -> bytes:
    """HMAC (rfc2104) of message under key with the named hash."""
    h = hmac.HMAC(key, HASH_ALGORITHMS[algorithm]())
    h.update(message)
    return h.finalize()


def truncate(config: Configuration, digest: bytes, trace: Optional[Trace] = None) -> str:
    """
    Dynamic truncation from rfc4226 section 5.3.

    Args:
        config: validated configuration (digits)
        digest: HMAC output

    Returns:
        decimal code, exactly config.digits characters
    """
    if not digest:
        raise ValueError("digest is empty")

    # 1. Low 4 bits of the last byte pick a 4-byte window
    offset = digest[-1] & 0x0F
    if offset + 4 > len(digest):
        raise ValueError(f"offset {offset} leaves fewer than 4 bytes in a {len(digest)}-byte digest")

    # 2. 31-bit big-endian value (top bit cleared)
    value = int.from_bytes(digest[offset:offset + 4], "big") & 0x7FFFFFFF

    # 3. Keep the low-order decimal digits
    code = str(value % 10 ** config.digits).zfill(config.digits)

    if trace:
        trace("truncate", {"digest": digest.hex(), "offset": offset, "value": value, "code": code})

    return code


def generate_code(config: Configuration, time_seconds: Optional[int] = None, trace: Optional[Trace] = None) -> str:
    """
    Generate the TOTP code for a point in time

    Args:
        config: validated configuration
        time_seconds: Unix time; defaults to now

    Returns:
        config.digits-character TOTP code as string
    """
    if time_seconds is None:
        time_seconds = current_time_seconds()

    counter = derive_counter(config, time_seconds, trace=trace)
    key = secret_to_bytes(config.secret, config.secret_encoding, trace=trace)
    digest = compute_digest(config.algorithm, key, counter)
    if trace:
        trace("generate_code", {"algorithm": config.algorithm, "digest": digest.hex()})
    return truncate(config, digest, trace=trace)


def seconds_remaining(config: Configuration, time_seconds: int) -> int:
    """Seconds until the code for time_seconds rolls over."""
    return config.period - (time_seconds - config.t0) % config.period
