#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Content fingerprints for translation cache keys.
A 32-bit rolling hash over UTF-16 code units rendered in base 36, so keys stay
compatible with stores written by earlier versions of the extension.
"""

import struct

DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _utf16_code_units(text):
    data = text.encode("utf-16-le", "surrogatepass")
    return struct.unpack(f"<{len(data) // 2}H", data)


def _to_int32(value):
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def to_base36(number: int) -> str:
    """Render a signed integer in base 36 with a leading '-' for negatives."""
    if number == 0:
        return "0"
    sign = "-" if number < 0 else ""
    number = abs(number)
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(DIGITS[remainder])
    return sign + "".join(reversed(digits))


def fingerprint(text: str) -> str:
    """Compute the fingerprint of a text.

    Deterministic for equal inputs; distinct inputs may collide.

    Args:
        text: Source text

    Returns:
        Base 36 rendering of the signed 32-bit hash
    """
    h = 0
    for unit in _utf16_code_units(text):
        h = _to_int32((h << 5) - h + unit)
    return to_base36(h)


def cache_key(text: str) -> str:
    """Storage key of the cache entry for a text."""
    return "cache_" + fingerprint(text)
