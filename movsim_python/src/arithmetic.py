# arithmetic.py

# Copyright (C) 2024 The Movsim authors. License: GNU GPL Version 3
# See README, LICENSE, and https://www.gnu.org/licenses/gpl-3.0.html

# This file is part of Movsim. Movsim is free software: you can
# redistribute it and/or modify it under the terms of the GNU General
# Public License as published by the Free Software Foundation, either
# version 3 of the License, or (at your option) any later version.
# Movsim is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details. You should have received
# a copy of the GNU General Public License along with Movsim. If
# not, see <https://www.gnu.org/licenses/>.

# ------------------------------------------------------------------------
# arithmetic.py defines the word representation used by the simulator:
# hex words (4 digits), hex bytes (2 digits), their validation and
# conversion, and 16-bit address arithmetic.
# ------------------------------------------------------------------------

import random
import re

import common
import architecture as arch

word16mask = 0x0000FFFF
byte8mask = 0x000000FF

# ------------------------------------------------------------------------
# Ensuring and asserting validity of words
# ------------------------------------------------------------------------

# A word is a nonnegative integer x with 0 <= x < 2^16. Addresses are
# words; if a computed address exceeds this range it wraps around,
# which is implemented by anding with word16mask.

def limit16(x):
    return x & word16mask

def limit8(x):
    return x & byte8mask

def assert16(x):
    if 0 <= x < 2**16:
        return x
    else:
        common.indicate_error(f"assert16 fail: {x}")
        return x & 0x0000FFFF

def bin_add(*xs):
    r = 0
    for x in xs:
        r += x
    return r & 0x0000FFFF

# ------------------------------------------------------------------------
# Hexadecimal notation
# ------------------------------------------------------------------------

# On input, hex digits may be in either case; the canonical form held
# in registers and memory is upper case. The parsers are
# applied with fullmatch.

hex_digit = ['0', '1', '2', '3', '4', '5', '6', '7',
             '8', '9', 'A', 'B', 'C', 'D', 'E', 'F']

hex4_parser = re.compile(r"[0-9A-Fa-f]{4}")
hex2_parser = re.compile(r"[0-9A-Fa-f]{2}")

def is_hex4(xs):
    return isinstance(xs, str) and hex4_parser.fullmatch(xs) is not None

def is_hex2(xs):
    return isinstance(xs, str) and hex2_parser.fullmatch(xs) is not None

def split_word(x):
    y = assert16(x)
    s = y & 0x000F
    y = y >> 4
    r = y & 0x000F
    y = y >> 4
    q = y & 0x000F
    y = y >> 4
    p = y & 0x000F
    return [p, q, r, s]

def word_to_hex4(x):
    p, q, r, s = split_word(limit16(x))
    return hex_digit[p] + hex_digit[q] + hex_digit[r] + hex_digit[s]

def byte_to_hex2(x):
    y = limit8(x)
    return hex_digit[y >> 4] + hex_digit[y & 0x000F]

def hex4_to_word(h):
    return int(canonical_hex4(h), 16)

def hex2_to_byte(h):
    return int(canonical_hex2(h), 16)

def canonical_hex4(xs, field="value"):
    """Return xs in canonical upper case form, or raise ValidationError
    if it is not exactly four hex digits."""
    if not is_hex4(xs):
        raise common.ValidationError(
            f"{field} must be a 4-digit hexadecimal number, got {xs!r}",
            field, xs)
    return xs.upper()

def canonical_hex2(xs, field="value"):
    if not is_hex2(xs):
        raise common.ValidationError(
            f"{field} must be a 2-digit hexadecimal number, got {xs!r}",
            field, xs)
    return xs.upper()

# ------------------------------------------------------------------------
# Words and bytes
# ------------------------------------------------------------------------

# A word is stored in memory little endian: the low byte at the lower
# address.

def word_to_bytes(h):
    """Split hex word h into its (low, high) hex bytes."""
    x = hex4_to_word(h)
    return byte_to_hex2(x & 0x00FF), byte_to_hex2(x >> 8)

def bytes_to_word(lo, hi):
    return word_to_hex4((hex2_to_byte(hi) << 8) | hex2_to_byte(lo))

# ------------------------------------------------------------------------
# Random words
# ------------------------------------------------------------------------

def random_hex4(rng=None):
    r = rng if rng is not None else random
    x = r.randint(0, word16mask)
    common.mode.devlog(f"random_hex4 {word_to_hex4(x)}")
    return word_to_hex4(x)

def show_word(h):
    if not is_hex4(h):
        return f"word {h!r} is invalid"
    x = int(h, 16)
    return f"{h.upper()} bin={x}"

def zero_word_p(h):
    return h.upper() == arch.zero_word
