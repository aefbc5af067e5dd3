"""Arbitrary-precision signed integers built from scratch on 32-bit limbs.

The `BigInteger` type is the numeric foundation for everything else in rsacore. A value is a sign in {-1, 0, 1} and a
tuple of base 2**32 limbs, least significant limb first. The representation is always canonical: there are no high
zero limbs and the sign is 0 exactly when the magnitude is empty. Values never change after construction; every
operation hands back a new value.

Python's own `int` is only used at the edges, to move single limbs around and to convert to and from host integers.
All multi-limb arithmetic (schoolbook addition, subtraction and multiplication, Knuth's Algorithm D for division,
Euclid for gcd, chunked base conversion) happens on the limb tuples below.

Typical usage example:

    a = BigInteger.parse("123456789012345678901234567890")
    b = a * a - 1
    q, r = b.div_rem(97)
    print(str(q), r.to_string(16))
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import functools
import secrets
from typing import Protocol

from rsacore import errors

LIMB_BITS: int = 32
BASE: int = 1 << LIMB_BITS
MASK: int = BASE - 1
_DIGITS: str = "0123456789abcdefghijklmnopqrstuvwxyz"

Magnitude = tuple[int, ...]


class RandomSource(Protocol):
    """Anything that can hand out uniformly random bits, e.g. `secrets.SystemRandom` or `random.Random`."""

    def getrandbits(self, k: int) -> int:
        ...


# Shared OS-backed source used whenever no `rng` is given.
_SYSTEM_RANDOM: RandomSource = secrets.SystemRandom()


def _strip(limbs: list[int] | tuple[int, ...]) -> Magnitude:
    """Drops high zero limbs."""
    end = len(limbs)
    while end and limbs[end - 1] == 0:
        end -= 1
    return tuple(limbs[:end])


def _mag_from_int(value: int) -> Magnitude:
    res = []
    while value:
        res.append(value & MASK)
        value >>= LIMB_BITS
    return tuple(res)


def _mag_to_int(mag: Magnitude) -> int:
    value = 0
    for limb in reversed(mag):
        value = (value << LIMB_BITS) | limb
    return value


def _cmp_mag(a: Magnitude, b: Magnitude) -> int:
    """Three-way comparison of two magnitudes."""
    if len(a) != len(b):
        return -1 if len(a) < len(b) else 1
    for i in range(len(a) - 1, -1, -1):
        if a[i] != b[i]:
            return -1 if a[i] < b[i] else 1
    return 0


def _add_mag(a: Magnitude, b: Magnitude) -> Magnitude:
    if len(a) < len(b):
        a, b = b, a
    res = []
    carry = 0
    for i, bi in enumerate(b):
        s = a[i] + bi + carry
        res.append(s & MASK)
        carry = s >> LIMB_BITS
    for i in range(len(b), len(a)):
        s = a[i] + carry
        res.append(s & MASK)
        carry = s >> LIMB_BITS
    if carry:
        res.append(carry)
    return tuple(res)


def _sub_mag(a: Magnitude, b: Magnitude) -> Magnitude:
    """Subtracts `b` from `a`. Requires a >= b."""
    res = []
    borrow = 0
    for i, ai in enumerate(a):
        d = ai - borrow - (b[i] if i < len(b) else 0)
        if d < 0:
            d += BASE
            borrow = 1
        else:
            borrow = 0
        res.append(d)
    return _strip(res)


def _mul_mag(a: Magnitude, b: Magnitude) -> Magnitude:
    """Schoolbook multiplication."""
    if not a or not b:
        return ()
    res = [0] * (len(a) + len(b))
    for i, ai in enumerate(a):
        if ai == 0:
            continue
        carry = 0
        k = i
        for bj in b:
            t = res[k] + ai * bj + carry
            res[k] = t & MASK
            carry = t >> LIMB_BITS
            k += 1
        res[k] = carry
    return _strip(res)


def _mul_small_add(a: Magnitude, m: int, add: int) -> Magnitude:
    """Computes a * m + add for 0 < m < BASE and 0 <= add < BASE."""
    res = []
    carry = add
    for ai in a:
        t = ai * m + carry
        res.append(t & MASK)
        carry = t >> LIMB_BITS
    if carry:
        res.append(carry)
    return tuple(res)


def _divmod_small(a: Magnitude, d: int) -> tuple[Magnitude, int]:
    """Divides a magnitude by a single limb `d`, 0 < d < BASE."""
    q = [0] * len(a)
    rem = 0
    for i in range(len(a) - 1, -1, -1):
        q[i], rem = divmod((rem << LIMB_BITS) | a[i], d)
    return _strip(q), rem


def _shl_mag(a: Magnitude, bits: int) -> Magnitude:
    if not a:
        return ()
    limbs, bits = divmod(bits, LIMB_BITS)
    res = [0] * limbs
    if bits == 0:
        res.extend(a)
        return tuple(res)
    carry = 0
    for ai in a:
        t = (ai << bits) | carry
        res.append(t & MASK)
        carry = t >> LIMB_BITS
    if carry:
        res.append(carry)
    return tuple(res)


def _shr_mag(a: Magnitude, bits: int) -> Magnitude:
    limbs, bits = divmod(bits, LIMB_BITS)
    if limbs >= len(a):
        return ()
    a = a[limbs:]
    if bits == 0:
        return tuple(a)
    res = []
    for i, ai in enumerate(a):
        hi = a[i + 1] if i + 1 < len(a) else 0
        res.append(((ai >> bits) | (hi << (LIMB_BITS - bits))) & MASK)
    return _strip(res)


def _divmod_mag(a: Magnitude, b: Magnitude) -> tuple[Magnitude, Magnitude]:
    """Long division of magnitudes, following Knuth's Algorithm D (TAOCP Vol. 2, 4.3.1).

    Args:
        a: The dividend.
        b: The divisor. Must be non-empty.

    Returns:
        The quotient and remainder magnitudes.
    """
    if _cmp_mag(a, b) < 0:
        return (), a
    if len(b) == 1:
        q, r = _divmod_small(a, b[0])
        return q, ((r,) if r else ())
    # Normalize so the divisor's top limb has its high bit set; qhat is then off by at most two.
    shift = LIMB_BITS - b[-1].bit_length()
    v = _shl_mag(b, shift)
    u = list(_shl_mag(a, shift))
    u.extend([0] * (len(a) + 1 - len(u)))
    n = len(v)
    m = len(u) - n
    q = [0] * m
    vtop, vnext = v[-1], v[-2]
    for j in range(m - 1, -1, -1):
        qhat, rhat = divmod((u[j + n] << LIMB_BITS) | u[j + n - 1], vtop)
        while qhat >= BASE or qhat * vnext > ((rhat << LIMB_BITS) | u[j + n - 2]):
            qhat -= 1
            rhat += vtop
            if rhat >= BASE:
                break
        borrow = 0
        carry = 0
        for i in range(n):
            p = qhat * v[i] + carry
            carry = p >> LIMB_BITS
            t = u[i + j] - (p & MASK) - borrow
            if t < 0:
                u[i + j] = t + BASE
                borrow = 1
            else:
                u[i + j] = t
                borrow = 0
        t = u[j + n] - carry - borrow
        if t < 0:
            # qhat was one too large: add the divisor back.
            u[j + n] = t + BASE
            qhat -= 1
            carry = 0
            for i in range(n):
                s = u[i + j] + v[i] + carry
                u[i + j] = s & MASK
                carry = s >> LIMB_BITS
            u[j + n] = (u[j + n] + carry) & MASK
        else:
            u[j + n] = t
        q[j] = qhat
    return _strip(q), _shr_mag(_strip(u[:n]), shift)


@functools.lru_cache(maxsize=None)
def _chunking(base: int) -> tuple[int, int]:
    """Largest digit count `k` such that base**k still fits a single limb, along with base**k."""
    k, power = 1, base
    while power * base <= MASK:
        k += 1
        power *= base
    return k, power


def _format_small(value: int, base: int) -> str:
    if value == 0:
        return "0"
    out = []
    while value:
        value, d = divmod(value, base)
        out.append(_DIGITS[d])
    return "".join(reversed(out))


@functools.total_ordering
class BigInteger:
    """An immutable arbitrary-precision signed integer.

    Supports the usual arithmetic operators against other `BigInteger` values and plain `int` values. The operators
    `//`, `%` and `divmod` follow Python's floor semantics, so `x % m` always lies in `[0, m)` for a positive `m`; the
    truncating variants requested by number-theory texts are available as `quotient`, `remainder` and `div_rem`.

    Attributes:
        sign: -1, 0 or 1.
    """

    __slots__ = ("_sign", "_mag")

    _sign: int
    _mag: Magnitude

    def __init__(self, value: "int | str | BigInteger" = 0) -> None:
        """Builds a BigInteger.

        Args:
            value: A Python int, a decimal string (see `parse`) or another BigInteger.

        Raises:
            InvalidFormat: If `value` is a malformed string.
            TypeError: If `value` is of an unsupported type.
        """
        if isinstance(value, BigInteger):
            sign, mag = value._sign, value._mag
        elif isinstance(value, int):
            sign, mag = (value > 0) - (value < 0), _mag_from_int(abs(value))
        elif isinstance(value, str):
            parsed = BigInteger.parse(value)
            sign, mag = parsed._sign, parsed._mag
        else:
            raise TypeError(f"Cannot build a BigInteger from {type(value).__name__}.")
        object.__setattr__(self, "_sign", sign)
        object.__setattr__(self, "_mag", mag)

    @classmethod
    def _make(cls, sign: int, mag: Magnitude) -> "BigInteger":
        obj = object.__new__(cls)
        object.__setattr__(obj, "_sign", sign if mag else 0)
        object.__setattr__(obj, "_mag", mag)
        return obj

    @classmethod
    def of(cls, value: "int | str | BigInteger") -> "BigInteger":
        """Like the constructor, but returns `value` itself when it already is a BigInteger."""
        if isinstance(value, BigInteger):
            return value
        return cls(value)

    def __setattr__(self, name, value):
        raise AttributeError("BigInteger is immutable.")

    def __delattr__(self, name):
        raise AttributeError("BigInteger is immutable.")

    def __reduce__(self):
        return BigInteger, (int(self),)

    @property
    def sign(self) -> int:
        return self._sign

    # Parsing and formatting

    @classmethod
    def parse(cls, text: str, base: int = 10) -> "BigInteger":
        """Parses a textual integer.

        Accepts surrounding whitespace, one optional leading `+` or `-` and at least one digit valid in `base`.
        Letters are case-insensitive. Nothing else (no underscores, no prefixes such as `0x`) is accepted.

        Args:
            text: The text to parse.
            base: The radix, 2 to 36. Defaults to 10.

        Returns:
            The parsed value.

        Raises:
            InvalidFormat: If `text` is not a valid integer in `base`.
            ValueError: If `base` is out of range.
        """
        if not 2 <= base <= 36:
            raise ValueError("Base must be in range [2, 36].")
        if not isinstance(text, str):
            raise TypeError("Only strings can be parsed.")
        body = text.strip()
        sign = 1
        if body[:1] in ("+", "-"):
            sign = -1 if body[0] == "-" else 1
            body = body[1:]
        if not body:
            raise errors.InvalidFormat(f"Invalid integer literal: {text!r}.")
        digits = []
        for ch in body.lower():
            d = _DIGITS.find(ch)
            if d < 0 or d >= base:
                raise errors.InvalidFormat(f"Invalid integer literal for base {base}: {text!r}.")
            digits.append(d)
        chunk, _ = _chunking(base)
        mag: Magnitude = ()
        for start in range(0, len(digits), chunk):
            group = digits[start:start + chunk]
            value = 0
            for d in group:
                value = value * base + d
            mag = _mul_small_add(mag, base**len(group), value)
        return cls._make(sign, mag)

    def to_string(self, base: int = 10) -> str:
        """Formats the value in the given radix (2 to 36), lower-case letters, leading `-` when negative."""
        if not 2 <= base <= 36:
            raise ValueError("Base must be in range [2, 36].")
        if not self._sign:
            return "0"
        chunk, power = _chunking(base)
        pieces = []
        mag = self._mag
        while mag:
            mag, rem = _divmod_small(mag, power)
            pieces.append(rem)
        out = [_format_small(pieces[-1], base)]
        for piece in reversed(pieces[:-1]):
            out.append(_format_small(piece, base).rjust(chunk, "0"))
        return ("-" if self._sign < 0 else "") + "".join(out)

    def __str__(self) -> str:
        return self.to_string(10)

    def __repr__(self) -> str:
        return f"BigInteger({self})"

    @classmethod
    def from_bytes(cls, data: bytes) -> "BigInteger":
        """Reads a big-endian unsigned integer, the usual octet-string-to-integer primitive."""
        step = LIMB_BITS // 8
        limbs = []
        for end in range(len(data), 0, -step):
            limbs.append(int.from_bytes(data[max(0, end - step):end], byteorder="big"))
        return cls._make(1, _strip(limbs))

    def to_bytes(self, length: int | None = None) -> bytes:
        """Writes the value as a big-endian unsigned integer.

        Args:
            length: Target length in bytes. Defaults to the minimal length (zero bytes for zero).

        Returns:
            The representative bytes.

        Raises:
            ValueError: If the value is negative.
            OverflowError: If the value does not fit in `length` bytes.
        """
        if self._sign < 0:
            raise ValueError("Cannot marshal a negative value.")
        size = (self.bit_length() + 7) // 8
        if length is None:
            length = size
        elif length < size:
            raise OverflowError("Value too large for the requested length.")
        raw = b"".join(limb.to_bytes(LIMB_BITS // 8, byteorder="big") for limb in reversed(self._mag))
        return raw.lstrip(b"\x00").rjust(length, b"\x00")

    # Random generation

    @classmethod
    def random_bits(cls, bits: int, rng: RandomSource | None = None) -> "BigInteger":
        """Uniformly random non-negative value below 2**bits."""
        if bits < 0:
            raise ValueError("Number of bits must be non-negative.")
        rng = rng or _SYSTEM_RANDOM
        limbs = []
        while bits > 0:
            take = min(LIMB_BITS, bits)
            limbs.append(rng.getrandbits(take))
            bits -= take
        return cls._make(1, _strip(limbs))

    @classmethod
    def random_below(cls, upper: "int | BigInteger", rng: RandomSource | None = None) -> "BigInteger":
        """Uniformly random value in [0, upper), by rejection sampling.

        Raises:
            ValueError: If `upper` is not positive.
        """
        upper = cls.of(upper)
        if upper._sign <= 0:
            raise ValueError("Upper bound must be positive.")
        k = upper.bit_length()
        while True:
            r = cls.random_bits(k, rng)
            if r < upper:
                return r

    @classmethod
    def random_range(cls, low: "int | BigInteger", high: "int | BigInteger",
                     rng: RandomSource | None = None) -> "BigInteger":
        """Uniformly random value in [low, high], both ends inclusive."""
        low, high = cls.of(low), cls.of(high)
        if high < low:
            raise ValueError("Empty range.")
        return low + cls.random_below(high - low + 1, rng)

    # Bit helpers

    def bit_length(self) -> int:
        """Number of bits in the magnitude, 0 for zero."""
        if not self._mag:
            return 0
        return (len(self._mag) - 1) * LIMB_BITS + self._mag[-1].bit_length()

    def test_bit(self, index: int) -> bool:
        """Whether bit `index` of the magnitude is set."""
        if index < 0:
            raise ValueError("Bit index must be non-negative.")
        limb, offset = divmod(index, LIMB_BITS)
        return limb < len(self._mag) and bool((self._mag[limb] >> offset) & 1)

    def is_odd(self) -> bool:
        return bool(self._mag) and bool(self._mag[0] & 1)

    def is_even(self) -> bool:
        return not self.is_odd()

    def trailing_zeros(self) -> int:
        """Number of trailing zero bits of the magnitude, 0 for zero."""
        for i, limb in enumerate(self._mag):
            if limb:
                return i * LIMB_BITS + ((limb & -limb).bit_length() - 1)
        return 0

    def __lshift__(self, bits: int) -> "BigInteger":
        if not isinstance(bits, int):
            return NotImplemented
        if bits < 0:
            raise ValueError("Negative shift count.")
        return BigInteger._make(self._sign, _shl_mag(self._mag, bits))

    def __rshift__(self, bits: int) -> "BigInteger":
        if not isinstance(bits, int):
            return NotImplemented
        if bits < 0:
            raise ValueError("Negative shift count.")
        if self._sign < 0:
            raise ValueError("Right shifts are only supported for non-negative values.")
        return BigInteger._make(self._sign, _shr_mag(self._mag, bits))

    # Conversions

    def __bool__(self) -> bool:
        return self._sign != 0

    def __int__(self) -> int:
        return self._sign * _mag_to_int(self._mag)

    __index__ = __int__

    def __hash__(self) -> int:
        return hash(int(self))

    # Comparison

    def _compare(self, other: "BigInteger") -> int:
        if self._sign != other._sign:
            return -1 if self._sign < other._sign else 1
        c = _cmp_mag(self._mag, other._mag)
        return c if self._sign >= 0 else -c

    def __eq__(self, other) -> bool:
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self._sign == other._sign and self._mag == other._mag

    def __lt__(self, other) -> bool:
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self._compare(other) < 0

    # Arithmetic

    def __neg__(self) -> "BigInteger":
        return BigInteger._make(-self._sign, self._mag)

    def __pos__(self) -> "BigInteger":
        return self

    def __abs__(self) -> "BigInteger":
        return BigInteger._make(1, self._mag)

    def __add__(self, other) -> "BigInteger":
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return BigInteger._make(*_signed_add(self._sign, self._mag, other._sign, other._mag))

    __radd__ = __add__

    def __sub__(self, other) -> "BigInteger":
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return BigInteger._make(*_signed_add(self._sign, self._mag, -other._sign, other._mag))

    def __rsub__(self, other) -> "BigInteger":
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return other - self

    def __mul__(self, other) -> "BigInteger":
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return BigInteger._make(self._sign * other._sign, _mul_mag(self._mag, other._mag))

    __rmul__ = __mul__

    def div_rem(self, other: "int | BigInteger") -> tuple["BigInteger", "BigInteger"]:
        """Truncating division.

        The quotient is rounded toward zero and the remainder carries the sign of the dividend, so that
        `self == q * other + r` and `abs(r) < abs(other)`.

        Args:
            other: The divisor.

        Returns:
            The quotient and remainder.

        Raises:
            DivisionByZero: If `other` is zero.
        """
        other = BigInteger.of(other)
        if not other._sign:
            raise errors.DivisionByZero("Division by zero.")
        q, r = _divmod_mag(self._mag, other._mag)
        return BigInteger._make(self._sign * other._sign, q), BigInteger._make(self._sign, r)

    def quotient(self, other: "int | BigInteger") -> "BigInteger":
        """Truncating quotient, see `div_rem`."""
        return self.div_rem(other)[0]

    def remainder(self, other: "int | BigInteger") -> "BigInteger":
        """Truncating remainder, see `div_rem`."""
        return self.div_rem(other)[1]

    def __divmod__(self, other) -> tuple["BigInteger", "BigInteger"]:
        other = _coerce(other)
        if other is None:
            return NotImplemented
        q, r = self.div_rem(other)
        if r._sign and r._sign != other._sign:
            q = q - 1
            r = r + other
        return q, r

    def __rdivmod__(self, other) -> tuple["BigInteger", "BigInteger"]:
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return divmod(other, self)

    def __floordiv__(self, other) -> "BigInteger":
        res = self.__divmod__(other)
        return res if res is NotImplemented else res[0]

    def __rfloordiv__(self, other) -> "BigInteger":
        res = self.__rdivmod__(other)
        return res if res is NotImplemented else res[0]

    def __mod__(self, other) -> "BigInteger":
        res = self.__divmod__(other)
        return res if res is NotImplemented else res[1]

    def __rmod__(self, other) -> "BigInteger":
        res = self.__rdivmod__(other)
        return res if res is NotImplemented else res[1]

    def __pow__(self, exponent, modulus=None) -> "BigInteger":
        if modulus is not None:
            from rsacore import modular  # pylint: disable=import-outside-toplevel
            return modular.mod_pow(self, exponent, modulus)
        exponent = _coerce(exponent)
        if exponent is None:
            return NotImplemented
        if exponent._sign < 0:
            raise ValueError("Negative exponents are not supported.")
        result = ONE
        for i in range(exponent.bit_length() - 1, -1, -1):
            result = result * result
            if exponent.test_bit(i):
                result = result * self
        return result

    def __rpow__(self, other) -> "BigInteger":
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return other**self

    def pow(self, exponent: "int | BigInteger") -> "BigInteger":
        """Raises to a non-negative power by square-and-multiply. Negative exponents raise ValueError."""
        return self**BigInteger.of(exponent)

    def gcd(self, other: "int | BigInteger") -> "BigInteger":
        """Greatest common divisor by Euclid's algorithm. Always non-negative; gcd(0, 0) == 0."""
        a, b = self._mag, BigInteger.of(other)._mag
        while b:
            a, b = b, _divmod_mag(a, b)[1]
        return BigInteger._make(1, a)


def _coerce(value) -> BigInteger | None:
    if isinstance(value, BigInteger):
        return value
    if isinstance(value, int):
        return BigInteger(value)
    return None


def _signed_add(sa: int, ma: Magnitude, sb: int, mb: Magnitude) -> tuple[int, Magnitude]:
    if not sa:
        return sb, mb
    if not sb:
        return sa, ma
    if sa == sb:
        return sa, _add_mag(ma, mb)
    c = _cmp_mag(ma, mb)
    if c == 0:
        return 0, ()
    if c > 0:
        return sa, _sub_mag(ma, mb)
    return sb, _sub_mag(mb, ma)


ZERO = BigInteger(0)
ONE = BigInteger(1)
TWO = BigInteger(2)
