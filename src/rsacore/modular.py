"""Modular arithmetic over BigInteger values.

Covers the number theory RSA needs on top of plain integer arithmetic: square-and-multiply exponentiation, the
Extended Euclidean Algorithm and the modular inverse derived from it. All functions accept `int`, decimal `str` or
`BigInteger` operands and return `BigInteger` values.

Typical usage example:

    c = mod_pow(12345, 65537, n)
    d = mod_inverse(65537, phi)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from rsacore import errors
from rsacore.bigint import BigInteger
from rsacore.bigint import ONE
from rsacore.bigint import ZERO

Operand = int | str | BigInteger


def mod_pow(base: Operand, exponent: Operand, modulus: Operand) -> BigInteger:
    """Computes base**exponent mod modulus.

    Left-to-right binary exponentiation: walks the exponent bits from the most significant one, squaring the
    accumulator and multiplying in the base on set bits, reducing after every step so intermediates never grow beyond
    twice the size of the modulus.

    Args:
        base: The base. Negative values are reduced into [0, modulus) first.
        exponent: The exponent. Must be non-negative.
        modulus: The modulus. Must be at least 1.

    Returns:
        The result in [0, modulus).

    Raises:
        InvalidModulus: If `modulus` < 1.
        ValueError: If `exponent` is negative.
    """
    base, exponent, modulus = BigInteger.of(base), BigInteger.of(exponent), BigInteger.of(modulus)
    if modulus < 1:
        raise errors.InvalidModulus("Modulus must be at least 1.")
    if exponent < 0:
        raise ValueError("Exponent must be non-negative.")
    if modulus == 1:
        return ZERO
    base = base % modulus
    acc = ONE
    for i in range(exponent.bit_length() - 1, -1, -1):
        acc = (acc * acc) % modulus
        if exponent.test_bit(i):
            acc = (acc * base) % modulus
    return acc


def gcd(a: Operand, b: Operand) -> BigInteger:
    """Greatest common divisor, always non-negative."""
    return BigInteger.of(a).gcd(b)


def eea(a: Operand, b: Operand) -> tuple[BigInteger, BigInteger, BigInteger]:
    """Implements the Extended Euclidean Algorithm.

    Such that a*s0 + b*t0 = r0 = gcd(a, b).

    Args:
        a: The first natural number.
        b: The second natural number.

    Returns:
        Greatest common divisor of two integers.
        As well as the Bezout coefficients.
    """
    r0, r1 = BigInteger.of(a), BigInteger.of(b)
    s0, s1, t0, t1 = ONE, ZERO, ZERO, ONE
    while r1:
        q = r0 // r1
        r0, r1 = r1, r0 - q * r1
        s0, s1 = s1, s0 - q * s1
        t0, t1 = t1, t0 - q * t1
    return r0, s0, t0


def mod_inverse(a: Operand, m: Operand) -> BigInteger:
    """Finds the unique x in [0, m) with (a * x) mod m == 1.

    Args:
        a: The value to invert. Any integer, reduced modulo `m` first.
        m: The modulus. Must be at least 1.

    Returns:
        The modular inverse of `a`. For m == 1 that is 0.

    Raises:
        InvalidModulus: If `m` < 1.
        NotInvertible: If gcd(a, m) != 1.
    """
    a, m = BigInteger.of(a), BigInteger.of(m)
    if m < 1:
        raise errors.InvalidModulus("Modulus must be at least 1.")
    g, s, _ = eea(a % m, m)
    if g != 1:
        raise errors.NotInvertible("No modular inverse exists, gcd(a, m) != 1.")
    return s % m
