"""Exceptions raised throughout rsacore.

Every error derives from `RSACoreError` as well as from the builtin exception a caller would naturally expect, so
`except ValueError` keeps working for callers that do not care about the finer distinction.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class RSACoreError(Exception):
    """Base class for all rsacore errors."""


class InvalidFormat(RSACoreError, ValueError):
    """Raised when a textual integer representation cannot be parsed."""


class DivisionByZero(RSACoreError, ZeroDivisionError):
    """Raised on division or remainder by zero."""


class InvalidModulus(RSACoreError, ValueError):
    """Raised when a modulus is smaller than 1."""


class NotInvertible(RSACoreError, ValueError):
    """Raised when no modular inverse exists, i.e. gcd(a, m) != 1."""


class ExponentNotCoprime(RSACoreError, ValueError):
    """Raised when the public exponent shares a factor with the totient.

    Key generation does not retry on this error; generate a fresh key pair instead.
    """


class GenerationExhausted(RSACoreError, RuntimeError):
    """Raised when a random search runs out of attempts without finding an acceptable candidate."""


class GenerationCancelled(RSACoreError, RuntimeError):
    """Raised when a random search is cancelled by its caller."""
