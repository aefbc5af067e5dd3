"""Textbook RSA on a from-scratch arbitrary-precision integer core.

Provides an immutable BigInteger type, modular exponentiation and inversion, Miller-Rabin primality testing, random
prime generation, RSA key pair generation and the raw (unpadded) encryption and decryption primitives.

Typical usage example:

    pair = generate_key_pair(1024)
    c = encrypt(12345, pair.public)
    m = decrypt(c, pair.private)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from rsacore.bigint import BigInteger
from rsacore.errors import DivisionByZero
from rsacore.errors import ExponentNotCoprime
from rsacore.errors import GenerationCancelled
from rsacore.errors import GenerationExhausted
from rsacore.errors import InvalidFormat
from rsacore.errors import InvalidModulus
from rsacore.errors import NotInvertible
from rsacore.errors import RSACoreError
from rsacore.keygen import check_prime
from rsacore.keygen import generate_key_pair
from rsacore.keygen import generate_prime
from rsacore.keygen import is_probable_prime
from rsacore.modular import mod_inverse
from rsacore.modular import mod_pow
from rsacore.rsa import decrypt
from rsacore.rsa import encrypt
from rsacore.rsa import KeyPair
from rsacore.rsa import PrivateKey
from rsacore.rsa import PublicKey

__version__ = "0.1.0"
__all__ = [
    "BigInteger",
    "KeyPair",
    "PrivateKey",
    "PublicKey",
    "mod_pow",
    "mod_inverse",
    "is_probable_prime",
    "check_prime",
    "generate_prime",
    "generate_key_pair",
    "encrypt",
    "decrypt",
    "RSACoreError",
    "InvalidFormat",
    "DivisionByZero",
    "InvalidModulus",
    "NotInvertible",
    "ExponentNotCoprime",
    "GenerationExhausted",
    "GenerationCancelled",
]
