"""Provides core RSA functionalities: the key types and the raw encryption and decryption primitives.

Facilitates core RSA, solely under "textbook" conditions: no padding is applied, messages are integers in [0, n).
Private keys that know their primes decrypt through the Chinese Remainder Theorem.

Typical usage example:

    pair = generate_key_pair(2048)
    c = encrypt(12345, pair.public)
    m = decrypt(c, pair.private)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import dataclasses
import warnings

from rsacore import modular
from rsacore.bigint import BigInteger

Operand = int | str | BigInteger


@dataclasses.dataclass(frozen=True)
class RSAKey:
    """The overall RSA key class implementation.

    Acts mostly as a template for the "core" components of a RSA Key that are strictly mandatory in both a public
    and a private key.

    Attributes:
        n: The modulus of the keypair.
        exponent: The exponent of the key, whether private or public.
    """
    n: BigInteger
    exponent: BigInteger

    def __post_init__(self) -> None:
        object.__setattr__(self, "n", BigInteger.of(self.n))
        object.__setattr__(self, "exponent", BigInteger.of(self.exponent))
        if self.n < 2:
            raise ValueError("Modulus must be greater than 1.")
        if self.exponent < 1:
            raise ValueError("Exponent must be positive.")

    @property
    def byte_size(self) -> int:
        """Length of the modulus in bytes."""
        return (self.n.bit_length() + 7) // 8

    def _check_range(self, message: Operand) -> BigInteger:
        message = BigInteger.of(message)
        if not 0 <= message < self.n:
            raise ValueError("Message representative must be in range [0, n-1].")
        return message

    def apply(self, message: Operand) -> BigInteger:
        """Performs core RSA operation. (Encrypt/Decrypt)

        Args:
            message: The int-marshalled message.

        Returns:
            message**exponent mod n.

        Raises:
            ValueError: If the message is out of range for the current key.
        """
        return modular.mod_pow(self._check_range(message), self.exponent, self.n)


class PublicKey(RSAKey):
    """A public key (n, e)."""

    @property
    def e(self) -> BigInteger:
        return self.exponent

    def encrypt(self, message: Operand) -> BigInteger:
        """Encrypts an integer message in [0, n)."""
        return self.apply(message)

    def encrypt_bytes(self, message: bytes) -> bytes:
        """Encrypts a byte string read as a big-endian integer, without padding.

        Warning! Unpadded RSA is deterministic and malleable.

        Returns:
            The ciphertext, `byte_size` bytes long.
        """
        warnings.warn("Unpadded encryption is unsecure! Please use with care.", RuntimeWarning)
        return self.apply(BigInteger.from_bytes(message)).to_bytes(self.byte_size)


@dataclasses.dataclass(frozen=True)
class PrivateKey(RSAKey):
    """RSA Private Key class implementation.

    Holds the private exponent d and, optionally, the two primes. Knowing the primes lets the key derive the CRT
    components (d mod (p-1), d mod (q-1), q^-1 mod p) and decrypt with two half-size exponentiations instead of one
    full-size one.

    Attributes:
        n: The modulus of the keypair.
        exponent: The private exponent d.
        p: Private Prime 1.
        q: Private Prime 2.
        exp1: CRT Component dmp1.
        exp2: CRT Component dmq1.
        coeff: CRT Component iqmp.
    """
    p: BigInteger | None = None
    q: BigInteger | None = None
    exp1: BigInteger | None = dataclasses.field(default=None, init=False, repr=False)
    exp2: BigInteger | None = dataclasses.field(default=None, init=False, repr=False)
    coeff: BigInteger | None = dataclasses.field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.p is None and self.q is None:
            return
        if self.p is None or self.q is None:
            raise ValueError("Both primes are required.")
        p, q = BigInteger.of(self.p), BigInteger.of(self.q)
        if p < 3 or q < 3 or p.is_even() or q.is_even():
            raise ValueError("Primes must be odd and at least 3.")
        if p * q != self.n:
            raise ValueError("Primes do not match the modulus.")
        object.__setattr__(self, "p", p)
        object.__setattr__(self, "q", q)
        object.__setattr__(self, "exp1", self.exponent % (p - 1))
        object.__setattr__(self, "exp2", self.exponent % (q - 1))
        object.__setattr__(self, "coeff", modular.mod_inverse(q, p))

    @property
    def d(self) -> BigInteger:
        return self.exponent

    def apply(self, message: Operand) -> BigInteger:
        """Performs core RSA operation accelerated with CRT when the primes are known. (Decrypt)"""
        if self.p is None:
            return super().apply(message)
        message = self._check_range(message)
        m_1 = modular.mod_pow(message, self.exp1, self.p)
        m_2 = modular.mod_pow(message, self.exp2, self.q)
        h = ((m_1 - m_2) * self.coeff) % self.p
        return m_2 + self.q * h

    def decrypt(self, ciphertext: Operand) -> BigInteger:
        """Decrypts an integer ciphertext in [0, n)."""
        return self.apply(ciphertext)

    def decrypt_bytes(self, ciphertext: bytes) -> bytes:
        """Reverses `PublicKey.encrypt_bytes`.

        Leading zero bytes of the original message cannot be told apart from the marshalling and are dropped.
        """
        return self.apply(BigInteger.from_bytes(ciphertext)).to_bytes()


@dataclasses.dataclass(frozen=True)
class KeyPair:
    """A public key and its private key, sharing one modulus."""
    public: PublicKey
    private: PrivateKey

    def __post_init__(self) -> None:
        if self.public.n != self.private.n:
            raise ValueError("Public and private key moduli differ.")

    def __iter__(self):
        return iter((self.public, self.private))


def encrypt(message: Operand, public_key: PublicKey) -> BigInteger:
    """c = m**e mod n.

    Args:
        message: The message representative, in [0, n).
        public_key: The recipient's public key.

    Returns:
        The ciphertext.

    Raises:
        ValueError: If the message is out of range. Larger messages are not reduced silently.
    """
    return public_key.encrypt(message)


def decrypt(ciphertext: Operand, private_key: PrivateKey) -> BigInteger:
    """m = c**d mod n."""
    return private_key.decrypt(ciphertext)
