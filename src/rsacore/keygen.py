"""Core Key Generation Utility, mainly focusing on the generation of random large primes.

This module is responsible for the primality testing and prime generation behind RSA key pairs, as well as the final
key assembly. Candidates pass a cheap trial division against a cached table of small primes before the Miller-Rabin
test proper. All searches for random candidates run through `bounded_search`, which caps the number of attempts and
lets callers cancel cooperatively.

Typical usage example:

    is_probable_prime(9973)
    p = generate_prime(512)
    pair = generate_key_pair(2048)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
from typing import Callable, TypeVar
import warnings

from rsacore import errors
from rsacore import modular
from rsacore.bigint import BigInteger
from rsacore.bigint import ONE
from rsacore.bigint import RandomSource
from rsacore.rsa import KeyPair
from rsacore.rsa import PrivateKey
from rsacore.rsa import PublicKey

_log = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ROUNDS: int = 20
DEFAULT_PUBLIC_EXPONENT: int = 65537
DEFAULT_KEY_SIZE: int = 1024
MINIMUM_KEY_SIZE: int = 16
_INSECURE_KEY_SIZE: int = 1024
_SMALL_PRIMES: list[int] = []
_SMALL_PRIMES_CAP: int = 0
_MINIMUM_PRIME_SEPARATION: int = 100
_TRIAL_DIVISION_BOUND: int = 2000


def _sieve(n: int = 10000) -> list[int]:
    """Implements the Sieve of Eratosthenes.

    Uses the textbook Sieve of Eratosthenes to generate a set of primes up to `n`.
    Only odd numbers are stored and sieving stops at the root.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.

    Returns:
        A list of primes up to `n`.
    """
    if n < 2:
        return []
    i_size = (n - 1) // 2
    candidate: list[bool] = [True] * i_size
    for i in range(int(n**0.5) // 2):
        if candidate[i]:
            r = 2 * i + 3
            for j in range((r * r - 3) // 2, i_size, r):
                candidate[j] = False
    return [2] + [(no * 2 + 3) for no, ele in enumerate(candidate) if ele]


def get_pre_primes(n: int = _TRIAL_DIVISION_BOUND, change: bool = False) -> list[int]:
    """Get the small primes, automatically generating if necessary.

    Uses the module-level `_SMALL_PRIMES` list as a cache. The cache is replaced wholesale (never mutated) when the
    requested bound is greater than the cached one, when `change` forces it or when it is empty.

    Args:
        n: The number up to which to generate primes. Must be >= 0.
            Ignored if smaller or equal than `_SMALL_PRIMES_CAP`, `change` is False and `_SMALL_PRIMES` is non-empty.
        change: Whether to force a recomputation of primes. Defaults to False.

    Returns:
        List of primes in ascending order. All primes at least to `n` or more unless `change` is True.

    Raises:
        ValueError: If `n` is negative.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    global _SMALL_PRIMES
    global _SMALL_PRIMES_CAP
    if n > _SMALL_PRIMES_CAP or change or not _SMALL_PRIMES:
        _SMALL_PRIMES = _sieve(n)
        _SMALL_PRIMES_CAP = n
    return _SMALL_PRIMES


def _trial_division(no: BigInteger, n: int = _TRIAL_DIVISION_BOUND) -> bool:
    """Check the provided `no` against the known small primes.

    Args:
         no: The number to check.
         n: The bound passed to `get_pre_primes()`.

    Returns:
        False if `no` cannot be prime, True otherwise.
    """
    if no < 2:
        return False
    for prime in get_pre_primes(n):
        if prime * prime > no:
            return True
        if no % prime == 0:
            return False
    return True


def is_probable_prime(n: int | str | BigInteger, rounds: int = DEFAULT_ROUNDS, rng: RandomSource | None = None) -> bool:
    """Perform the Miller-Rabin primality test.

    Writes n - 1 = 2**s * d with d odd and checks `rounds` random witnesses from [2, n - 2]. The chance of a
    composite slipping through is at most 4**-rounds; a True result is never a proof of primality.

    Args:
        n: The integer to test.
        rounds: Number of random witnesses to try. Must be at least 1.
        rng: Randomness source for the witnesses. Defaults to the system CSPRNG.

    Returns:
        True if `n` is probably prime, False if it is certainly composite (or smaller than 2).

    Raises:
        ValueError: If `rounds` < 1.
    """
    if rounds < 1:
        raise ValueError("Number of rounds must be at least 1.")
    n = BigInteger.of(n)
    if n < 2:
        return False
    if n == 2 or n == 3:
        return True
    if n.is_even():
        return False
    n_minus_one = n - 1
    s = n_minus_one.trailing_zeros()
    d = n_minus_one >> s
    for _ in range(rounds):
        a = BigInteger.random_range(2, n - 2, rng)
        x = modular.mod_pow(a, d, n)
        if x == 1 or x == n_minus_one:
            continue
        for _ in range(s - 1):
            x = (x * x) % n
            if x == n_minus_one:
                break
            if x == 1:
                return False
        else:
            return False
    return True


def recommended_rounds(bits: int) -> int:
    """Miller-Rabin rounds for a candidate of the given size as per FIPS 186-5 Appendix C.1."""
    if bits <= 512:
        return 40
    if bits <= 1024:
        return 56
    if bits <= 1536:
        return 64
    if bits <= 2048:
        return 70
    return 74


def check_prime(candidate: int | str | BigInteger,
                rounds: int | None = None,
                bound: int = _TRIAL_DIVISION_BOUND,
                rng: RandomSource | None = None) -> bool:
    """Performs a composite Primality test, using a limited amount of trial divisions, before a Miller-Rabin test.

    In interest of providing a result expediently we run a trial division with all primes up to `bound`, before
    proceeding with the Miller-Rabin test.

    Args:
        candidate: The candidate prime to test.
        rounds: Number of Miller-Rabin iterations to perform.
            If not provided will use `recommended_rounds()`.
        bound: The number up to which to use small primes for trial division.
        rng: Randomness source for the Miller-Rabin witnesses.

    Returns:
        True if `candidate` is probably prime, False otherwise.
    """
    candidate = BigInteger.of(candidate)
    if not _trial_division(candidate, bound):
        return False
    if rounds is None:
        rounds = recommended_rounds(candidate.bit_length())
    return is_probable_prime(candidate, rounds, rng)


def bounded_search(draw: Callable[[], T],
                   accept: Callable[[T], bool],
                   max_attempts: int | None = None,
                   should_cancel: Callable[[], bool] | None = None) -> T:
    """Draws candidates until one is accepted.

    Args:
        draw: Produces a fresh candidate on every call.
        accept: Decides whether a candidate ends the search.
        max_attempts: Upper bound on the number of draws. None means no bound at all.
        should_cancel: Checked before every draw; the search stops as soon as it returns True.

    Returns:
        The first accepted candidate.

    Raises:
        GenerationExhausted: If `max_attempts` draws yielded nothing acceptable.
        GenerationCancelled: If `should_cancel` asked to stop.
        ValueError: If `max_attempts` < 1.
    """
    if max_attempts is not None and max_attempts < 1:
        raise ValueError("max_attempts must be at least 1.")
    attempts = 0
    while max_attempts is None or attempts < max_attempts:
        if should_cancel is not None and should_cancel():
            raise errors.GenerationCancelled(f"Search cancelled after {attempts} attempts.")
        attempts += 1
        candidate = draw()
        if accept(candidate):
            _log.debug("Search finished after %d attempts.", attempts)
            return candidate
    raise errors.GenerationExhausted(
        f"Run an improbable {max_attempts} amount of loops with no candidate found. Check system random number "
        "generator.")


def generate_prime(bits: int,
                   rounds: int = DEFAULT_ROUNDS,
                   rng: RandomSource | None = None,
                   max_attempts: int | None = None,
                   should_cancel: Callable[[], bool] | None = None,
                   reject: Callable[[BigInteger], bool] | None = None,
                   top_bits: int = 1) -> BigInteger:
    """Generate a probable prime number of exactly the specified bit size.

    Every attempt draws a uniformly random odd number in [2**(bits - 1), 2**bits - 1] and keeps it once it passes
    `check_prime`. With `top_bits=2` the second highest bit is fixed as well, which keeps the square of every
    candidate at 2 * bits bits.

    Args:
        bits: The size of the prime to generate in bits. Must be at least 2.
        rounds: Miller-Rabin rounds per candidate.
        rng: Randomness source. Defaults to the system CSPRNG.
        max_attempts: Cap on the number of candidates drawn. Defaults to max(5 * bits, 64).
        should_cancel: Cooperative cancellation check, see `bounded_search`.
        reject: Optional extra filter; candidates for which it returns True are skipped before primality testing.
        top_bits: How many of the highest bits are forced to 1, either 1 or 2.

    Returns:
        A probable prime with its top bit set.

    Raises:
        ValueError: If `bits` < 2 or `top_bits` is not 1 or 2.
        GenerationExhausted: If no prime was found within `max_attempts` candidates.
        GenerationCancelled: If the search was cancelled.
    """
    if bits < 2:
        raise ValueError("Prime size must be at least 2 bits.")
    if top_bits not in (1, 2):
        raise ValueError("Only the top one or two bits can be fixed.")
    if max_attempts is None:
        max_attempts = max(5 * bits, 64)
    # Set the first `top_bits` bits to 1 to ensure length.
    msk = ((ONE << top_bits) - 1) << (bits - top_bits)

    def draw() -> BigInteger:
        candidate = msk + BigInteger.random_bits(bits - top_bits, rng)
        return candidate if candidate.is_odd() else candidate + 1

    def accept(candidate: BigInteger) -> bool:
        if reject is not None and reject(candidate):
            return False
        return check_prime(candidate, rounds, rng=rng)

    return bounded_search(draw, accept, max_attempts, should_cancel)


def generate_primes(size: int,
                    rounds: int = DEFAULT_ROUNDS,
                    rng: RandomSource | None = None,
                    max_attempts: int | None = None,
                    should_cancel: Callable[[], bool] | None = None) -> tuple[BigInteger, BigInteger]:
    """Generates an RSA-suitable pair of distinct primes of `size // 2` bits each.

    Both primes have their top two bits set, so each is above sqrt(2) * 2**(size/2 - 1) and their product has
    exactly `size` bits without discarding any draw. The second prime never equals the first and, for large enough
    sizes, keeps a distance of more than 2**(size/2 - 100) to it. As its candidates can also be rejected for being
    too close to the first, the second search gets twice the attempts.

    Args:
        size: The key size to generate the prime pair for. Must be even.
        rounds: Miller-Rabin rounds per candidate.
        rng: Randomness source.
        max_attempts: Cap on candidates for the first prime. Defaults to max(5 * (size // 2), 64).
        should_cancel: Cooperative cancellation check.

    Returns:
        The primes p and q.
    """
    half = size // 2
    if max_attempts is None:
        max_attempts = max(5 * half, 64)
    separation = None
    if half > 2 * _MINIMUM_PRIME_SEPARATION:
        separation = ONE << (half - _MINIMUM_PRIME_SEPARATION)

    p = generate_prime(half, rounds, rng, max_attempts=max_attempts, should_cancel=should_cancel, top_bits=2)

    def reject_q(candidate: BigInteger) -> bool:
        if candidate == p:
            return True
        return separation is not None and abs(p - candidate) <= separation

    q = generate_prime(half, rounds, rng, max_attempts=2 * max_attempts, should_cancel=should_cancel,
                       reject=reject_q, top_bits=2)
    return p, q


def assemble_key_pair(p: int | str | BigInteger,
                      q: int | str | BigInteger,
                      public_exponent: int | str | BigInteger = DEFAULT_PUBLIC_EXPONENT) -> KeyPair:
    """Builds the key pair for two given primes.

    Args:
        p: The first prime.
        q: The second prime. Must differ from `p`.
        public_exponent: The public exponent e.

    Returns:
        The key pair. The private key keeps p and q for CRT decryption.

    Raises:
        ExponentNotCoprime: If gcd(e, (p - 1) * (q - 1)) != 1.
        ValueError: If p == q, either prime is even, or the totient is too small for e.
    """
    p, q, e = BigInteger.of(p), BigInteger.of(q), BigInteger.of(public_exponent)
    if p == q:
        raise ValueError("Primes must be distinct.")
    if p < 3 or q < 3 or p.is_even() or q.is_even():
        raise ValueError("Primes must be odd and at least 3.")
    n = p * q
    totient = (p - 1) * (q - 1)
    if e.gcd(totient) != 1:
        raise errors.ExponentNotCoprime("Public exponent and totient are not coprime.")
    if e >= totient:
        raise ValueError("Key size too small for the public exponent.")
    d = modular.mod_inverse(e, totient)
    _log.debug("Assembled a %d-bit key pair.", n.bit_length())
    return KeyPair(PublicKey(n, e), PrivateKey(n, d, p, q))


def generate_key_pair(size: int = DEFAULT_KEY_SIZE,
                      public_exponent: int | str | BigInteger = DEFAULT_PUBLIC_EXPONENT,
                      rounds: int = DEFAULT_ROUNDS,
                      rng: RandomSource | None = None,
                      max_attempts: int | None = None,
                      should_cancel: Callable[[], bool] | None = None) -> KeyPair:
    """Generates an RSA key pair.

    Draws two distinct primes, derives n, the totient and the private exponent, and returns the finished pair. A
    public exponent that turns out not to be coprime with the totient is reported, not retried; call again to draw
    fresh primes.

    Args:
        size: The key size (bit length of n). Must be even and at least `MINIMUM_KEY_SIZE`, and large enough for
            `public_exponent` (more than e.bit_length() + 1 bits, so 20 bits for the default 65537).
        public_exponent: The public exponent e. Must be odd and at least 3. Defaults to 65537. The smallest sizes
            need a small exponent such as 3.
        rounds: Miller-Rabin rounds per prime candidate. Defaults to 20.
        rng: Randomness source. Defaults to the system CSPRNG.
        max_attempts: Cap on candidates per prime, see `generate_prime`.
        should_cancel: Cooperative cancellation check, see `bounded_search`.

    Returns:
        The generated key pair.

    Raises:
        ValueError: If `size` or `public_exponent` do not meet requirements.
        ExponentNotCoprime: If e shares a factor with the totient.
        GenerationExhausted: If a prime search ran out of attempts.
        GenerationCancelled: If the search was cancelled.
    """
    if size < MINIMUM_KEY_SIZE:
        raise ValueError(f"Size must be at least {MINIMUM_KEY_SIZE}.")
    if size % 2 != 0:
        raise ValueError("Size must be an even number.")
    e = BigInteger.of(public_exponent)
    if e < 3 or e.is_even():
        raise ValueError("Public exponent does not meet requirements.")
    # Both primes have their top two bits set, so the totient is always above 2**(size - 2).
    if e.bit_length() > size - 2:
        raise ValueError("Key size too small for the public exponent.")
    if size < _INSECURE_KEY_SIZE:
        warnings.warn(f"Key sizes below {_INSECURE_KEY_SIZE} bits are insecure! Please use with care.",
                      RuntimeWarning)
    p, q = generate_primes(size, rounds, rng, max_attempts, should_cancel)
    return assemble_key_pair(p, q, e)
