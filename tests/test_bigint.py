# pylint: disable=protected-access,missing-module-docstring
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import math
import pickle
import random
import secrets

import pytest

from rsacore import errors
from rsacore import keygen
from rsacore.bigint import BigInteger
from rsacore.bigint import LIMB_BITS

values = [
    0,
    1,
    -1,
    2,
    7,
    -7,
    2**32 - 1,
    2**32,
    -(2**32),
    2**64 + 12345,
    -(2**95 - 3),
    3**200,
    -(7**150),
    12345678901234567890123456789,
]

# Divisions that exercise the qhat correction and add-back steps of long division.
knuth_cases = [
    (3 + (0x80000000 << 64), 1 + (0x20000000 << 64)),
    (0x7fffffff << 96 | 0x80000000 << 64, 1 + (0x80000000 << 64)),
    (2**128 - 1, 2**64 + 1),
    (2**192, 2**96 - 1),
    ((2**64 - 1) * (2**64 - 3), 2**64 - 3),
]


def id_generator(param):
    if isinstance(param, int) and abs(param) > 1000000:
        return f"LargeInt-{param.bit_length()}bits"
    return str(param)


def trunc_divmod(a: int, b: int) -> tuple[int, int]:
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    return q, a - q * b


def test_canonical_zero():
    zero = BigInteger(5) - 5
    assert zero.sign == 0
    assert zero._mag == ()
    assert zero == BigInteger() == 0
    assert not zero


def test_canonical_no_high_limbs():
    x = BigInteger(2**64) - 1
    assert x._mag == (2**32 - 1, 2**32 - 1)
    assert (BigInteger(2**64) - BigInteger(2**64 - 1))._mag == (1,)


@pytest.mark.parametrize("a", values, ids=id_generator)
def test_int_conversion(a):
    big = BigInteger(a)
    assert int(big) == a
    assert big.sign == (a > 0) - (a < 0)


@pytest.mark.parametrize("a", values, ids=id_generator)
@pytest.mark.parametrize("b", values, ids=id_generator)
def test_add_sub_mul(a, b):
    x, y = BigInteger(a), BigInteger(b)
    assert x + y == a + b
    assert x - y == a - b
    assert x * y == a * b
    assert a + y == a + b
    assert a - y == a - b
    assert a * y == a * b


@pytest.mark.parametrize("a", values, ids=id_generator)
@pytest.mark.parametrize("b", [v for v in values if v], ids=id_generator)
def test_div_rem_truncates(a, b):
    q, r = BigInteger(a).div_rem(b)
    eq, er = trunc_divmod(a, b)
    assert q == eq
    assert r == er
    assert BigInteger(a).quotient(b) == eq
    assert BigInteger(a).remainder(b) == er


@pytest.mark.parametrize("a", values, ids=id_generator)
@pytest.mark.parametrize("b", [v for v in values if v], ids=id_generator)
def test_floor_divmod(a, b):
    x = BigInteger(a)
    assert divmod(x, b) == divmod(a, b)
    assert x // b == a // b
    assert x % b == a % b
    assert a // BigInteger(b) == a // b
    assert a % BigInteger(b) == a % b


@pytest.mark.parametrize("a,b", knuth_cases, ids=id_generator)
def test_long_division_corrections(a, b):
    assert divmod(BigInteger(a), BigInteger(b)) == divmod(a, b)


def test_division_random(rng):
    for _ in range(200):
        a = rng.getrandbits(rng.randint(1, 600))
        b = rng.getrandbits(rng.randint(1, 300)) or 1
        assert divmod(BigInteger(a), b) == divmod(a, b)


@pytest.mark.parametrize("action", [
    lambda x: x // 0,
    lambda x: x % 0,
    lambda x: divmod(x, 0),
    lambda x: x.div_rem(0),
    lambda x: x.quotient(BigInteger(0)),
    lambda x: x.remainder(0),
    lambda x: 5 // BigInteger(0),
])
def test_division_by_zero(action):
    with pytest.raises(errors.DivisionByZero):
        action(BigInteger(12345))
    with pytest.raises(ZeroDivisionError):
        action(BigInteger(-1))


@pytest.mark.parametrize("base,exponent", [(0, 0), (3, 0), (3, 1), (3, 100), (-3, 33), (2**40 + 1, 7), (-1, 12345)])
def test_pow(base, exponent):
    assert BigInteger(base)**exponent == base**exponent
    assert BigInteger(base).pow(BigInteger(exponent)) == base**exponent


def test_rpow():
    assert 2**BigInteger(100) == 2**100


def test_pow_negative_exponent():
    with pytest.raises(ValueError):
        BigInteger(3)**-1


def test_pow_three_argument():
    assert pow(BigInteger(4), 13, 497) == 445
    assert pow(BigInteger(4), BigInteger(13), BigInteger(497)) == 445


@pytest.mark.parametrize("a", values, ids=id_generator)
@pytest.mark.parametrize("b", values, ids=id_generator)
def test_gcd(a, b):
    assert BigInteger(a).gcd(b) == math.gcd(a, b)


@pytest.mark.parametrize("a", values, ids=id_generator)
@pytest.mark.parametrize("b", values, ids=id_generator)
def test_comparison(a, b):
    x, y = BigInteger(a), BigInteger(b)
    assert (x < y) == (a < b)
    assert (x <= y) == (a <= b)
    assert (x > y) == (a > b)
    assert (x >= y) == (a >= b)
    assert (x == y) == (a == b)
    assert (x != y) == (a != b)
    assert (x < b) == (a < b)
    assert (a > y) == (a > b)


def test_sorting():
    assert sorted(BigInteger(v) for v in values) == sorted(values)


def test_hash_matches_int():
    table = {BigInteger(v): v for v in values}
    for v in values:
        assert table[v] == v
    assert hash(BigInteger(-(2**100))) == hash(-(2**100))


def test_foreign_types():
    assert BigInteger(1) != "1"
    with pytest.raises(TypeError):
        BigInteger(1) + 1.5  # pylint: disable=expression-not-assigned
    with pytest.raises(TypeError):
        BigInteger(1.5)


def test_immutable():
    x = BigInteger(42)
    with pytest.raises(AttributeError):
        x._sign = -1
    with pytest.raises(AttributeError):
        x.anything = 1
    assert x == 42


def test_pickle():
    x = BigInteger(-(3**300))
    assert pickle.loads(pickle.dumps(x)) == x


def test_unary():
    x = BigInteger(-(2**70))
    assert -x == 2**70
    assert +x is x
    assert abs(x) == 2**70
    assert -BigInteger(0) == 0


@pytest.mark.parametrize("text,base,expected", [
    ("0", 10, 0),
    ("-0", 10, 0),
    ("+17", 10, 17),
    ("  12345678901234567890123456789  ", 10, 12345678901234567890123456789),
    ("-000042", 10, -42),
    ("ff", 16, 255),
    ("DeadBeefCafeBabe0123456789", 16, 0xDEADBEEFCAFEBABE0123456789),
    ("101010", 2, 42),
    ("zz", 36, 35 * 36 + 35),
    ("7" * 500, 8, int("7" * 500, 8)),
])
def test_parse(text, base, expected):
    assert BigInteger.parse(text, base) == expected


@pytest.mark.parametrize("text", ["", " ", "+", "-", "12a", "1_000", "0x10", "1 2", "--1", "+-1", "1.0", "٣"])
def test_parse_invalid(text):
    with pytest.raises(errors.InvalidFormat):
        BigInteger.parse(text)
    with pytest.raises(ValueError):
        BigInteger(text)


def test_parse_digit_outside_base():
    with pytest.raises(errors.InvalidFormat):
        BigInteger.parse("102", 2)


@pytest.mark.parametrize("base", [1, 37])
def test_base_out_of_range(base):
    with pytest.raises(ValueError):
        BigInteger.parse("1", base)
    with pytest.raises(ValueError):
        BigInteger(1).to_string(base)


@pytest.mark.parametrize("a", values, ids=id_generator)
def test_format(a):
    x = BigInteger(a)
    assert str(x) == str(a)
    assert x.to_string(16) == format(a, "x")
    assert x.to_string(2) == format(a, "b")
    assert int(x.to_string(36), 36) == a
    assert repr(x) == f"BigInteger({a})"


@pytest.mark.parametrize("data", [b"", b"\x00", b"\x01", b"\x00\x00\xff", b"Hi there!", bytes(range(256))])
def test_from_bytes(data):
    assert BigInteger.from_bytes(data) == int.from_bytes(data, "big")


@pytest.mark.parametrize("value,length", [(0, None), (0, 4), (255, None), (256, 2), (2**64 + 1, 20)])
def test_to_bytes(value, length):
    size = length if length is not None else (value.bit_length() + 7) // 8
    assert BigInteger(value).to_bytes(length) == value.to_bytes(size, "big")


def test_to_bytes_validates():
    with pytest.raises(OverflowError):
        BigInteger(65536).to_bytes(2)
    with pytest.raises(ValueError):
        BigInteger(-1).to_bytes()


@pytest.mark.parametrize("a", [v for v in values if v >= 0], ids=id_generator)
@pytest.mark.parametrize("bits", [0, 1, 5, 31, 32, 33, 64, 100])
def test_shifts(a, bits):
    assert BigInteger(a) << bits == a << bits
    assert BigInteger(a) >> bits == a >> bits


def test_shift_validates():
    with pytest.raises(ValueError):
        BigInteger(1) << -1  # pylint: disable=expression-not-assigned
    with pytest.raises(ValueError):
        BigInteger(-8) >> 1  # pylint: disable=expression-not-assigned
    assert BigInteger(-3) << 2 == -12


@pytest.mark.parametrize("a", values, ids=id_generator)
def test_bit_helpers(a):
    x = BigInteger(a)
    assert x.bit_length() == a.bit_length()
    assert x.is_odd() == (a % 2 == 1)
    assert x.is_even() == (a % 2 == 0)
    for i in (0, 1, 31, 32, 33, 70):
        assert x.test_bit(i) == bool((abs(a) >> i) & 1)
    if a:
        assert x.trailing_zeros() == (abs(a) & -abs(a)).bit_length() - 1
    else:
        assert x.trailing_zeros() == 0


def test_test_bit_validates():
    with pytest.raises(ValueError):
        BigInteger(1).test_bit(-1)


def test_index():
    assert [10, 20, 30][BigInteger(1)] == 20
    assert hex(BigInteger(255)) == "0xff"


def test_of_returns_same_instance():
    x = BigInteger(3)
    assert BigInteger.of(x) is x
    assert BigInteger.of("3") == x
    assert BigInteger(x) == x


@pytest.mark.parametrize("bits", [0, 1, 7, 32, 33, 257])
def test_random_bits(rng, bits):
    for _ in range(50):
        r = BigInteger.random_bits(bits, rng)
        assert 0 <= r < 2**bits


def test_random_bits_uses_limbs(mocker):
    source = mocker.Mock()
    source.getrandbits.side_effect = [1, 2, 3]
    r = BigInteger.random_bits(70, source)
    assert [c.args[0] for c in source.getrandbits.call_args_list] == [LIMB_BITS, LIMB_BITS, 70 - 2 * LIMB_BITS]
    assert r == 1 + (2 << 32) + (3 << 64)


def test_random_below(rng):
    seen = {int(BigInteger.random_below(5, rng)) for _ in range(200)}
    assert seen == {0, 1, 2, 3, 4}


def test_random_range(rng):
    for _ in range(100):
        assert 2**64 <= BigInteger.random_range(2**64, 2**64 + 3, rng) <= 2**64 + 3
    assert BigInteger.random_range(7, 7, rng) == 7


def test_random_validates(rng):
    with pytest.raises(ValueError):
        BigInteger.random_bits(-1, rng)
    with pytest.raises(ValueError):
        BigInteger.random_below(0, rng)
    with pytest.raises(ValueError):
        BigInteger.random_range(5, 4, rng)


def test_random_default_source():
    assert 0 <= BigInteger.random_below(1000) < 1000


@pytest.mark.parametrize("source", [random.Random(7), secrets.SystemRandom()], ids=["random", "system"])
def test_stdlib_sources(source):
    for bits in (1, 31, 32, 33, 100):
        value = BigInteger.random_bits(bits, source)
        assert 0 <= value < 2**bits
    assert 0 <= BigInteger.random_below(2**70 + 5, source) < 2**70 + 5
    assert keygen.is_probable_prime(2**61 - 1, rng=source)
    assert not keygen.is_probable_prime(2**61 + 1, rng=source)
