"""Configures pytest further."""
import random

from cryptography.hazmat.primitives.asymmetric import rsa
import pytest


def pytest_addoption(parser):
    parser.addoption("--skip-slow", action="store_true", default=False, help="skip slower tests")
    parser.addoption("--run-extreme", action="store_true", default=False, help="run extreme value extremely slow tests")
    parser.addoption("--seed", action="store", type=int, default=17092025, help="seed for the deterministic test rng")


def pytest_collection_modifyitems(config, items):
    skipdict = {}
    if config.getoption("--skip-slow"):
        skipdict["slow"] = pytest.mark.skip(reason="Slow test: needs no --skip-slow option")
    if not config.getoption("--run-extreme"):
        skipdict["extreme"] = pytest.mark.skip(reason="Extreme test: needs --run-extreme option")
    if not skipdict:
        return
    for item in items:
        for k, v in skipdict.items():
            if k in item.keywords:
                item.add_marker(v)


@pytest.fixture
def rng(request) -> random.Random:
    """A seeded randomness source, so failures can be replayed with --seed."""
    return random.Random(request.config.getoption("--seed"))


@pytest.fixture(scope="session")
def rsa_primes():
    """Realistic RSA primes, produced by a reference implementation and cached per key size."""
    primes: dict[int, tuple[int, int]] = {}

    def get(size: int) -> tuple[int, int]:
        if size not in primes:
            numbers = rsa.generate_private_key(public_exponent=65537, key_size=size).private_numbers()
            primes[size] = (numbers.p, numbers.q)
        return primes[size]

    return get
