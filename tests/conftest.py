"""Shared fixtures for whir_verifier tests."""

import pytest

from whir_verifier.protocol.config import ProtocolConfig
from whir_verifier.protocol.prover import create_test_polynomial, default_eval_point, generate_proof

# Small configuration from the reference scenario: 6 variables, folding by 2
SMALL_CONFIG = ProtocolConfig(
    num_variables=6,
    security_level=32,
    pow_bits=5,
    folding_factor=2,
    starting_log_inv_rate=1,
)


@pytest.fixture(scope="session")
def small_config() -> ProtocolConfig:
    return SMALL_CONFIG


@pytest.fixture(scope="session")
def small_polynomial():
    return create_test_polynomial(SMALL_CONFIG.num_variables)


@pytest.fixture(scope="session")
def small_point():
    return default_eval_point(SMALL_CONFIG.num_variables)


@pytest.fixture(scope="session")
def small_artifact(small_polynomial, small_point):
    """Proof of the test polynomial at [1..6], generated once per session."""
    return generate_proof(SMALL_CONFIG, small_polynomial, small_point)


@pytest.fixture(scope="session")
def fingerprinted_artifact(small_polynomial, small_point):
    return generate_proof(SMALL_CONFIG, small_polynomial, small_point, fingerprint=True)
