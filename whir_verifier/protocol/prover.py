"""Proof producer: commit, prove and package a single evaluation claim."""

import logging
from typing import List, Sequence

from whir_verifier.errors import CommitmentError, ProveError, WhirError
from whir_verifier.primitives.field import FF3, lift
from whir_verifier.primitives.polynomial import CoefficientList, create_test_polynomial
from whir_verifier.protocol.artifact import ProofArtifact
from whir_verifier.protocol.codec import encode_element, encode_point
from whir_verifier.protocol.config import ProtocolConfig
from whir_verifier.protocol.params import build_parameters, config_fingerprint, derive_domain_separator
from whir_verifier.protocol.pcs import CommitmentWriter, Prover, Statement

logger = logging.getLogger(__name__)

__all__ = ["create_test_polynomial", "default_eval_point", "generate_proof"]


def default_eval_point(num_variables: int) -> List[FF3]:
    """The point [1, 2, ..., n]."""
    return [lift(i + 1) for i in range(num_variables)]


def generate_proof(
    config: ProtocolConfig,
    polynomial: CoefficientList,
    eval_point: Sequence,
    fingerprint: bool = False,
) -> ProofArtifact:
    """Commit to `polynomial` and prove its value at `eval_point`.

    Args:
        config: Protocol configuration; the verifier must use the same one.
        polynomial: 2^num_variables base field coefficients.
        eval_point: One coordinate per variable (FF3, FF or int).
        fingerprint: Attach the config fingerprint to the artifact.

    Raises:
        CommitmentError: polynomial or point do not match num_variables.
        ProveError: the prover failed internally.
    """
    params = build_parameters(config)
    domain_separator = derive_domain_separator(params)
    prover_state = domain_separator.to_prover_state()

    if len(eval_point) != config.num_variables:
        raise CommitmentError(
            f"evaluation point has {len(eval_point)} coordinates, "
            f"expected {config.num_variables}"
        )
    point = [c if isinstance(c, FF3) else lift(int(c)) for c in eval_point]

    witness = CommitmentWriter(params).commit(prover_state, polynomial)

    expected_value = polynomial.evaluate(point)
    statement = Statement(point=point, value=expected_value)

    try:
        Prover(params).prove(prover_state, statement, witness)
    except ProveError:
        raise
    except (WhirError, ValueError, ArithmeticError) as err:
        raise ProveError(f"prover failed: {err}") from err

    proof_bytes = prover_state.narg_string()
    logger.info("generated proof: %d bytes, %d queries", len(proof_bytes), params.n_queries)

    return ProofArtifact(
        proof_bytes=proof_bytes,
        eval_point=encode_point(point),
        eval_value=encode_element(expected_value),
        num_variables=config.num_variables,
        config_fingerprint=config_fingerprint(config) if fingerprint else None,
    )
