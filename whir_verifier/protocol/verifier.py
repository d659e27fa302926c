"""Verifier invocation: turn an artifact into a pass or a typed failure."""

import dataclasses
import logging
from typing import Sequence

from whir_verifier.errors import (
    ConfigurationMismatch,
    MalformedEvaluationPoint,
    MalformedFieldElement,
    TranscriptError,
    VerificationFailed,
)
from whir_verifier.primitives.field import FF3, lift
from whir_verifier.protocol.artifact import ProofArtifact
from whir_verifier.protocol.codec import decode_element, decode_point, encode_element, encode_point
from whir_verifier.protocol.config import ProtocolConfig
from whir_verifier.protocol.params import build_parameters, config_fingerprint, derive_domain_separator
from whir_verifier.protocol.pcs import CommitmentReader, Statement, Verifier

logger = logging.getLogger(__name__)


def verify_artifact(config: ProtocolConfig, artifact: ProofArtifact) -> None:
    """Verify an artifact under `config`. Returns None on success.

    The config must be the one the producer used. Without a fingerprint in the
    artifact a mismatch is indistinguishable from a false statement.

    Raises:
        ConfigurationMismatch: the artifact's fingerprint names another config.
        CommitmentParseError: the proof does not start with a commitment.
        DeserializationError: point or value bytes are malformed.
        VerificationFailed: the proof is rejected.
    """
    logger.info("verifying %d-byte proof (num_variables=%d, security=%d, pow=%d)",
                len(artifact.proof_bytes), config.num_variables,
                config.security_level, config.pow_bits)

    if (artifact.config_fingerprint is not None
            and artifact.config_fingerprint != config_fingerprint(config)):
        logger.warning("config fingerprint mismatch")
        raise ConfigurationMismatch("artifact was produced under a different configuration")

    params = build_parameters(config)
    domain_separator = derive_domain_separator(params)
    verifier_state = domain_separator.to_verifier_state(artifact.proof_bytes)

    commitment = CommitmentReader(params).parse_commitment(verifier_state)

    point = decode_point(artifact.eval_point)
    if len(point) != config.num_variables:
        raise MalformedEvaluationPoint(
            f"evaluation point has {len(point)} coordinates, expected {config.num_variables}"
        )
    value = decode_element(artifact.eval_value)

    statement = Statement(point=point, value=value)

    try:
        accepted = Verifier(params).verify(verifier_state, commitment, statement)
    except (TranscriptError, MalformedFieldElement) as err:
        logger.info("verification failed: %s", err)
        raise VerificationFailed(f"malformed proof: {err}") from err

    if not accepted:
        logger.info("verification failed: proof rejected")
        raise VerificationFailed("proof rejected")
    logger.info("verification succeeded")


def verify_proof(
    config: ProtocolConfig,
    artifact: ProofArtifact,
    eval_point: Sequence,
    eval_value,
) -> None:
    """Verify `artifact` against an explicitly given point and value."""
    point = [c if isinstance(c, FF3) else lift(int(c)) for c in eval_point]
    value = eval_value if isinstance(eval_value, FF3) else lift(int(eval_value))
    checked = dataclasses.replace(
        artifact,
        eval_point=encode_point(point),
        eval_value=encode_element(value),
    )
    verify_artifact(config, checked)
