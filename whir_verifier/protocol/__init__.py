"""Protocol - Parameters, commitment scheme, proof transport and verification."""

from whir_verifier.protocol.artifact import ProofArtifact, read_artifact, write_artifact
from whir_verifier.protocol.codec import (
    decode_element,
    decode_point,
    encode_element,
    encode_point,
    field_size_bytes,
)
from whir_verifier.protocol.config import DOMAIN_SEPARATOR, ProtocolConfig
from whir_verifier.protocol.params import (
    WhirParams,
    build_parameters,
    config_fingerprint,
    derive_domain_separator,
)
from whir_verifier.protocol.pcs import (
    CommitmentReader,
    CommitmentWriter,
    ParsedCommitment,
    Prover,
    Statement,
    Verifier,
    Witness,
)
from whir_verifier.protocol.prover import default_eval_point, generate_proof
from whir_verifier.protocol.staging import (
    ProofStore,
    RecordState,
    RecordView,
    StagingRecord,
    iter_chunks,
    stage_and_verify,
    stage_proof,
)
from whir_verifier.protocol.verifier import verify_artifact, verify_proof

__all__ = [
    # Configuration
    "ProtocolConfig",
    "DOMAIN_SEPARATOR",
    "WhirParams",
    "build_parameters",
    "derive_domain_separator",
    "config_fingerprint",
    # Field element codec
    "field_size_bytes",
    "encode_element",
    "decode_element",
    "encode_point",
    "decode_point",
    # Commitment scheme
    "CommitmentWriter",
    "CommitmentReader",
    "ParsedCommitment",
    "Prover",
    "Verifier",
    "Statement",
    "Witness",
    # Producer / verifier
    "ProofArtifact",
    "generate_proof",
    "default_eval_point",
    "verify_artifact",
    "verify_proof",
    "read_artifact",
    "write_artifact",
    # Staging
    "ProofStore",
    "StagingRecord",
    "RecordView",
    "RecordState",
    "iter_chunks",
    "stage_proof",
    "stage_and_verify",
]
