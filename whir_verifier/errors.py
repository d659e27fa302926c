"""Error taxonomy for proof generation, staging and verification.

Every failure is a distinct, inspectable kind. Callers can tell a malformed
proof apart from a well-formed but false one, and both apart from an
unauthorized mutation of a staging record.
"""


class WhirError(Exception):
    """Base class for all errors raised by this package."""


class InvalidConfiguration(WhirError, ValueError):
    """Protocol configuration value outside its supported range."""


class TranscriptError(WhirError):
    """Transcript operation does not match the domain separator pattern, or a short read."""


class ArtifactFormatError(WhirError):
    """On-disk proof artifact is missing files or has inconsistent metadata."""


# --- Verification ---

class VerifyError(WhirError):
    """Base class for failures of a verify operation."""


class ConfigurationMismatch(VerifyError):
    """Artifact fingerprint does not match the configuration used to verify it."""


class CommitmentParseError(VerifyError):
    """Proof bytes do not parse as a commitment under the expected domain separator."""


class DeserializationError(VerifyError):
    """Evaluation point or value bytes are malformed."""


class MalformedFieldElement(DeserializationError):
    """Wrong byte length or non-canonical field element encoding."""


class MalformedEvaluationPoint(DeserializationError):
    """Evaluation point bytes are not a whole number of field elements."""


class VerificationFailed(VerifyError):
    """Proof is well-formed but the cryptographic check rejects it."""


# --- Proof generation ---

class ProofGenerationError(WhirError):
    """Base class for failures of proof generation."""


class CommitmentError(ProofGenerationError):
    """Polynomial cannot be committed under the given parameters."""


class ProveError(ProofGenerationError):
    """Prove step failed internally."""


# --- Staging ---

class StagingError(WhirError):
    """Base class for staging record lifecycle failures."""


class NotOwner(StagingError):
    """Mutating operation attempted by an identity other than the record owner."""


class AlreadyInitialized(StagingError):
    """Record slot already holds an initialized record."""


class RecordNotFound(StagingError):
    """Record does not exist, either never initialized or already closed."""


class ChunkTooLarge(StagingError):
    """Chunk exceeds the transport's per-call size ceiling."""
