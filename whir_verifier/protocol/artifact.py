"""Proof artifact and its on-disk layout.

A directory holds four files:
    proof.bin        raw proof transcript bytes
    eval-point.bin   concatenated coordinate encodings
    eval-value.bin   one element encoding
    metadata.json    sizes, configuration and optional config fingerprint
"""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from whir_verifier.errors import ArtifactFormatError, InvalidConfiguration
from whir_verifier.protocol.codec import field_size_bytes
from whir_verifier.protocol.config import ProtocolConfig

PROOF_FILE = "proof.bin"
EVAL_POINT_FILE = "eval-point.bin"
EVAL_VALUE_FILE = "eval-value.bin"
METADATA_FILE = "metadata.json"


@dataclass
class ProofArtifact:
    """Everything a verifier needs besides the configuration."""
    proof_bytes: bytes
    eval_point: bytes
    eval_value: bytes
    num_variables: int
    config_fingerprint: Optional[bytes] = None

    @property
    def proof_size(self) -> int:
        return len(self.proof_bytes)

    def metadata(self, config: ProtocolConfig) -> Dict[str, Any]:
        data = config.to_dict()
        data["num_variables"] = self.num_variables
        data["proof_size"] = len(self.proof_bytes)
        data["eval_point_size"] = len(self.eval_point)
        data["eval_value_size"] = len(self.eval_value)
        if self.config_fingerprint is not None:
            data["config_fingerprint"] = self.config_fingerprint.hex()
        return data


def write_artifact(directory: str, artifact: ProofArtifact, config: ProtocolConfig) -> None:
    os.makedirs(directory, exist_ok=True)
    files = {
        PROOF_FILE: artifact.proof_bytes,
        EVAL_POINT_FILE: artifact.eval_point,
        EVAL_VALUE_FILE: artifact.eval_value,
    }
    for name, data in files.items():
        with open(os.path.join(directory, name), "wb") as f:
            f.write(data)

    with open(os.path.join(directory, METADATA_FILE), "w") as f:
        json.dump(artifact.metadata(config), f, indent=2)


def _read_bytes(directory: str, name: str) -> bytes:
    path = os.path.join(directory, name)
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as err:
        raise ArtifactFormatError(f"cannot read {path}: {err}") from err


def read_artifact(directory: str) -> Tuple[ProofArtifact, ProtocolConfig]:
    """Load an artifact directory and the configuration recorded with it.

    Raises:
        ArtifactFormatError: missing files, bad JSON, or sizes that disagree
            with the metadata.
    """
    metadata_path = os.path.join(directory, METADATA_FILE)
    try:
        with open(metadata_path) as f:
            metadata = json.load(f)
    except (OSError, json.JSONDecodeError) as err:
        raise ArtifactFormatError(f"cannot read {metadata_path}: {err}") from err

    try:
        config = ProtocolConfig.from_dict(metadata)
    except InvalidConfiguration as err:
        raise ArtifactFormatError(f"invalid configuration in metadata: {err}") from err

    artifact = ProofArtifact(
        proof_bytes=_read_bytes(directory, PROOF_FILE),
        eval_point=_read_bytes(directory, EVAL_POINT_FILE),
        eval_value=_read_bytes(directory, EVAL_VALUE_FILE),
        num_variables=config.num_variables,
    )

    expected_sizes = {
        "proof_size": len(artifact.proof_bytes),
        "eval_point_size": len(artifact.eval_point),
        "eval_value_size": len(artifact.eval_value),
    }
    for key, actual in expected_sizes.items():
        if metadata.get(key) != actual:
            raise ArtifactFormatError(f"metadata {key}={metadata.get(key)} but file has {actual} bytes")

    if len(artifact.eval_point) != artifact.num_variables * field_size_bytes():
        raise ArtifactFormatError(
            f"eval point is {len(artifact.eval_point)} bytes, expected "
            f"{artifact.num_variables} x {field_size_bytes()}"
        )

    fingerprint = metadata.get("config_fingerprint")
    if fingerprint is not None:
        try:
            artifact.config_fingerprint = bytes.fromhex(fingerprint)
        except (TypeError, ValueError) as err:
            raise ArtifactFormatError(f"malformed config_fingerprint: {err}") from err

    return artifact, config
