"""On-disk artifact layout: proof.bin, eval-point.bin, eval-value.bin, metadata.json."""

import json
import os

import pytest

from whir_verifier.errors import ArtifactFormatError
from whir_verifier.protocol.artifact import (
    EVAL_POINT_FILE,
    METADATA_FILE,
    PROOF_FILE,
    read_artifact,
    write_artifact,
)
from whir_verifier.protocol.verifier import verify_artifact


class TestArtifactFiles:

    def test_files_written(self, tmp_path, small_artifact, small_config):
        write_artifact(str(tmp_path), small_artifact, small_config)
        assert sorted(os.listdir(tmp_path)) == [
            "eval-point.bin", "eval-value.bin", "metadata.json", "proof.bin",
        ]
        assert (tmp_path / PROOF_FILE).read_bytes() == small_artifact.proof_bytes

    def test_metadata_layout(self, tmp_path, small_artifact, small_config):
        write_artifact(str(tmp_path), small_artifact, small_config)
        metadata = json.loads((tmp_path / METADATA_FILE).read_text())
        assert metadata == {
            "num_variables": 6,
            "proof_size": len(small_artifact.proof_bytes),
            "eval_point_size": 144,
            "eval_value_size": 24,
            "config": {
                "security_level": 32,
                "pow_bits": 5,
                "starting_log_inv_rate": 1,
                "folding_factor": 2,
            },
        }

    def test_read_back_and_verify(self, tmp_path, small_artifact, small_config):
        write_artifact(str(tmp_path), small_artifact, small_config)
        artifact, config = read_artifact(str(tmp_path))
        assert config == small_config
        assert artifact == small_artifact
        verify_artifact(config, artifact)

    def test_fingerprint_round_trip(self, tmp_path, fingerprinted_artifact, small_config):
        write_artifact(str(tmp_path), fingerprinted_artifact, small_config)
        metadata = json.loads((tmp_path / METADATA_FILE).read_text())
        assert metadata["config_fingerprint"] == fingerprinted_artifact.config_fingerprint.hex()
        artifact, _ = read_artifact(str(tmp_path))
        assert artifact.config_fingerprint == fingerprinted_artifact.config_fingerprint


class TestArtifactErrors:

    @pytest.fixture
    def artifact_dir(self, tmp_path, small_artifact, small_config):
        write_artifact(str(tmp_path), small_artifact, small_config)
        return tmp_path

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ArtifactFormatError):
            read_artifact(str(tmp_path / "nope"))

    def test_missing_proof(self, artifact_dir):
        (artifact_dir / PROOF_FILE).unlink()
        with pytest.raises(ArtifactFormatError):
            read_artifact(str(artifact_dir))

    def test_bad_json(self, artifact_dir):
        (artifact_dir / METADATA_FILE).write_text("{not json")
        with pytest.raises(ArtifactFormatError):
            read_artifact(str(artifact_dir))

    def test_size_mismatch(self, artifact_dir):
        with open(artifact_dir / PROOF_FILE, "ab") as f:
            f.write(b"\0")
        with pytest.raises(ArtifactFormatError):
            read_artifact(str(artifact_dir))

    def test_point_size_disagrees_with_num_variables(self, artifact_dir):
        (artifact_dir / EVAL_POINT_FILE).write_bytes(bytes(5 * 24))
        metadata = json.loads((artifact_dir / METADATA_FILE).read_text())
        metadata["eval_point_size"] = 5 * 24
        (artifact_dir / METADATA_FILE).write_text(json.dumps(metadata))
        with pytest.raises(ArtifactFormatError):
            read_artifact(str(artifact_dir))

    def test_invalid_config(self, artifact_dir):
        metadata = json.loads((artifact_dir / METADATA_FILE).read_text())
        metadata["config"]["pow_bits"] = 999
        (artifact_dir / METADATA_FILE).write_text(json.dumps(metadata))
        with pytest.raises(ArtifactFormatError):
            read_artifact(str(artifact_dir))

    def test_bad_fingerprint(self, artifact_dir):
        metadata = json.loads((artifact_dir / METADATA_FILE).read_text())
        metadata["config_fingerprint"] = "zz"
        (artifact_dir / METADATA_FILE).write_text(json.dumps(metadata))
        with pytest.raises(ArtifactFormatError):
            read_artifact(str(artifact_dir))
