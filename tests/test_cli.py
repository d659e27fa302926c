"""Command line: prove, verify and stage subcommands."""

import json

import pytest

from whir_verifier.cli import build_parser, main
from whir_verifier.protocol.artifact import METADATA_FILE, PROOF_FILE

SMALL_FLAGS = [
    "--num-variables", "6",
    "--security-level", "32",
    "--pow-bits", "5",
    "--folding-factor", "2",
    "--starting-log-inv-rate", "1",
]


@pytest.fixture(scope="module")
def proof_dir(tmp_path_factory):
    out = tmp_path_factory.mktemp("cli") / "proof"
    assert main(["prove", "--out", str(out)] + SMALL_FLAGS) == 0
    return out


class TestCli:

    def test_prove_writes_artifact(self, proof_dir):
        metadata = json.loads((proof_dir / METADATA_FILE).read_text())
        assert metadata["num_variables"] == 6
        assert metadata["config"]["folding_factor"] == 2
        assert (proof_dir / PROOF_FILE).stat().st_size == metadata["proof_size"]

    def test_verify(self, proof_dir, capsys):
        assert main(["verify", str(proof_dir)]) == 0
        assert "Proof verified" in capsys.readouterr().out

    def test_stage(self, proof_dir, capsys):
        assert main(["stage", str(proof_dir), "--chunk-size", "800"]) == 0
        out = capsys.readouterr().out
        assert "Verification succeeded" in out
        assert "Closed record" in out

    def test_stage_chunk_ceiling(self, proof_dir, capsys):
        code = main(["stage", str(proof_dir), "--chunk-size", "800", "--max-chunk-size", "100"])
        assert code == 1
        captured = capsys.readouterr()
        assert "ChunkTooLarge" in captured.err
        assert "Closed record" in captured.out

    def test_verify_tampered(self, proof_dir, tmp_path, capsys):
        tampered = tmp_path / "tampered"
        tampered.mkdir()
        for path in proof_dir.iterdir():
            (tampered / path.name).write_bytes(path.read_bytes())
        proof = bytearray((tampered / PROOF_FILE).read_bytes())
        proof[-1] ^= 0xFF
        (tampered / PROOF_FILE).write_bytes(bytes(proof))
        assert main(["verify", str(tampered)]) == 1
        assert "VerificationFailed" in capsys.readouterr().err

    def test_verify_missing_directory(self, tmp_path, capsys):
        assert main(["verify", str(tmp_path / "missing")]) == 1
        assert "ArtifactFormatError" in capsys.readouterr().err

    def test_invalid_config_flag(self, tmp_path, capsys):
        code = main(["prove", "--out", str(tmp_path / "p"), "--num-variables", "0"])
        assert code == 1
        assert "InvalidConfiguration" in capsys.readouterr().err

    def test_default_pow_bits(self):
        args = build_parser().parse_args(["prove"])
        assert args.pow_bits is None
        assert args.num_variables == 6
        assert args.out == "proof"

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
