"""Command line front end: prove, verify and stage proof artifacts."""

import argparse
import logging
import sys
import time
from typing import List, Optional

from whir_verifier.errors import WhirError
from whir_verifier.protocol.artifact import read_artifact, write_artifact
from whir_verifier.protocol.config import (
    FOLDING_FACTOR,
    NUM_VARIABLES,
    SECURITY_LEVEL_BITS,
    STARTING_LOG_INV_RATE,
    ProtocolConfig,
    default_max_pow,
)
from whir_verifier.protocol.prover import create_test_polynomial, default_eval_point, generate_proof
from whir_verifier.protocol.staging import DEFAULT_CHUNK_SIZE, ProofStore, iter_chunks
from whir_verifier.protocol.verifier import verify_artifact, verify_proof

STAGING_OWNER = "cli"


def _print_config(config: ProtocolConfig) -> None:
    print("Configuration:")
    print(f"  - Number of variables: {config.num_variables}")
    print(f"  - Security level: {config.security_level} bits")
    print(f"  - PoW bits: {config.pow_bits}")
    print(f"  - Starting log inverse rate: {config.starting_log_inv_rate}")
    print(f"  - Folding factor: {config.folding_factor}")
    print()


def cmd_prove(args: argparse.Namespace) -> None:
    pow_bits = args.pow_bits
    if pow_bits is None:
        pow_bits = default_max_pow(args.num_variables, args.starting_log_inv_rate)
    config = ProtocolConfig(
        num_variables=args.num_variables,
        security_level=args.security_level,
        pow_bits=pow_bits,
        folding_factor=args.folding_factor,
        starting_log_inv_rate=args.starting_log_inv_rate,
    )

    print("WHIR Proof Generator")
    print("====================")
    _print_config(config)

    print("Creating test polynomial...")
    polynomial = create_test_polynomial(config.num_variables)
    print(f"  - Polynomial has {len(polynomial)} coefficients")
    print()

    eval_point = default_eval_point(config.num_variables)
    expected_value = polynomial.evaluate(eval_point)

    print("Generating proof...")
    start = time.perf_counter()
    artifact = generate_proof(config, polynomial, eval_point, fingerprint=args.fingerprint)
    print(f"  - Proof generated in {time.perf_counter() - start:.3f}s")
    print(f"  - Proof size: {artifact.proof_size} bytes")
    print()

    print("Verifying proof natively...")
    verify_proof(config, artifact, eval_point, expected_value)

    write_artifact(args.out, artifact, config)
    print(f"Saved artifact to {args.out}")


def cmd_verify(args: argparse.Namespace) -> None:
    artifact, config = read_artifact(args.directory)
    _print_config(config)
    start = time.perf_counter()
    verify_artifact(config, artifact)
    print(f"Proof verified in {time.perf_counter() - start:.3f}s")


def cmd_stage(args: argparse.Namespace) -> None:
    artifact, config = read_artifact(args.directory)
    store = ProofStore(max_chunk_size=args.max_chunk_size)
    record_id = args.record_id

    print(f"Initializing record {record_id!r}...")
    store.initialize(record_id, artifact.eval_point, artifact.eval_value, STAGING_OWNER)
    try:
        chunks = list(iter_chunks(artifact.proof_bytes, args.chunk_size))
        print(f"Uploading {artifact.proof_size} bytes in {len(chunks)} chunks...")
        for i, chunk in enumerate(chunks):
            store.append_chunk(record_id, chunk, STAGING_OWNER)
            print(f"  - Chunk {i + 1}/{len(chunks)}: {len(chunk)} bytes")

        print("Verifying staged proof...")
        store.verify(record_id, config)
        print("  - Verification succeeded")
    finally:
        store.close(record_id, STAGING_OWNER)
        print(f"Closed record {record_id!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="whir-verifier",
        description="Generate, verify and stage WHIR-style polynomial evaluation proofs.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    prove = sub.add_parser("prove", help="Prove the test polynomial at [1, ..., n]")
    prove.add_argument("--out", default="proof", help="Artifact output directory")
    prove.add_argument("--num-variables", type=int, default=NUM_VARIABLES)
    prove.add_argument("--security-level", type=int, default=SECURITY_LEVEL_BITS)
    prove.add_argument(
        "--pow-bits",
        type=int,
        default=None,
        help="Proof-of-work bits (default: num_variables + log_inv_rate - 3)",
    )
    prove.add_argument("--folding-factor", type=int, default=FOLDING_FACTOR)
    prove.add_argument("--starting-log-inv-rate", type=int, default=STARTING_LOG_INV_RATE)
    prove.add_argument(
        "--fingerprint",
        action="store_true",
        help="Record the config fingerprint so mismatches are reported distinctly",
    )
    prove.set_defaults(func=cmd_prove)

    verify = sub.add_parser("verify", help="Verify an artifact directory")
    verify.add_argument("directory")
    verify.set_defaults(func=cmd_verify)

    stage = sub.add_parser("stage", help="Run the staged upload and verify workflow")
    stage.add_argument("directory")
    stage.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE)
    stage.add_argument("--max-chunk-size", type=int, default=None)
    stage.add_argument("--record-id", default="proof")
    stage.set_defaults(func=cmd_stage)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        args.func(args)
    except WhirError as err:
        print(f"error: {type(err).__name__}: {err}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
