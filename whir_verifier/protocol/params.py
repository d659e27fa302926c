"""Protocol parameters and their canonical rendering into a domain separator."""

import math
from dataclasses import dataclass, field
from typing import List

import numpy as np
from blake3 import blake3

from whir_verifier.primitives.merkle_tree import DIGEST_SIZE, MerkleTree
from whir_verifier.primitives.transcript import NONCE_SIZE, DomainSeparator
from whir_verifier.protocol.codec import field_size_bytes
from whir_verifier.protocol.config import CONFIG_ENCODING_SIZE, DOMAIN_SEPARATOR, ProtocolConfig

# Public seed for the Merkle hash key. Key material only separates hash
# domains; it is not a secret.
PARAMETER_SEED = 0x5748_4952

MERKLE_ARITY = 2

# Bytes squeezed per base field coordinate of a challenge; the extra 64 bits
# keep the reduction mod p close to uniform.
CHALLENGE_LIMB_BYTES = 16
POW_CHALLENGE_BYTES = 32

# Sumcheck rounds send h(0), h(1), h(2)
SUMCHECK_EVALUATIONS = 3


@dataclass(frozen=True)
class CommittedLayer:
    """One Merkle-committed codeword: 2^log_size values, 2^fold_bits per leaf."""
    log_size: int
    fold_bits: int

    @property
    def size(self) -> int:
        return 1 << self.log_size

    @property
    def n_leaves(self) -> int:
        return 1 << (self.log_size - self.fold_bits)

    @property
    def leaf_width(self) -> int:
        return 1 << self.fold_bits


@dataclass(frozen=True)
class WhirParams:
    """Everything derived from a ProtocolConfig that prover and verifier share."""
    config: ProtocolConfig
    folding_schedule: List[int]
    layers: List[CommittedLayer]
    n_queries: int
    merkle_key: bytes = field(repr=False)
    merkle_arity: int = MERKLE_ARITY

    @property
    def num_variables(self) -> int:
        return self.config.num_variables

    @property
    def pow_bits(self) -> int:
        return self.config.pow_bits

    @property
    def query_bits(self) -> int:
        return self.layers[0].log_size - self.layers[0].fold_bits

    @property
    def challenge_bytes(self) -> int:
        return 3 * CHALLENGE_LIMB_BYTES

    @property
    def query_bytes(self) -> int:
        return (self.n_queries * self.query_bits + 7) // 8

    def merkle_tree(self) -> MerkleTree:
        return MerkleTree(self.merkle_key, arity=self.merkle_arity)

    def opening_size(self, layer: CommittedLayer) -> int:
        """Bytes of one query opening: leaf values plus Merkle siblings."""
        depth = MerkleTree.proof_length(layer.n_leaves, self.merkle_arity)
        return (
            layer.leaf_width * field_size_bytes()
            + depth * (self.merkle_arity - 1) * DIGEST_SIZE
        )


def _merkle_key(seed: int) -> bytes:
    # Deterministic across platforms: PCG64 output is specified for a given seed
    rng = np.random.Generator(np.random.PCG64(seed))
    return rng.bytes(DIGEST_SIZE)


def build_parameters(config: ProtocolConfig) -> WhirParams:
    """Derive protocol parameters. Pure and deterministic in `config`."""
    n = config.num_variables
    k = config.folding_factor

    schedule = [k] * (n // k)
    if n % k:
        schedule.append(n % k)

    layers = []
    log_size = n + config.starting_log_inv_rate
    for fold_bits in schedule:
        layers.append(CommittedLayer(log_size=log_size, fold_bits=fold_bits))
        log_size -= fold_bits

    n_queries = max(
        math.ceil((config.security_level - config.pow_bits) / config.starting_log_inv_rate), 1
    )

    return WhirParams(
        config=config,
        folding_schedule=schedule,
        layers=layers,
        n_queries=n_queries,
        merkle_key=_merkle_key(PARAMETER_SEED),
    )


# --- Domain Separator ---

def commit_statement(domain_separator: DomainSeparator, params: WhirParams) -> DomainSeparator:
    """Bind the configuration values, then the commitment shape."""
    ds = domain_separator.public(CONFIG_ENCODING_SIZE, "protocol_config")
    return ds.absorb(DIGEST_SIZE, "merkle_root")


def add_whir_proof(domain_separator: DomainSeparator, params: WhirParams) -> DomainSeparator:
    """Bind the proof shape: constraint, sumcheck/fold rounds, PoW, queries, openings."""
    fs = field_size_bytes()
    ds = domain_separator.public((params.num_variables + 1) * fs, "evaluation_constraint")

    for round_idx, fold_bits in enumerate(params.folding_schedule):
        for _ in range(fold_bits):
            ds = ds.absorb(SUMCHECK_EVALUATIONS * fs, "sumcheck_poly")
            ds = ds.squeeze(params.challenge_bytes, "folding_randomness")
        if round_idx < len(params.folding_schedule) - 1:
            ds = ds.absorb(DIGEST_SIZE, "merkle_root")

    ds = ds.absorb(fs, "final_coeff")

    if params.pow_bits > 0:
        # Difficulty is bound through the label
        ds = ds.squeeze(POW_CHALLENGE_BYTES, f"pow_challenge_{params.pow_bits}")
        ds = ds.absorb(NONCE_SIZE, "pow_nonce")

    ds = ds.squeeze(params.query_bytes, "query_indices")

    for layer in params.layers:
        ds = ds.hint(params.n_queries * params.opening_size(layer), "merkle_openings")

    return ds


def derive_domain_separator(params: WhirParams, label: str = DOMAIN_SEPARATOR) -> DomainSeparator:
    """Statement binding first, then proof shape. The order is part of the protocol."""
    ds = DomainSeparator(label)
    ds = commit_statement(ds, params)
    return add_whir_proof(ds, params)


def config_fingerprint(config: ProtocolConfig, label: str = DOMAIN_SEPARATOR) -> bytes:
    """Digest identifying the exact parameters an artifact was produced under."""
    domain_separator = derive_domain_separator(build_parameters(config), label)
    hasher = blake3(config.to_bytes())
    hasher.update(domain_separator.as_bytes())
    return hasher.digest()
