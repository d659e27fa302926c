"""
Hash-based multilinear polynomial commitment with a single evaluation claim.

The prover Reed-Solomon encodes the coefficient list on a multiplicative coset,
commits to it with a Merkle tree, and then runs a sumcheck over the
coefficient table against the monomial weights of the evaluation point. Every
sumcheck challenge also folds the codeword in half, the same way FRI folds, and
after each folding round the folded codeword is committed again. The verifier
checks the sumcheck transcript, then spot-checks the folding chain at random
positions against the Merkle openings.

The commitment absorbs the canonical protocol configuration as public data
ahead of the Merkle root, so every challenge depends on all config values.

Transcript layout per round (variables bound least significant bit first):

    sumcheck_poly       h(0), h(1), h(2)
    folding_randomness  r
    merkle_root         folded codeword commitment (all but the last round)
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from whir_verifier.errors import CommitmentError, CommitmentParseError, ProveError, TranscriptError
from whir_verifier.primitives.field import (
    FF3,
    GOLDILOCKS_PRIME,
    SHIFT,
    domain_points,
    ff3,
    get_omega,
    inv_mod,
    lift,
    pow_mod,
)
from whir_verifier.primitives.merkle_tree import DIGEST_SIZE, MerkleRoot, MerkleTree
from whir_verifier.primitives.polynomial import CoefficientList, fold_table, weight_table
from whir_verifier.primitives.transcript import (
    NONCE_SIZE,
    ProverState,
    VerifierState,
    grinding,
    verify_grinding,
)
from whir_verifier.protocol.codec import (
    decode_element,
    decode_elements,
    encode_element,
    encode_point,
    field_size_bytes,
)
from whir_verifier.protocol.params import (
    CHALLENGE_LIMB_BYTES,
    POW_CHALLENGE_BYTES,
    SUMCHECK_EVALUATIONS,
    CommittedLayer,
    WhirParams,
)

logger = logging.getLogger(__name__)

_INV_TWO = FF3(inv_mod(2))


# --- Data Structures ---

@dataclass
class Statement:
    """Claim that the committed polynomial evaluates to `value` at `point`."""
    point: List[FF3]
    value: FF3

    def to_bytes(self) -> bytes:
        return encode_point(self.point) + encode_element(self.value)


@dataclass
class Witness:
    """Prover-side commitment state."""
    polynomial: CoefficientList
    codeword: FF3
    tree: MerkleTree


@dataclass
class ParsedCommitment:
    root: MerkleRoot


# --- Shared Helpers ---

def fold_pairs(values: FF3, xs: FF3, r: FF3) -> FF3:
    """Fold values[i], values[i + half] (at x and -x) into one value at x^2.

    With f(x) = f_e(x^2) + x * f_o(x^2), the result is
    (1 - r) * f_e(x^2) + r * f_o(x^2).
    """
    half = len(values) // 2
    a = values[:half]
    b = values[half:]
    even = (a + b) * _INV_TWO
    odd = (a - b) * _INV_TWO * xs ** -1
    return even + r * (odd - even)


def fold_codeword(codeword: FF3, log_size: int, offset: int, r: FF3) -> FF3:
    xs = lift(domain_points(log_size, offset, count=len(codeword) // 2))
    return fold_pairs(codeword, xs, r)


def fold_leaf(values: FF3, leaf_idx: int, layer: CommittedLayer, offset: int,
              challenges: Sequence[FF3]) -> FF3:
    """Apply one layer's folding challenges to a single opened leaf.

    Slot t of leaf j sits at codeword position j + t * n_leaves, and that
    relation survives every fold within the layer.
    """
    log_size = layer.log_size
    for r in challenges:
        w = get_omega(log_size)
        half = len(values) // 2
        xs = lift([
            offset * pow_mod(w, leaf_idx + t * layer.n_leaves) % GOLDILOCKS_PRIME
            for t in range(half)
        ])
        values = fold_pairs(values, xs, r)
        offset = pow_mod(offset, 2)
        log_size -= 1
    return values[0]


def layer_leaves(codeword: FF3, fold_bits: int) -> List[bytes]:
    """Group the codeword into leaves of 2^fold_bits values, strided by n_leaves."""
    n_leaves = len(codeword) >> fold_bits
    return [
        b"".join(encode_element(codeword[j + t * n_leaves]) for t in range(1 << fold_bits))
        for j in range(n_leaves)
    ]


def interpolate_quadratic(h: Sequence[FF3], r: FF3) -> FF3:
    """Evaluate the quadratic through (0, h0), (1, h1), (2, h2) at r."""
    one = FF3(1)
    two = FF3(2)
    return (
        h[0] * (r - one) * (r - two) * _INV_TWO
        - h[1] * r * (r - two)
        + h[2] * r * (r - one) * _INV_TWO
    )


def squeeze_challenge(state, params: WhirParams) -> FF3:
    data = state.challenge_bytes(params.challenge_bytes)
    limbs = [
        int.from_bytes(data[i:i + CHALLENGE_LIMB_BYTES], "little") % GOLDILOCKS_PRIME
        for i in range(0, len(data), CHALLENGE_LIMB_BYTES)
    ]
    return ff3(limbs)


def squeeze_query_indices(state, params: WhirParams) -> List[int]:
    data = state.challenge_bytes(params.query_bytes)
    bits = int.from_bytes(data, "little")
    mask = (1 << params.query_bits) - 1
    return [(bits >> (i * params.query_bits)) & mask for i in range(params.n_queries)]


def weight_at_challenges(point: Sequence[FF3], challenges: Sequence[FF3]) -> FF3:
    """Fully folded monomial weight table: prod_k (1 + r_k * (z_{n-1-k} - 1))."""
    one = FF3(1)
    acc = one
    n = len(point)
    for k, r in enumerate(challenges):
        acc = acc * (one + r * (point[n - 1 - k] - one))
    return acc


def _split_openings(data: bytes, params: WhirParams, layer: CommittedLayer):
    size = params.opening_size(layer)
    values_size = layer.leaf_width * field_size_bytes()
    openings = []
    for i in range(params.n_queries):
        chunk = data[i * size:(i + 1) * size]
        leaf = chunk[:values_size]
        siblings = [
            chunk[j:j + DIGEST_SIZE] for j in range(values_size, len(chunk), DIGEST_SIZE)
        ]
        openings.append((leaf, siblings))
    return openings


# --- Commitment ---

class CommitmentWriter:
    """Encodes and commits a polynomial into the prover transcript."""

    def __init__(self, params: WhirParams):
        self.params = params

    def commit(self, prover_state: ProverState, polynomial: CoefficientList) -> Witness:
        if polynomial.num_variables != self.params.num_variables:
            raise CommitmentError(
                f"polynomial has {polynomial.num_variables} variables, "
                f"parameters expect {self.params.num_variables}"
            )
        layer = self.params.layers[0]
        codeword = polynomial.encode(layer.log_size, SHIFT)

        tree = self.params.merkle_tree()
        tree.merkelize(layer_leaves(codeword, layer.fold_bits))
        try:
            prover_state.public_bytes(self.params.config.to_bytes())
            prover_state.add_bytes(tree.get_root())
        except TranscriptError as err:
            raise CommitmentError(f"commitment does not fit the transcript: {err}") from err

        logger.debug("committed %d-variable polynomial, codeword size %d",
                     polynomial.num_variables, len(codeword))
        return Witness(polynomial=polynomial, codeword=codeword, tree=tree)


class CommitmentReader:
    """Reads a commitment back out of the verifier transcript."""

    def __init__(self, params: WhirParams):
        self.params = params

    def parse_commitment(self, verifier_state: VerifierState) -> ParsedCommitment:
        try:
            verifier_state.public_bytes(self.params.config.to_bytes())
            root = verifier_state.next_bytes(DIGEST_SIZE)
        except TranscriptError as err:
            raise CommitmentParseError(f"cannot read commitment: {err}") from err
        return ParsedCommitment(root=root)


# --- Prover ---

class Prover:
    def __init__(self, params: WhirParams):
        self.params = params

    def prove(self, prover_state: ProverState, statement: Statement, witness: Witness) -> None:
        """Write the evaluation proof for `statement` into the prover transcript."""
        params = self.params
        if len(statement.point) != params.num_variables:
            raise ProveError(
                f"evaluation point has {len(statement.point)} coordinates, "
                f"expected {params.num_variables}"
            )
        try:
            self._prove(prover_state, statement, witness)
        except TranscriptError as err:
            raise ProveError(f"transcript rejected proof message: {err}") from err

    def _prove(self, prover_state: ProverState, statement: Statement, witness: Witness) -> None:
        params = self.params
        prover_state.public_bytes(statement.to_bytes())

        coeffs = lift(witness.polynomial.coeffs)
        weights = weight_table(statement.point)
        if np.sum(coeffs * weights) != statement.value:
            raise ProveError("claimed value does not match the committed polynomial")

        codeword = witness.codeword
        log_size = params.layers[0].log_size
        offset = SHIFT
        trees = [witness.tree]
        two = FF3(2)

        n_rounds = len(params.folding_schedule)
        for round_idx, fold_bits in enumerate(params.folding_schedule):
            for _ in range(fold_bits):
                c0, c1 = coeffs[0::2], coeffs[1::2]
                g0, g1 = weights[0::2], weights[1::2]
                h = [
                    np.sum(c0 * g0),
                    np.sum(c1 * g1),
                    np.sum((two * c1 - c0) * (two * g1 - g0)),
                ]
                prover_state.add_bytes(encode_point(h))
                r = squeeze_challenge(prover_state, params)

                coeffs = fold_table(coeffs, r)
                weights = fold_table(weights, r)
                codeword = fold_codeword(codeword, log_size, offset, r)
                log_size -= 1
                offset = pow_mod(offset, 2)

            if round_idx < n_rounds - 1:
                tree = params.merkle_tree()
                tree.merkelize(layer_leaves(codeword, params.layers[round_idx + 1].fold_bits))
                prover_state.add_bytes(tree.get_root())
                trees.append(tree)

        final = coeffs[0]
        prover_state.add_bytes(encode_element(final))

        if params.pow_bits > 0:
            challenge = prover_state.challenge_bytes(POW_CHALLENGE_BYTES)
            nonce = grinding(challenge, params.pow_bits)
            prover_state.add_bytes(nonce.to_bytes(NONCE_SIZE, "little"))
            logger.debug("found %d-bit proof of work nonce %d", params.pow_bits, nonce)

        indices = squeeze_query_indices(prover_state, params)
        positions = list(indices)
        for layer, tree in zip(params.layers, trees):
            hint = bytearray()
            for i, pos in enumerate(positions):
                leaf = pos % layer.n_leaves
                hint.extend(tree.get_leaf(leaf))
                hint.extend(b"".join(tree.get_group_proof(leaf)))
                positions[i] = leaf
            prover_state.hint_bytes(bytes(hint))


# --- Verifier ---

class Verifier:
    def __init__(self, params: WhirParams):
        self.params = params

    def verify(self, verifier_state: VerifierState, commitment: ParsedCommitment,
               statement: Statement) -> bool:
        """Check an evaluation proof.

        Returns False when a check fails. Malformed proof bytes surface as
        TranscriptError or MalformedFieldElement.
        """
        params = self.params
        fs = field_size_bytes()
        verifier_state.public_bytes(statement.to_bytes())

        claim = statement.value
        roots = [commitment.root]
        round_challenges: List[List[FF3]] = []

        n_rounds = len(params.folding_schedule)
        for round_idx, fold_bits in enumerate(params.folding_schedule):
            challenges = []
            for _ in range(fold_bits):
                h = decode_elements(verifier_state.next_bytes(SUMCHECK_EVALUATIONS * fs),
                                    SUMCHECK_EVALUATIONS)
                if h[0] + h[1] != claim:
                    logger.debug("sumcheck round sum mismatch in round %d", round_idx)
                    return False
                r = squeeze_challenge(verifier_state, params)
                claim = interpolate_quadratic(h, r)
                challenges.append(r)
            round_challenges.append(challenges)
            if round_idx < n_rounds - 1:
                roots.append(verifier_state.next_bytes(DIGEST_SIZE))

        final = decode_element(verifier_state.next_bytes(fs))
        all_challenges = [r for challenges in round_challenges for r in challenges]
        if claim != final * weight_at_challenges(statement.point, all_challenges):
            logger.debug("final sumcheck claim does not match the final coefficient")
            return False

        if params.pow_bits > 0:
            challenge = verifier_state.challenge_bytes(POW_CHALLENGE_BYTES)
            nonce = int.from_bytes(verifier_state.next_bytes(NONCE_SIZE), "little")
            if not verify_grinding(challenge, nonce, params.pow_bits):
                logger.debug("proof of work check failed")
                return False

        indices = squeeze_query_indices(verifier_state, params)
        openings = [
            _split_openings(
                verifier_state.hint_bytes(params.n_queries * params.opening_size(layer)),
                params,
                layer,
            )
            for layer in params.layers
        ]

        tree = params.merkle_tree()
        for q, pos in enumerate(indices):
            expected = None
            offset = SHIFT
            for li, layer in enumerate(params.layers):
                leaf_idx = pos % layer.n_leaves
                slot = pos // layer.n_leaves
                leaf_bytes, siblings = openings[li][q]
                values = FF3([int(v) for v in decode_elements(leaf_bytes, layer.leaf_width)])

                if expected is not None and values[slot] != expected:
                    logger.debug("query %d: fold chain broken at layer %d", q, li)
                    return False
                if not tree.verify_group_proof(roots[li], siblings, leaf_idx, leaf_bytes):
                    logger.debug("query %d: Merkle path rejected at layer %d", q, li)
                    return False

                expected = fold_leaf(values, leaf_idx, layer, offset, round_challenges[li])
                offset = pow_mod(offset, 1 << layer.fold_bits)
                pos = leaf_idx

            if expected != final:
                logger.debug("query %d: folded value differs from final coefficient", q)
                return False

        verifier_state.finish()
        return True
