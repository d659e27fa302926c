"""
Fiat-Shamir transcript over a BLAKE3 duplex sponge.

A DomainSeparator declares, up front, the exact sequence of transcript
operations a protocol performs. Prover and verifier both seed their sponge with
the rendered separator and then check every operation against it, so a
mismatch in parameters or protocol shape changes every challenge.

Operation kinds:
    A  absorb a prover message (written to / read from the proof string)
    P  absorb public data known to both sides (never written)
    S  squeeze challenge bytes
    H  hint (written to / read from the proof string, not absorbed)
"""

from dataclasses import dataclass
from typing import List, Tuple

from blake3 import blake3

from whir_verifier.errors import TranscriptError

# --- Constants ---

OP_ABSORB = "A"
OP_PUBLIC = "P"
OP_SQUEEZE = "S"
OP_HINT = "H"

_OP_KINDS = (OP_ABSORB, OP_PUBLIC, OP_SQUEEZE, OP_HINT)
_SEPARATOR = "\0"

_ABSORB_TAG = b"\x01"
_SQUEEZE_TAG = b"\x02"
_RATCHET_TAG = b"\x03"

NONCE_SIZE = 8


# --- Domain Separator ---

@dataclass(frozen=True)
class TranscriptOp:
    kind: str
    length: int
    label: str

    def render(self) -> str:
        return f"{self.kind}{self.length}{self.label}"


class DomainSeparator:
    """Protocol label plus the ordered list of transcript operations."""

    def __init__(self, label: str, ops: Tuple[TranscriptOp, ...] = ()):
        if _SEPARATOR in label:
            raise ValueError("domain separator label must not contain NUL")
        self.label = label
        self.ops = tuple(ops)

    def _push(self, kind: str, length: int, label: str) -> "DomainSeparator":
        if kind not in _OP_KINDS:
            raise ValueError(f"unknown transcript op kind {kind!r}")
        if length < 0:
            raise ValueError(f"op length must be non-negative, got {length}")
        if _SEPARATOR in label or (label and label[0].isdigit()):
            raise ValueError(f"invalid op label {label!r}")
        return DomainSeparator(self.label, self.ops + (TranscriptOp(kind, length, label),))

    def absorb(self, length: int, label: str) -> "DomainSeparator":
        return self._push(OP_ABSORB, length, label)

    def public(self, length: int, label: str) -> "DomainSeparator":
        return self._push(OP_PUBLIC, length, label)

    def squeeze(self, length: int, label: str) -> "DomainSeparator":
        return self._push(OP_SQUEEZE, length, label)

    def hint(self, length: int, label: str) -> "DomainSeparator":
        return self._push(OP_HINT, length, label)

    def as_bytes(self) -> bytes:
        rendered = [self.label] + [op.render() for op in self.ops]
        return _SEPARATOR.join(rendered).encode("utf-8")

    def to_prover_state(self) -> "ProverState":
        return ProverState(self)

    def to_verifier_state(self, narg_string: bytes) -> "VerifierState":
        return VerifierState(self, narg_string)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DomainSeparator):
            return NotImplemented
        return self.as_bytes() == other.as_bytes()

    def __hash__(self) -> int:
        return hash(self.as_bytes())

    def __repr__(self) -> str:
        return f"DomainSeparator({self.label!r}, {len(self.ops)} ops)"


# --- Sponge ---

class _Sponge:
    """Duplex sponge with a 32-byte chaining state, updated by BLAKE3."""

    def __init__(self, seed: bytes):
        self.state = blake3(seed).digest()

    def absorb(self, data: bytes) -> None:
        self.state = blake3(_ABSORB_TAG + self.state + data).digest()

    def squeeze(self, length: int) -> bytes:
        out = blake3(_SQUEEZE_TAG + self.state).digest(length=length)
        self.state = blake3(_RATCHET_TAG + self.state).digest()
        return out


# --- Transcript States ---

class _TranscriptState:
    """Sponge plus a cursor into the domain separator's op list."""

    def __init__(self, domain_separator: DomainSeparator):
        self.domain_separator = domain_separator
        self._sponge = _Sponge(domain_separator.as_bytes())
        self._ops: List[TranscriptOp] = list(domain_separator.ops)
        self._cursor = 0

    def _expect(self, kind: str, length: int) -> TranscriptOp:
        if self._cursor >= len(self._ops):
            raise TranscriptError(f"unexpected {kind}{length}: transcript pattern exhausted")
        op = self._ops[self._cursor]
        if op.kind != kind or op.length != length:
            raise TranscriptError(
                f"transcript op {self._cursor} is {op.render()!r}, got {kind}{length}"
            )
        self._cursor += 1
        return op

    def public_bytes(self, data: bytes) -> None:
        """Absorb data both sides know; nothing is written to the proof string."""
        self._expect(OP_PUBLIC, len(data))
        self._sponge.absorb(data)

    def challenge_bytes(self, length: int) -> bytes:
        self._expect(OP_SQUEEZE, length)
        return self._sponge.squeeze(length)

    def is_complete(self) -> bool:
        return self._cursor == len(self._ops)


class ProverState(_TranscriptState):
    """Prover side: absorbs messages and records them into the proof string."""

    def __init__(self, domain_separator: DomainSeparator):
        super().__init__(domain_separator)
        self._narg = bytearray()

    def add_bytes(self, data: bytes) -> None:
        self._expect(OP_ABSORB, len(data))
        self._sponge.absorb(data)
        self._narg.extend(data)

    def hint_bytes(self, data: bytes) -> None:
        self._expect(OP_HINT, len(data))
        self._narg.extend(data)

    def narg_string(self) -> bytes:
        return bytes(self._narg)


class VerifierState(_TranscriptState):
    """Verifier side: reads prover messages back out of the proof string."""

    def __init__(self, domain_separator: DomainSeparator, narg_string: bytes):
        super().__init__(domain_separator)
        self._narg = bytes(narg_string)
        self._read = 0

    def _take(self, length: int) -> bytes:
        end = self._read + length
        if end > len(self._narg):
            raise TranscriptError(
                f"proof string too short: need {length} bytes at offset {self._read}, "
                f"have {len(self._narg) - self._read}"
            )
        data = self._narg[self._read:end]
        self._read = end
        return data

    def next_bytes(self, length: int) -> bytes:
        self._expect(OP_ABSORB, length)
        data = self._take(length)
        self._sponge.absorb(data)
        return data

    def hint_bytes(self, length: int) -> bytes:
        self._expect(OP_HINT, length)
        return self._take(length)

    def remaining(self) -> int:
        return len(self._narg) - self._read

    def finish(self) -> None:
        """Require the whole pattern and the whole proof string to be consumed."""
        if not self.is_complete():
            raise TranscriptError(f"transcript pattern not complete: stopped at op {self._cursor}")
        if self.remaining():
            raise TranscriptError(f"{self.remaining()} trailing bytes after proof")


# --- Proof of Work ---

def _pow_value(challenge: bytes, nonce: int) -> int:
    digest = blake3(challenge + nonce.to_bytes(NONCE_SIZE, "little")).digest()
    return int.from_bytes(digest[:8], "big")


def verify_grinding(challenge: bytes, nonce: int, pow_bits: int) -> bool:
    """Check that hash(challenge || nonce) has `pow_bits` leading zero bits."""
    if pow_bits == 0:
        return True
    if nonce < 0 or nonce >= 1 << (8 * NONCE_SIZE):
        return False
    return _pow_value(challenge, nonce) >> (64 - pow_bits) == 0


def grinding(challenge: bytes, pow_bits: int) -> int:
    """Find the smallest proof-of-work nonce for the challenge."""
    nonce = 0
    while not verify_grinding(challenge, nonce, pow_bits):
        nonce += 1
    return nonce
