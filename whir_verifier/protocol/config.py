"""Protocol configuration: the five small integers both sides must agree on."""

import struct
from dataclasses import asdict, dataclass
from typing import Any, Dict

from whir_verifier.errors import InvalidConfiguration
from whir_verifier.primitives.field import TWO_ADICITY

# Label both sides prepend to the domain separator.
DOMAIN_SEPARATOR = "whir-solana"

# --- Defaults ---

NUM_VARIABLES = 6
SECURITY_LEVEL_BITS = 100
STARTING_LOG_INV_RATE = 1
FOLDING_FACTOR = 4

MAX_SECURITY_LEVEL = 512
MAX_POW_BITS = 60

# num_variables, security_level, pow_bits, folding_factor, starting_log_inv_rate
_CONFIG_ENCODING = struct.Struct("<5Q")
CONFIG_ENCODING_SIZE = _CONFIG_ENCODING.size


def default_max_pow(num_variables: int, log_inv_rate: int) -> int:
    """Default proof-of-work difficulty for a polynomial size and rate."""
    return max(num_variables + log_inv_rate - 3, 0)


POW_BITS = default_max_pow(NUM_VARIABLES, STARTING_LOG_INV_RATE)


@dataclass(frozen=True)
class ProtocolConfig:
    """Proof configuration.

    Values are validated on construction instead of being narrowed to a wire
    integer width, so an out-of-range value is rejected rather than truncated.
    """
    num_variables: int = NUM_VARIABLES
    security_level: int = SECURITY_LEVEL_BITS
    pow_bits: int = POW_BITS
    folding_factor: int = FOLDING_FACTOR
    starting_log_inv_rate: int = STARTING_LOG_INV_RATE

    def __post_init__(self) -> None:
        for name, value in asdict(self).items():
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidConfiguration(f"{name} must be an integer, got {value!r}")

        if self.num_variables < 1:
            raise InvalidConfiguration(f"num_variables must be >= 1, got {self.num_variables}")
        if not 1 <= self.folding_factor <= self.num_variables:
            raise InvalidConfiguration(
                f"folding_factor must be in [1, num_variables={self.num_variables}], "
                f"got {self.folding_factor}"
            )
        if self.starting_log_inv_rate < 1:
            raise InvalidConfiguration(
                f"starting_log_inv_rate must be >= 1, got {self.starting_log_inv_rate}"
            )
        if self.num_variables + self.starting_log_inv_rate > TWO_ADICITY:
            raise InvalidConfiguration(
                f"evaluation domain 2^{self.num_variables + self.starting_log_inv_rate} "
                f"exceeds the field's 2^{TWO_ADICITY} roots of unity"
            )
        if not 1 <= self.security_level <= MAX_SECURITY_LEVEL:
            raise InvalidConfiguration(
                f"security_level must be in [1, {MAX_SECURITY_LEVEL}], got {self.security_level}"
            )
        if not 0 <= self.pow_bits <= MAX_POW_BITS:
            raise InvalidConfiguration(f"pow_bits must be in [0, {MAX_POW_BITS}], got {self.pow_bits}")
        if self.pow_bits >= self.security_level:
            raise InvalidConfiguration(
                f"pow_bits ({self.pow_bits}) must be below security_level ({self.security_level})"
            )

    def to_bytes(self) -> bytes:
        """Canonical encoding: every field as a little-endian u64, in field order."""
        return _CONFIG_ENCODING.pack(
            self.num_variables,
            self.security_level,
            self.pow_bits,
            self.folding_factor,
            self.starting_log_inv_rate,
        )

    # --- Metadata ---

    def to_dict(self) -> Dict[str, Any]:
        """Metadata layout: num_variables at the top, the rest under "config"."""
        return {
            "num_variables": self.num_variables,
            "config": {
                "security_level": self.security_level,
                "pow_bits": self.pow_bits,
                "starting_log_inv_rate": self.starting_log_inv_rate,
                "folding_factor": self.folding_factor,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProtocolConfig":
        try:
            inner = data["config"]
            return cls(
                num_variables=data["num_variables"],
                security_level=inner["security_level"],
                pow_bits=inner["pow_bits"],
                folding_factor=inner["folding_factor"],
                starting_log_inv_rate=inner["starting_log_inv_rate"],
            )
        except (KeyError, TypeError) as err:
            raise InvalidConfiguration(f"incomplete configuration metadata: {err}") from err
