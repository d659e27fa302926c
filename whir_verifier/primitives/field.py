"""Goldilocks field GF(p) and cubic extension GF(p^3).

Uses galois library for all field arithmetic. FF and FF3 are the field types.
Polynomial coefficients live in FF; evaluation points, challenges and folded
codewords live in FF3.
"""

from typing import Iterable, List, Union

import galois

# --- Field Construction ---

GOLDILOCKS_PRIME = 0xFFFFFFFF00000001

FF = galois.GF(GOLDILOCKS_PRIME)
"""Base field GF(p) - Goldilocks prime field."""

# x^3 - x - 1, galois coefficient order is [x^3, x^2, x^1, x^0]
_irr_poly = galois.Poly([1, 0, GOLDILOCKS_PRIME - 1, GOLDILOCKS_PRIME - 1], field=FF)
FF3 = galois.GF(GOLDILOCKS_PRIME**3, irreducible_poly=_irr_poly)
"""Cubic extension field GF(p^3) with irreducible polynomial x^3 - x - 1."""

FIELD_EXTENSION_DEGREE = 3

# Goldilocks has 2-adicity 32
TWO_ADICITY = 32


# --- Coefficient Order Conversion ---
# Galois uses descending order [a2, a1, a0], we use ascending [a0, a1, a2].


def ff3(coeffs: List[int]) -> FF3:
    """Construct FF3 element from ascending-order coefficients [a0, a1, a2]."""
    return FF3.Vector(coeffs[::-1])


def ff3_coeffs(elem: FF3) -> List[int]:
    """Extract ascending-order coefficients [a0, a1, a2] from FF3 element."""
    return [int(c) for c in elem.vector()[::-1]]


def lift(values: Union[int, Iterable]) -> FF3:
    """Embed base field values (or plain ints < p) into FF3."""
    if isinstance(values, int):
        return FF3(values % GOLDILOCKS_PRIME)
    return FF3([int(v) % GOLDILOCKS_PRIME for v in values])


# --- Domain Support ---

# Domain shift for coset evaluation
SHIFT = 7

# Precomputed roots of unity: W[n] is a primitive 2^n-th root of unity
W: List[int] = [
    1,
    18446744069414584320,
    281474976710656,
    16777216,
    4096,
    64,
    8,
    2198989700608,
    4404853092538523347,
    6434636298004421797,
    4255134452441852017,
    9113133275150391358,
    4355325209153869931,
    4308460244895131701,
    7126024226993609386,
    1873558160482552414,
    8167150655112846419,
    5718075921287398682,
    3411401055030829696,
    8982441859486529725,
    1971462654193939361,
    6553637399136210105,
    8124823329697072476,
    5936499541590631774,
    2709866199236980323,
    8877499657461974390,
    3757607247483852735,
    4969973714567017225,
    2147253751702802259,
    2530564950562219707,
    1905180297017055339,
    3524815499551269279,
    7277203076849721926,
]


def get_omega(n_bits: int) -> int:
    """Return primitive 2^n_bits-th root of unity."""
    if n_bits < 0 or n_bits >= len(W):
        raise ValueError(f"n_bits must be in [0, {len(W) - 1}], got {n_bits}")
    return W[n_bits]


def pow_mod(base: int, exp: int, mod: int = GOLDILOCKS_PRIME) -> int:
    """Modular exponentiation."""
    return pow(base % mod, exp, mod)


def inv_mod(x: int, mod: int = GOLDILOCKS_PRIME) -> int:
    """Modular inverse using Fermat's little theorem."""
    if x % mod == 0:
        raise ZeroDivisionError("zero has no inverse")
    return pow_mod(x, mod - 2, mod)


def domain_points(log_size: int, offset: int, count: int = None) -> List[int]:
    """First `count` points of the coset offset * <w>, w a primitive 2^log_size root."""
    w = get_omega(log_size)
    n = (1 << log_size) if count is None else count
    points = [0] * n
    x = offset % GOLDILOCKS_PRIME
    for i in range(n):
        points[i] = x
        x = (x * w) % GOLDILOCKS_PRIME
    return points
