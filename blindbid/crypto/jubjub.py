"""
Baby Jubjub - twisted Edwards curve embedded in the BN254 scalar field.

Curve: a*x^2 + y^2 = 1 + d*x^2*y^2 over FIELD_PRIME, with a=168700 and
d=168696 (EIP-2494). The group has order 8*l; every point handled by the
bid layer lives in the prime-order subgroup of order l.

Because the curve's base field is the circuit's native field, point
arithmetic is cheap to constrain: the Pedersen commitment of a bid is
recomputed inside the circuit by the fixed-base gadget in
``blindbid.plonk.gadgets``.

Encoding:
- Points: 32 bytes, little-endian y with the top bit carrying the parity of x
- Scalars: 32 bytes little-endian, canonical (< l)
"""

import hashlib
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from blindbid.crypto.poseidon import FIELD_PRIME
from blindbid.errors import DecodingError


# =============================================================================
# Constants
# =============================================================================

JUBJUB_A = 168700
JUBJUB_D = 168696

# Order of the prime subgroup
SUBGROUP_ORDER = 2736030358979909402780800718157159386076813972158567259200215660948447373041
COFACTOR = 8

# Bits needed for any canonical scalar
SCALAR_BITS = SUBGROUP_ORDER.bit_length()

POINT_SIZE = 32
SCALAR_SIZE = 32

_SIGN_BIT = 1 << 255


# =============================================================================
# Field helpers
# =============================================================================


def _inv(x: int) -> int:
    return pow(x, FIELD_PRIME - 2, FIELD_PRIME)


def _find_non_residue() -> int:
    z = 2
    while pow(z, (FIELD_PRIME - 1) // 2, FIELD_PRIME) != FIELD_PRIME - 1:
        z += 1
    return z


_TWO_ADICITY = ((FIELD_PRIME - 1) & -(FIELD_PRIME - 1)).bit_length() - 1
_ODD_PART = (FIELD_PRIME - 1) >> _TWO_ADICITY
_NON_RESIDUE = _find_non_residue()


def sqrt_mod(n: int) -> Optional[int]:
    """
    Square root in the base field (Tonelli-Shanks).

    Returns None when n is not a quadratic residue.
    """
    n %= FIELD_PRIME
    if n == 0:
        return 0
    if pow(n, (FIELD_PRIME - 1) // 2, FIELD_PRIME) != 1:
        return None

    m = _TWO_ADICITY
    c = pow(_NON_RESIDUE, _ODD_PART, FIELD_PRIME)
    t = pow(n, _ODD_PART, FIELD_PRIME)
    r = pow(n, (_ODD_PART + 1) // 2, FIELD_PRIME)

    while t != 1:
        i = 1
        t2 = t * t % FIELD_PRIME
        while t2 != 1:
            t2 = t2 * t2 % FIELD_PRIME
            i += 1
        b = pow(c, 1 << (m - i - 1), FIELD_PRIME)
        m = i
        c = b * b % FIELD_PRIME
        t = t * c % FIELD_PRIME
        r = r * b % FIELD_PRIME

    return r


def recover_x(y: int) -> Optional[int]:
    """Return one x with (x, y) on the curve, or None if y is not a curve ordinate."""
    y2 = y * y % FIELD_PRIME
    denom = (JUBJUB_A - JUBJUB_D * y2) % FIELD_PRIME
    if denom == 0:
        return None
    return sqrt_mod((1 - y2) * _inv(denom))


# =============================================================================
# Points
# =============================================================================


@dataclass(frozen=True)
class JubJubAffine:
    """
    An affine Baby Jubjub point.

    Attributes:
        x: x coordinate (field element)
        y: y coordinate (field element)
    """
    x: int = 0
    y: int = 1

    @classmethod
    def identity(cls) -> "JubJubAffine":
        return cls(0, 1)

    @property
    def is_identity(self) -> bool:
        return self.x == 0 and self.y == 1

    def is_on_curve(self) -> bool:
        x2 = self.x * self.x % FIELD_PRIME
        y2 = self.y * self.y % FIELD_PRIME
        return (JUBJUB_A * x2 + y2 - 1 - JUBJUB_D * x2 * y2) % FIELD_PRIME == 0

    def is_torsion_free(self) -> bool:
        """True if the point lies in the prime-order subgroup."""
        return self.mul(SUBGROUP_ORDER).is_identity

    def __add__(self, other: "JubJubAffine") -> "JubJubAffine":
        x1, y1, x2, y2 = self.x, self.y, other.x, other.y
        t = JUBJUB_D * x1 * x2 % FIELD_PRIME * y1 * y2 % FIELD_PRIME
        x3 = (x1 * y2 + y1 * x2) * _inv(1 + t) % FIELD_PRIME
        y3 = (y1 * y2 - JUBJUB_A * x1 * x2) * _inv(1 - t) % FIELD_PRIME
        return JubJubAffine(x3, y3)

    def __neg__(self) -> "JubJubAffine":
        return JubJubAffine((-self.x) % FIELD_PRIME, self.y)

    def __sub__(self, other: "JubJubAffine") -> "JubJubAffine":
        return self + (-other)

    def double(self) -> "JubJubAffine":
        return self + self

    def mul(self, k: int) -> "JubJubAffine":
        """Double-and-add scalar multiplication by a non-negative integer."""
        if k < 0:
            return (-self).mul(-k)
        result = JubJubAffine.identity()
        addend = self
        while k:
            if k & 1:
                result = result + addend
            addend = addend.double()
            k >>= 1
        return result

    def __mul__(self, k: int) -> "JubJubAffine":
        return self.mul(k)

    __rmul__ = __mul__

    def to_bytes(self) -> bytes:
        """Compressed 32-byte encoding."""
        encoded = self.y
        if self.x & 1:
            encoded |= _SIGN_BIT
        return encoded.to_bytes(POINT_SIZE, byteorder="little")

    @classmethod
    def from_bytes(cls, data: bytes) -> "JubJubAffine":
        """
        Decode a compressed point.

        Raises:
            DecodingError: On wrong length, non-canonical y, off-curve or
                small-order encodings
        """
        if len(data) != POINT_SIZE:
            raise DecodingError("point", f"expected {POINT_SIZE} bytes, got {len(data)}")

        raw = int.from_bytes(data, byteorder="little")
        sign = 1 if raw & _SIGN_BIT else 0
        y = raw & (_SIGN_BIT - 1)
        if y >= FIELD_PRIME:
            raise DecodingError("point", "y coordinate is not canonical")

        x = recover_x(y)
        if x is None:
            raise DecodingError("point", "not on curve")
        if x == 0 and sign:
            raise DecodingError("point", "non-canonical sign for x = 0")
        if x & 1 != sign:
            x = FIELD_PRIME - x

        point = cls(x, y)
        if not point.is_torsion_free():
            raise DecodingError("point", "not in the prime-order subgroup")
        return point


# Standard prime-order base point (EIP-2494 "Base8")
GENERATOR = JubJubAffine(
    5299619240641551281634865583518297030282874472190772894086521144482721001553,
    16950150798460657717958625567821834550301663161624707787222815936182638968203,
)


def hash_to_curve(seed: bytes) -> JubJubAffine:
    """
    Derive a point of unknown discrete log from a seed.

    Try-and-increment over SHA-256 outputs, then cofactor clearing.
    """
    counter = 0
    while True:
        digest = hashlib.sha256(seed + counter.to_bytes(4, byteorder="big")).digest()
        y = int.from_bytes(digest, byteorder="big") % FIELD_PRIME
        x = recover_x(y)
        if x is not None:
            point = JubJubAffine(x, y).mul(COFACTOR)
            if not point.is_identity:
                return point
        counter += 1


# Second Pedersen generator, independent of GENERATOR
GENERATOR_NUMS = hash_to_curve(b"blindbid.pedersen.nums")


@lru_cache(maxsize=8)
def fixed_base_table(base: JubJubAffine, num_bits: int = SCALAR_BITS) -> List[JubJubAffine]:
    """Return [base, 2*base, 4*base, ...] with ``num_bits`` entries."""
    table = []
    point = base
    for _ in range(num_bits):
        table.append(point)
        point = point.double()
    return table


# =============================================================================
# Scalars
# =============================================================================


def random_scalar(rng) -> int:
    """Sample a non-zero scalar in [1, l) from a random.Random-compatible source."""
    return rng.randrange(1, SUBGROUP_ORDER)


def random_field_element(rng) -> int:
    """Sample a field element in [0, p)."""
    return rng.randrange(0, FIELD_PRIME)


def scalar_to_bytes(value: int) -> bytes:
    return (value % SUBGROUP_ORDER).to_bytes(SCALAR_SIZE, byteorder="little")


def scalar_from_bytes(data: bytes) -> int:
    """
    Decode a canonical scalar.

    Raises:
        DecodingError: On wrong length or a value >= l
    """
    if len(data) != SCALAR_SIZE:
        raise DecodingError("scalar", f"expected {SCALAR_SIZE} bytes, got {len(data)}")
    value = int.from_bytes(data, byteorder="little")
    if value >= SUBGROUP_ORDER:
        raise DecodingError("scalar", "out of range")
    return value


def pedersen_commit(value: int, blinder: int) -> JubJubAffine:
    """Commit to (value, blinder) as value*G + blinder*H."""
    return GENERATOR.mul(value) + GENERATOR_NUMS.mul(blinder)
