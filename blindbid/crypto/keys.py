"""
Spend keys and stealth addresses.

Only the parts of key management the bid layer consumes:

- SecretSpendKey (a, b) and its PublicSpendKey (A = a*G, B = b*G)
- One-time stealth addresses: for a random r, R = r*G and
  pk_r = H(r*A)*G + B, so only the holder of (a, b) can derive
  sk_r = H(a*R) + b with sk_r*G == pk_r
"""

from dataclasses import dataclass

from blindbid.crypto.jubjub import (
    GENERATOR,
    POINT_SIZE,
    SUBGROUP_ORDER,
    JubJubAffine,
    random_scalar,
)
from blindbid.crypto.poseidon import DOMAIN_STEALTH, sponge_hash
from blindbid.errors import DecodingError


def hash_point_to_scalar(point: JubJubAffine) -> int:
    """Hash a shared point into a Jubjub scalar."""
    return sponge_hash([point.x, point.y], DOMAIN_STEALTH) % SUBGROUP_ORDER


@dataclass(frozen=True)
class StealthAddress:
    """
    A one-time recipient address.

    Attributes:
        R: Public nonce point r*G
        pk_r: One-time public key
    """
    R: JubJubAffine
    pk_r: JubJubAffine

    SIZE = 2 * POINT_SIZE

    def to_bytes(self) -> bytes:
        return self.R.to_bytes() + self.pk_r.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> "StealthAddress":
        if len(data) != cls.SIZE:
            raise DecodingError("stealth address", f"expected {cls.SIZE} bytes, got {len(data)}")
        return cls(
            R=JubJubAffine.from_bytes(data[:POINT_SIZE]),
            pk_r=JubJubAffine.from_bytes(data[POINT_SIZE:]),
        )


@dataclass(frozen=True)
class PublicSpendKey:
    """Public half of a spend key pair."""
    A: JubJubAffine
    B: JubJubAffine

    def gen_stealth_address(self, r: int) -> StealthAddress:
        """Derive the stealth address for the one-time secret r."""
        R = GENERATOR.mul(r)
        shared = self.A.mul(r)
        pk_r = GENERATOR.mul(hash_point_to_scalar(shared)) + self.B
        return StealthAddress(R=R, pk_r=pk_r)

    def to_bytes(self) -> bytes:
        return self.A.to_bytes() + self.B.to_bytes()


@dataclass(frozen=True)
class SecretSpendKey:
    """
    Secret spend key pair (a, b).

    Attributes:
        a: View component
        b: Spend component
    """
    a: int
    b: int

    @classmethod
    def random(cls, rng) -> "SecretSpendKey":
        return cls(a=random_scalar(rng), b=random_scalar(rng))

    def public_spend_key(self) -> PublicSpendKey:
        return PublicSpendKey(A=GENERATOR.mul(self.a), B=GENERATOR.mul(self.b))

    def sk_r(self, stealth_address: StealthAddress) -> int:
        """One-time secret key matching ``stealth_address.pk_r``."""
        shared = stealth_address.R.mul(self.a)
        return (hash_point_to_scalar(shared) + self.b) % SUBGROUP_ORDER

    def owns(self, stealth_address: StealthAddress) -> bool:
        return GENERATOR.mul(self.sk_r(stealth_address)) == stealth_address.pk_r
