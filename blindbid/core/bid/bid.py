"""
Bid - a sealed stake commitment.

A bid hides its value twice:

- ``encrypted_data`` encrypts (value, blinder) to the bidder's shared secret
  so the bidder can later recover the witness
- ``c = value*G + blinder*H`` commits to the same pair so the circuit can bind
  the score to the stake without revealing it

Identity is the canonical digest (a Poseidon sponge over every published
field except ``pos``); two bids are equal iff their digests are equal.

Fixed-width layout (280 bytes):

    encrypted_data  96   3 field elements
    nonce           32   field element
    stealth_address 64   R || pk_r
    hashed_secret   32   field element
    c               32   compressed point
    eligibility      8   u64 little-endian
    expiration       8   u64 little-endian
    pos              8   u64 little-endian
"""

from dataclasses import dataclass
from typing import List, Tuple

from blindbid.core.config import DEFAULT_CONFIG, BlindBidConfig
from blindbid.crypto import bytes_to_hex, hex_to_bytes
from blindbid.crypto.cipher import CipherError, PoseidonCipher
from blindbid.crypto.jubjub import (
    POINT_SIZE,
    SUBGROUP_ORDER,
    JubJubAffine,
    pedersen_commit,
    random_field_element,
    random_scalar,
)
from blindbid.crypto.keys import SecretSpendKey, StealthAddress
from blindbid.crypto.poseidon import (
    DOMAIN_BID,
    DOMAIN_PROVER_ID,
    DOMAIN_SECRET,
    field_from_bytes,
    field_to_bytes,
    sponge_hash,
)
from blindbid.errors import (
    DecodingError,
    MaximumBidValueExceeded,
    MinimumBidValueUnreached,
    WrongSecretProvided,
)
from blindbid.utils.logger import get_logger
from blindbid.utils.validation import validate_field_element, validate_u64

logger = get_logger("bid")


def hash_secret(secret_k: int) -> int:
    """Public image of the bidder's secret_k."""
    return sponge_hash([secret_k], DOMAIN_SECRET)


def generate_prover_id(secret_k: int, seed: int, latest_consensus_round: int, latest_consensus_step: int) -> int:
    """
    Per-round identity of a bidder.

    Revealed to claim a win; unlinkable to secret_k across rounds.
    """
    return sponge_hash(
        [secret_k, seed, latest_consensus_round, latest_consensus_step],
        DOMAIN_PROVER_ID,
    )


@dataclass(eq=False)
class Bid:
    """
    A sealed bid.

    Attributes:
        encrypted_data: Cipher over (value, blinder)
        nonce: Cipher nonce
        stealth_address: One-time address of the bidder
        hashed_secret: H(secret_k)
        c: Pedersen commitment to (value, blinder)
        eligibility: First consensus round the bid may score in
        expiration: Last consensus round the bid may score in
        pos: Leaf index in the bid tree (set after insertion)
    """
    encrypted_data: PoseidonCipher
    nonce: int
    stealth_address: StealthAddress
    hashed_secret: int
    c: JubJubAffine
    eligibility: int
    expiration: int
    pos: int = 0

    SIZE = PoseidonCipher.SIZE + 32 + StealthAddress.SIZE + 32 + POINT_SIZE + 3 * 8

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def new(
        cls,
        rng,
        stealth_address: StealthAddress,
        value: int,
        secret: JubJubAffine,
        secret_k: int,
        eligibility: int,
        expiration: int,
        config: BlindBidConfig = DEFAULT_CONFIG,
    ) -> "Bid":
        """
        Create a bid for ``value``.

        Args:
            rng: random.Random-compatible source (blinder and nonce)
            stealth_address: Bidder's one-time address
            value: Stake, within [config.v_min, config.v_max]
            secret: Shared secret point the data is encrypted to
            secret_k: Bidder's sortition secret
            eligibility: First valid consensus round
            expiration: Last valid consensus round
            config: Protocol bounds

        Raises:
            MaximumBidValueExceeded: value > config.v_max
            MinimumBidValueUnreached: value < config.v_min
            ValueError: If the window fields are not u64
        """
        if value > config.v_max:
            raise MaximumBidValueExceeded(config.v_max, value)
        if value < config.v_min:
            raise MinimumBidValueUnreached(config.v_min, value)

        for name, field_value in (("eligibility", eligibility), ("expiration", expiration)):
            valid, error = validate_u64(field_value, name)
            if not valid:
                raise ValueError(error)

        bid = cls(
            encrypted_data=PoseidonCipher(),
            nonce=0,
            stealth_address=stealth_address,
            hashed_secret=hash_secret(secret_k),
            c=JubJubAffine.identity(),
            eligibility=eligibility,
            expiration=expiration,
        )
        bid._set_value(rng, value, secret)

        logger.debug(f"Bid created: digest={hex(bid.digest())}")
        return bid

    def _set_value(self, rng, value: int, secret: JubJubAffine) -> None:
        blinder = random_scalar(rng)
        self.nonce = random_field_element(rng)
        self.encrypted_data = PoseidonCipher.encrypt([value, blinder], secret, self.nonce)
        self.c = pedersen_commit(value, blinder)

    # =========================================================================
    # Secret-holder operations
    # =========================================================================

    def decrypt_data(self, secret: JubJubAffine) -> Tuple[int, int]:
        """
        Recover (value, blinder).

        Raises:
            WrongSecretProvided: If the ciphertext does not authenticate
        """
        try:
            value, blinder = self.encrypted_data.decrypt(secret, self.nonce)
        except CipherError:
            raise WrongSecretProvided() from None
        return value, blinder % SUBGROUP_ORDER

    def generate_prover_id(self, secret_k: int, seed: int, latest_consensus_round: int, latest_consensus_step: int) -> int:
        return generate_prover_id(secret_k, seed, latest_consensus_round, latest_consensus_step)

    def is_owned_by(self, secret_spend_key: SecretSpendKey) -> bool:
        return secret_spend_key.owns(self.stealth_address)

    # =========================================================================
    # Identity
    # =========================================================================

    @property
    def commitment(self) -> JubJubAffine:
        return self.c

    def hash_inputs(self) -> List[int]:
        """Field elements hashed into the digest, in order."""
        R = self.stealth_address.R
        pk_r = self.stealth_address.pk_r
        return [
            *self.encrypted_data.cipher,
            self.nonce,
            R.x,
            R.y,
            pk_r.x,
            pk_r.y,
            self.hashed_secret,
            self.c.x,
            self.c.y,
            self.eligibility,
            self.expiration,
        ]

    def digest(self) -> int:
        """Canonical bid digest (the Merkle leaf)."""
        return sponge_hash(self.hash_inputs(), DOMAIN_BID)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Bid):
            return NotImplemented
        return self.digest() == other.digest()

    def __hash__(self) -> int:
        return hash(self.digest())

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_bytes(self) -> bytes:
        return b"".join([
            self.encrypted_data.to_bytes(),
            field_to_bytes(self.nonce),
            self.stealth_address.to_bytes(),
            field_to_bytes(self.hashed_secret),
            self.c.to_bytes(),
            self.eligibility.to_bytes(8, "little"),
            self.expiration.to_bytes(8, "little"),
            self.pos.to_bytes(8, "little"),
        ])

    @classmethod
    def from_bytes(cls, data: bytes) -> "Bid":
        """
        Decode a 280-byte bid.

        Raises:
            DecodingError: On wrong length or any invalid sub-field
        """
        if len(data) != cls.SIZE:
            raise DecodingError("bid", f"expected {cls.SIZE} bytes, got {len(data)}")

        offset = 0

        def take(n: int) -> bytes:
            nonlocal offset
            chunk = data[offset:offset + n]
            offset += n
            return chunk

        encrypted_data = PoseidonCipher.from_bytes(take(PoseidonCipher.SIZE))
        try:
            nonce = field_from_bytes(take(32))
        except ValueError as e:
            raise DecodingError("bid nonce", e) from e
        stealth_address = StealthAddress.from_bytes(take(StealthAddress.SIZE))
        try:
            hashed_secret = field_from_bytes(take(32))
        except ValueError as e:
            raise DecodingError("bid hashed secret", e) from e
        c = JubJubAffine.from_bytes(take(POINT_SIZE))
        eligibility = int.from_bytes(take(8), "little")
        expiration = int.from_bytes(take(8), "little")
        pos = int.from_bytes(take(8), "little")

        return cls(
            encrypted_data=encrypted_data,
            nonce=nonce,
            stealth_address=stealth_address,
            hashed_secret=hashed_secret,
            c=c,
            eligibility=eligibility,
            expiration=expiration,
            pos=pos,
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "digest": hex(self.digest()),
            "encrypted_data": bytes_to_hex(self.encrypted_data.to_bytes()),
            "nonce": hex(self.nonce),
            "stealth_address": bytes_to_hex(self.stealth_address.to_bytes()),
            "hashed_secret": hex(self.hashed_secret),
            "commitment": bytes_to_hex(self.c.to_bytes()),
            "eligibility": self.eligibility,
            "expiration": self.expiration,
            "pos": self.pos,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Bid":
        """
        Create from dict.

        Raises:
            DecodingError: On any missing or invalid field
        """
        try:
            nonce = int(data["nonce"], 16)
            hashed_secret = int(data["hashed_secret"], 16)
            encrypted_data = hex_to_bytes(data["encrypted_data"])
            stealth_address = hex_to_bytes(data["stealth_address"])
            commitment = hex_to_bytes(data["commitment"])
            window = [data["eligibility"], data["expiration"], data.get("pos", 0)]
        except (KeyError, TypeError, ValueError) as e:
            raise DecodingError("bid dict", e) from e

        for name, value in (("nonce", nonce), ("hashed_secret", hashed_secret)):
            valid, error = validate_field_element(value, name)
            if not valid:
                raise DecodingError("bid dict", error)
        for name, value in zip(("eligibility", "expiration", "pos"), window):
            valid, error = validate_u64(value, name)
            if not valid:
                raise DecodingError("bid dict", error)

        return cls.from_bytes(
            encrypted_data
            + field_to_bytes(nonce)
            + stealth_address
            + field_to_bytes(hashed_secret)
            + commitment
            + b"".join(value.to_bytes(8, "little") for value in window)
        )
