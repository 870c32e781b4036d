"""
Cryptographic primitives for blindbid.

This module provides:
- Keccak-256 for transcripts and circuit digests
- Poseidon permutation, 2-to-1 hash and sponge (ZK-friendly)
- Poseidon cipher (authenticated encryption of two field elements)
- Baby Jubjub group arithmetic and Pedersen commitments
- Spend keys and stealth addresses

Design Notes:
-------------
Everything that the blind-bid circuit has to re-prove (bid digest, hashed
secret, prover-id, score randomness, cipher, commitment, tree nodes) is
built from Poseidon and Baby Jubjub, both native to the BN254 scalar field.

Keccak-256 is only used outside the circuit, for the proof transcript.
"""

from Crypto.Hash import keccak


# =============================================================================
# Hashing
# =============================================================================


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: proof transcripts and circuit digests.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


# =============================================================================
# Poseidon, Jubjub, Cipher, Keys
# =============================================================================

from blindbid.crypto.poseidon import (
    FIELD_PRIME,
    poseidon_permutation,
    poseidon_hash,
    poseidon1,
    poseidon2,
    sponge_hash,
    field_to_bytes,
    field_from_bytes,
    DOMAIN_MERKLE,
    DOMAIN_BID,
    DOMAIN_SECRET,
    DOMAIN_PROVER_ID,
    DOMAIN_SCORE,
    DOMAIN_CIPHER,
    DOMAIN_STEALTH,
)
from blindbid.crypto.jubjub import (
    JubJubAffine,
    GENERATOR,
    GENERATOR_NUMS,
    SUBGROUP_ORDER,
    pedersen_commit,
    random_scalar,
    random_field_element,
)
from blindbid.crypto.cipher import PoseidonCipher, CipherError
from blindbid.crypto.keys import (
    SecretSpendKey,
    PublicSpendKey,
    StealthAddress,
)
