"""
Poseidon Cipher - authenticated encryption of two field elements.

A duplex construction over the Poseidon permutation:

    state = P([domain, key.x, key.y])
    state = P([state0, state1 + nonce, state2])
    c_i   = state_{i+1} + m_i
    tag   = P([state0, c_0, c_1])[1]

The ciphertext is (c_0, c_1, tag). Decryption recomputes the keystream,
recovers the message and fails unless the tag matches. The circuit replays
the same steps in ``blindbid.plonk.gadgets.cipher_decrypt_gadget``.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from blindbid.crypto.jubjub import JubJubAffine
from blindbid.crypto.poseidon import (
    DOMAIN_CIPHER,
    FIELD_PRIME,
    field_from_bytes,
    field_to_bytes,
    poseidon_permutation,
    sponge_capacity,
)
from blindbid.errors import BlindBidError, DecodingError

MESSAGE_CAPACITY = 2
CIPHER_SIZE = MESSAGE_CAPACITY + 1


class CipherError(BlindBidError):
    """Ciphertext authentication failed."""


def cipher_initial_state(secret: JubJubAffine, nonce: int) -> List[int]:
    """Keystream state derived from the shared secret and nonce."""
    state = poseidon_permutation([
        sponge_capacity(DOMAIN_CIPHER, MESSAGE_CAPACITY),
        secret.x,
        secret.y,
    ])
    state[1] = (state[1] + nonce) % FIELD_PRIME
    return poseidon_permutation(state)


@dataclass(frozen=True)
class PoseidonCipher:
    """
    Encrypted pair of field elements plus authentication tag.

    Attributes:
        cipher: (c_0, c_1, tag)
    """
    cipher: Tuple[int, int, int] = (0, 0, 0)

    SIZE = CIPHER_SIZE * 32

    @classmethod
    def encrypt(cls, message: Sequence[int], secret: JubJubAffine, nonce: int) -> "PoseidonCipher":
        if len(message) != MESSAGE_CAPACITY:
            raise ValueError(f"Message must have {MESSAGE_CAPACITY} elements, got {len(message)}")

        state = cipher_initial_state(secret, nonce)
        c0 = (state[1] + message[0]) % FIELD_PRIME
        c1 = (state[2] + message[1]) % FIELD_PRIME
        tag = poseidon_permutation([state[0], c0, c1])[1]
        return cls((c0, c1, tag))

    def decrypt(self, secret: JubJubAffine, nonce: int) -> Tuple[int, int]:
        """
        Recover the message.

        Raises:
            CipherError: If the tag does not authenticate under (secret, nonce)
        """
        c0, c1, tag = self.cipher
        state = cipher_initial_state(secret, nonce)
        m0 = (c0 - state[1]) % FIELD_PRIME
        m1 = (c1 - state[2]) % FIELD_PRIME
        if poseidon_permutation([state[0], c0, c1])[1] != tag:
            raise CipherError("Ciphertext authentication failed")
        return m0, m1

    def to_bytes(self) -> bytes:
        return b"".join(field_to_bytes(word) for word in self.cipher)

    @classmethod
    def from_bytes(cls, data: bytes) -> "PoseidonCipher":
        if len(data) != cls.SIZE:
            raise DecodingError("cipher", f"expected {cls.SIZE} bytes, got {len(data)}")
        try:
            words = tuple(field_from_bytes(data[i * 32:(i + 1) * 32]) for i in range(CIPHER_SIZE))
        except ValueError as e:
            raise DecodingError("cipher", e) from e
        return cls(words)
