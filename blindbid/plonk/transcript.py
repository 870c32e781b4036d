"""
Fiat-Shamir transcript.

Every message is absorbed into a running Keccak-256 state with a tag and a
length prefix; challenges are squeezed from the same state and reduced into
the scalar field.
"""

from blindbid.crypto import keccak256
from blindbid.crypto.poseidon import FIELD_PRIME
from blindbid.plonk.kzg import Point, encode_point

TRANSCRIPT_TAG = b"blindbid.plonk.transcript.v2"


class Transcript:
    """Running hash of the prover/verifier conversation."""

    def __init__(self, label: bytes):
        self._state = keccak256(TRANSCRIPT_TAG + len(label).to_bytes(8, "big") + label)

    def append_message(self, tag: bytes, data: bytes) -> None:
        self._state = keccak256(
            self._state + len(tag).to_bytes(2, "big") + tag + len(data).to_bytes(8, "big") + data
        )

    def append_scalar(self, tag: bytes, value: int) -> None:
        self.append_message(tag, value.to_bytes(32, "big"))

    def append_point(self, tag: bytes, point: Point) -> None:
        self.append_message(tag, encode_point(point))

    def challenge_scalar(self, tag: bytes) -> int:
        self._state = keccak256(self._state + b"challenge" + tag)
        return int.from_bytes(self._state, "big") % FIELD_PRIME
