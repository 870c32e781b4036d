"""Blind-bid circuit and proof lifecycle"""
from blindbid.core.prover.blindbid_circuit import (
    BlindBidCircuit,
    PublicInput,
    blindbid_public_inputs,
    NUM_PUBLIC_INPUTS,
)

__all__ = [
    "BlindBidCircuit",
    "PublicInput",
    "blindbid_public_inputs",
    "NUM_PUBLIC_INPUTS",
]
