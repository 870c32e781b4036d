"""
blindbid

Sealed-bid cryptographic sortition:
- Bids that hide their stake behind a Poseidon cipher and a Pedersen commitment
- Per-round scores derived from the hidden stake and consensus randomness
- A circuit proving a score came from a valid, eligible, tree-included bid
"""

from blindbid.core.config import V_RAW_MAX, V_RAW_MIN, BlindBidConfig, DEFAULT_CONFIG
from blindbid.core.bid import Bid, Score
from blindbid.core.prover import BlindBidCircuit
from blindbid.errors import (
    BlindBidError,
    MaximumBidValueExceeded,
    MinimumBidValueUnreached,
    WrongSecretProvided,
    BidNotEligible,
    BidExpired,
    ScoreComputationError,
    DecodingError,
    CircuitCompilationError,
    ProofGenerationError,
)

__all__ = [
    "V_RAW_MIN",
    "V_RAW_MAX",
    "BlindBidConfig",
    "DEFAULT_CONFIG",
    "Bid",
    "Score",
    "BlindBidCircuit",
    "BlindBidError",
    "MaximumBidValueExceeded",
    "MinimumBidValueUnreached",
    "WrongSecretProvided",
    "BidNotEligible",
    "BidExpired",
    "ScoreComputationError",
    "DecodingError",
    "CircuitCompilationError",
    "ProofGenerationError",
]
