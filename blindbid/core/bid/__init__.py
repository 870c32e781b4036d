"""Sealed bids and their per-round scores"""
from blindbid.core.bid.bid import Bid, generate_prover_id, hash_secret
from blindbid.core.bid.score import (
    Score,
    TruncatedQuotientFormula,
    SCORE_FORMULAS,
    DEFAULT_SCORE_FORMULA,
    get_score_formula,
    score_randomness,
)

__all__ = [
    "Bid",
    "generate_prover_id",
    "hash_secret",
    "Score",
    "TruncatedQuotientFormula",
    "SCORE_FORMULAS",
    "DEFAULT_SCORE_FORMULA",
    "get_score_formula",
    "score_randomness",
]
