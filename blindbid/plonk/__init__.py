"""Constraint composer, circuit gadgets and KZG PLONK backend"""
from blindbid.plonk.composer import StandardComposer, Variable, Gate
from blindbid.plonk.backend import (
    PublicParameters,
    ProverKey,
    VerifierKey,
    Proof,
    Challenges,
    compile_circuit,
    prove,
    verify,
    derive_challenges,
    evaluate_constraints,
)

__all__ = [
    "StandardComposer",
    "Variable",
    "Gate",
    "PublicParameters",
    "ProverKey",
    "VerifierKey",
    "Proof",
    "Challenges",
    "compile_circuit",
    "prove",
    "verify",
    "derive_challenges",
    "evaluate_constraints",
]
