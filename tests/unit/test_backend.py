"""
Tests for the proving backend.

Pairings are slow in pure Python, so public parameters are shared per module
and each test verifies at most a couple of proofs.
"""

import dataclasses
import random

import pytest
from py_ecc.optimized_bn128 import G1, G2, pairing

from blindbid.errors import CircuitCompilationError, DecodingError, ProofGenerationError
from blindbid.plonk.backend import (
    Proof,
    PublicParameters,
    VerifierKey,
    compile_circuit,
    derive_challenges,
    evaluate_constraints,
    prove,
    verify,
)
from blindbid.plonk.composer import StandardComposer
from blindbid.plonk.kzg import G1_AFFINE, to_py_ecc
from blindbid.plonk.polynomial import R


def build(x: int, y: int) -> StandardComposer:
    """x * y exposed as a public input, x + y as another."""
    composer = StandardComposer()
    a = composer.add_input(x)
    b = composer.add_input(y)
    composer.public_inputize(composer.mul(a, b))
    composer.public_inputize(composer.add(a, b))
    return composer


def quotient_at(proof: Proof, zeta: int, n: int) -> int:
    zeta_n = pow(zeta, n, R)
    total = 0
    for value in reversed(proof.t_evals):
        total = (total * zeta_n + value) % R
    return total


@pytest.fixture(scope="module")
def pub_params():
    return PublicParameters.setup(1 << 4, random.Random(11))


@pytest.fixture(scope="module")
def keys(pub_params):
    return compile_circuit(build(0, 0), pub_params, 1 << 3)


@pytest.fixture(scope="module")
def proof(pub_params, keys):
    prover_key, _ = keys
    return prove(pub_params, prover_key, build(3, 4), b"label", random.Random(5))


class TestSetup:
    def test_invalid_degree(self):
        with pytest.raises(ValueError):
            PublicParameters.setup(0, random.Random(1))

    def test_holds_only_group_elements(self, pub_params):
        names = {f.name for f in dataclasses.fields(pub_params)}
        assert names == {"max_degree", "g1_powers", "g2_tau"}
        assert len(pub_params.g1_powers) == 17
        assert pub_params.g1_powers[0] == G1_AFFINE

    def test_powers_share_one_tau(self, pub_params):
        powers = pub_params.g1_powers
        assert pairing(G2, to_py_ecc(powers[1])) == pairing(pub_params.g2_tau, G1)
        assert pairing(G2, to_py_ecc(powers[5])) == pairing(pub_params.g2_tau, to_py_ecc(powers[4]))


class TestCompile:
    def test_keys(self, keys):
        prover_key, verifier_key = keys
        assert prover_key.num_gates == 5
        assert prover_key.size == 8
        assert len(verifier_key.pi_positions) == 2
        assert len(verifier_key.selector_commitments) == 6
        assert len(verifier_key.sigma_commitments) == 4
        assert verifier_key == prover_key.verifier_key()

    def test_same_shape_same_keys(self, pub_params, keys):
        _, verifier_key = compile_circuit(build(9, 9), pub_params, 1 << 3)
        assert verifier_key == keys[1]

    def test_exceeds_trim_size(self, pub_params):
        with pytest.raises(CircuitCompilationError):
            compile_circuit(build(1, 1), pub_params, 4)

    def test_trim_exceeds_parameters(self, pub_params):
        with pytest.raises(CircuitCompilationError):
            compile_circuit(build(1, 1), pub_params, 1 << 5)

    def test_trim_leaves_no_room_for_blinding(self, pub_params):
        with pytest.raises(CircuitCompilationError):
            compile_circuit(build(1, 1), pub_params, 1 << 4)

    def test_verifier_key_dict_roundtrip(self, keys):
        _, verifier_key = keys
        assert VerifierKey.from_dict(verifier_key.to_dict()) == verifier_key

    def test_verifier_key_bad_point(self, keys):
        data = keys[1].to_dict()
        data["sigma_commitments"][0] = "0x" + "01" * 64
        with pytest.raises(DecodingError):
            VerifierKey.from_dict(data)


class TestProveVerify:
    def test_valid_proof(self, pub_params, keys, proof):
        _, verifier_key = keys
        assert verify(pub_params, verifier_key, b"label", proof, [12, 7])

    def test_tampered_public_input(self, pub_params, keys, proof):
        _, verifier_key = keys
        assert not verify(pub_params, verifier_key, b"label", proof, [13, 7])

    def test_wrong_label(self, pub_params, keys, proof):
        _, verifier_key = keys
        assert not verify(pub_params, verifier_key, b"other", proof, [12, 7])

    def test_wrong_input_count(self, pub_params, keys, proof):
        _, verifier_key = keys
        assert not verify(pub_params, verifier_key, b"label", proof, [12])

    def test_out_of_field_input(self, pub_params, keys, proof):
        _, verifier_key = keys
        assert not verify(pub_params, verifier_key, b"label", proof, [-1, 7])

    def test_off_curve_proof(self, pub_params, keys, proof):
        _, verifier_key = keys
        broken = dataclasses.replace(proof, w_zeta=(1, 1))
        assert not verify(pub_params, verifier_key, b"label", broken, [12, 7])

    def test_tampered_evaluation(self, pub_params, keys, proof):
        _, verifier_key = keys
        wire_evals = list(proof.wire_evals)
        wire_evals[0] = (wire_evals[0] + 1) % R
        broken = dataclasses.replace(proof, wire_evals=tuple(wire_evals))
        assert not verify(pub_params, verifier_key, b"label", broken, [12, 7])

    def test_adjusted_quotient_still_rejected(self, pub_params, keys, proof):
        """Opened values forced to satisfy the identity for other inputs fail the opening check."""
        _, verifier_key = keys
        claimed = [13, 7]

        challenges = derive_challenges(verifier_key, b"label", claimed, proof)
        numerator, vanishing = evaluate_constraints(verifier_key, challenges, proof, claimed)
        target = numerator * pow(vanishing, -1, R) % R
        rest = (quotient_at(proof, challenges.zeta, verifier_key.size) - proof.t_evals[0]) % R
        forged = dataclasses.replace(proof, t_evals=((target - rest) % R,) + proof.t_evals[1:])

        # zeta is fixed before the evaluations are absorbed
        replay = derive_challenges(verifier_key, b"label", claimed, forged)
        assert replay.zeta == challenges.zeta
        numerator, vanishing = evaluate_constraints(verifier_key, replay, forged, claimed)
        assert numerator == quotient_at(forged, replay.zeta, verifier_key.size) * vanishing % R

        assert not verify(pub_params, verifier_key, b"label", forged, claimed)

    def test_proofs_are_blinded(self, pub_params, keys, proof):
        prover_key, verifier_key = keys
        other = prove(pub_params, prover_key, build(3, 4), b"label", random.Random(6))
        assert other.wire_commitments != proof.wire_commitments
        assert verify(pub_params, verifier_key, b"label", other, [12, 7])

    def test_unsatisfied_witness(self, pub_params, keys):
        prover_key, _ = keys
        composer = build(3, 4)
        composer.witness[-1] += 1
        with pytest.raises(ProofGenerationError):
            prove(pub_params, prover_key, composer, b"label")

    def test_shape_mismatch(self, pub_params, keys):
        prover_key, _ = keys
        composer = build(3, 4)
        composer.boolean_gate(composer.zero)
        with pytest.raises(ProofGenerationError):
            prove(pub_params, prover_key, composer, b"label")

    def test_parameters_too_small(self, keys):
        prover_key, _ = keys
        small = PublicParameters.setup(8, random.Random(2))
        with pytest.raises(ProofGenerationError):
            prove(small, prover_key, build(3, 4), b"label")

    def test_challenges_bind_statement(self, keys, proof):
        _, verifier_key = keys
        base = derive_challenges(verifier_key, b"label", [12, 7], proof)
        assert derive_challenges(verifier_key, b"other", [12, 7], proof) != base
        assert derive_challenges(verifier_key, b"label", [12, 8], proof) != base
        assert derive_challenges(verifier_key, b"label", [12, 7], proof) == base


class TestProofEncoding:
    def test_size(self, proof):
        assert Proof.SIZE == 12 * 64 + 21 * 32
        assert len(proof.to_bytes()) == Proof.SIZE

    def test_bytes_roundtrip(self, proof):
        assert Proof.from_bytes(proof.to_bytes()) == proof

    def test_dict_roundtrip(self, proof):
        assert Proof.from_dict(proof.to_dict()) == proof

    def test_wrong_length(self):
        with pytest.raises(DecodingError):
            Proof.from_bytes(bytes(Proof.SIZE - 1))

    def test_off_curve(self, proof):
        data = bytearray(proof.to_bytes())
        data[0:64] = (1).to_bytes(32, "big") + (1).to_bytes(32, "big")
        with pytest.raises(DecodingError):
            Proof.from_bytes(bytes(data))

    def test_scalar_out_of_field(self, proof):
        data = bytearray(proof.to_bytes())
        data[-32:] = b"\xff" * 32
        with pytest.raises(DecodingError):
            Proof.from_bytes(bytes(data))
