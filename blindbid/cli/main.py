"""
blindbid CLI - Command Line Interface for blind-bid sortition

Main entry point for all CLI commands.
"""

import json
import random
import secrets

import click
from pydantic import ValidationError

from blindbid.utils.logger import setup_logging, get_logger

logger = get_logger("cli")


def _make_rng(seed):
    """Deterministic rng when a seed is given, system randomness otherwise."""
    return random.Random(seed) if seed is not None else secrets.SystemRandom()


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help="Dotenv file with BLINDBID_* settings")
@click.option("--log-file", default=None, type=click.Path(dir_okay=False), help="Also write logs to this file")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, env_file, log_file):
    """blindbid - Sealed-bid cryptographic sortition"""
    import logging
    from blindbid.core.config import load_config

    try:
        setup_logging(level=logging.DEBUG if debug else None, log_file=log_file)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="BLINDBID_LOG_LEVEL")

    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(env_file)
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint="configuration")


# =============================================================================
# Configuration
# =============================================================================

@cli.command("params")
@click.pass_context
def params(ctx):
    """Show the effective protocol parameters"""
    config = ctx.obj["config"]
    click.echo(json.dumps(config.model_dump(), indent=2))


# =============================================================================
# Bids
# =============================================================================

@cli.command("inspect-bid")
@click.argument("bid_hex")
def inspect_bid(bid_hex):
    """Decode a serialized bid and print it as JSON"""
    from blindbid.core.bid import Bid
    from blindbid.crypto import hex_to_bytes
    from blindbid.errors import DecodingError
    from blindbid.utils.validation import validate_hex_string

    valid, error = validate_hex_string(bid_hex, "bid", Bid.SIZE)
    if not valid:
        raise click.ClickException(error)

    try:
        bid = Bid.from_bytes(hex_to_bytes(bid_hex))
    except DecodingError as e:
        raise click.ClickException(str(e))

    click.echo(json.dumps(bid.to_dict(), indent=2))


@cli.command("demo")
@click.option("--value", default=100_000, type=int, help="Bid value")
@click.option("--seed", default=None, type=int, help="Seed for reproducible randomness")
@click.option("--label", default="blindbid-demo", help="Proof domain label")
@click.pass_context
def demo(ctx, value, seed, label):
    """Run bid -> tree -> score -> prove -> verify end to end"""
    from blindbid.core.bid import Bid, Score
    from blindbid.core.prover import BlindBidCircuit, blindbid_public_inputs
    from blindbid.core.tree import BidTree
    from blindbid.crypto import GENERATOR, SecretSpendKey, bytes_to_hex, random_field_element, random_scalar
    from blindbid.errors import BlindBidError
    from blindbid.plonk import PublicParameters

    config = ctx.obj["config"]
    rng = _make_rng(seed)

    eligibility, expiration = 10, 20
    latest_round, latest_step = 15, 2

    click.echo("=== blindbid demo ===")

    try:
        # Bidder keys and bid
        spend_key = SecretSpendKey.random(rng)
        stealth_address = spend_key.public_spend_key().gen_stealth_address(random_scalar(rng))
        secret = GENERATOR.mul(random_scalar(rng))
        secret_k = random_field_element(rng)

        bid = Bid.new(rng, stealth_address, value, secret, secret_k, eligibility, expiration, config=config)
        click.echo(f"✓ Bid created: digest={hex(bid.digest())}")
        click.echo(f"  Bid bytes: {bytes_to_hex(bid.to_bytes())}")

        # Tree insertion
        tree = BidTree(depth=config.tree_depth)
        tree.push_bid(bid)
        branch = tree.branch(bid.pos)
        click.echo(f"✓ Bid inserted at position {bid.pos}, root={hex(tree.root)}")

        # Score
        consensus_seed = random_field_element(rng)
        score = Score.compute(
            bid, secret, secret_k, tree.root, consensus_seed, latest_round, latest_step,
        )
        prover_id = bid.generate_prover_id(secret_k, consensus_seed, latest_round, latest_step)
        click.echo(f"✓ Score for round {latest_round}: {score.value}")

        # Proof
        pub_params = PublicParameters.setup(config.public_parameters_size, rng)
        circuit = BlindBidCircuit(
            bid=bid,
            score=score,
            secret_k=secret_k,
            secret=secret,
            seed=consensus_seed,
            latest_consensus_round=latest_round,
            latest_consensus_step=latest_step,
            branch=branch,
            config=config,
        )
        prover_key, verifier_key = circuit.compile(pub_params)
        proof = circuit.gen_proof(pub_params, prover_key, label, rng)
        click.echo(f"✓ Proof generated ({prover_key.num_gates} gates, {len(proof.to_bytes())} bytes)")
    except BlindBidError as e:
        raise click.ClickException(str(e))

    public_inputs = blindbid_public_inputs(branch.root, bid, prover_id, score)
    valid = BlindBidCircuit.verify_proof(pub_params, verifier_key, label, proof, public_inputs)
    click.echo(f"{'✓' if valid else '✗'} Proof verification: {'valid' if valid else 'INVALID'}")

    tampered = list(public_inputs)
    tampered[-1] += 1
    rejected = not BlindBidCircuit.verify_proof(pub_params, verifier_key, label, proof, tampered)
    click.echo(f"{'✓' if rejected else '✗'} Tampered score rejected: {rejected}")

    if not (valid and rejected):
        raise click.ClickException("Demo failed")


if __name__ == "__main__":
    cli()
