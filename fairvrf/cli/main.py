"""
fairvrf CLI - Command Line Interface for verifiable randomness

Main entry point for all CLI commands. Results are printed as one line
of JSON on stdout; logs go to stderr.
"""

import json
import click
from pathlib import Path
from typing import List, Optional

from fairvrf.core.config import load_config
from fairvrf.utils.logger import setup_logging
from fairvrf.utils.validation import PUBLIC_KEY_SIZE, SECRET_KEY_SIZE, validate_hex_string


def _emit(data: dict) -> None:
    click.echo(json.dumps(data, sort_keys=True))


def _parse_hex(value: str, name: str, expected_bytes: Optional[int] = None) -> bytes:
    from fairvrf.crypto import hex_to_bytes

    valid, err = validate_hex_string(value, name, expected_bytes)
    if not valid:
        raise click.BadParameter(err, param_hint=name)
    return hex_to_bytes(value)


def _parse_weights(value: str) -> List[float]:
    try:
        return [float(w) for w in value.split(",") if w.strip()]
    except ValueError:
        raise click.BadParameter(f"expected comma-separated numbers: {value!r}", param_hint="--weights")


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help="Dotenv file with FAIRVRF_* settings")
@click.option("--log-file", is_flag=True, help="Also write logs to the configured log directory")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, env_file, log_file):
    """fairvrf - Verifiable randomness for PvP match resolution"""
    import logging

    try:
        config = load_config(env_file)
    except ValueError as e:
        raise click.ClickException(str(e))

    level = logging.DEBUG if debug else logging.WARNING
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=log_file, force=True)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Key Commands
# =============================================================================


@cli.command("keygen")
@click.option("--out", default=None, type=click.Path(dir_okay=False), help="Write the keypair JSON to this file")
def keygen(out):
    """Generate a VRF keypair"""
    from fairvrf.crypto import generate_keypair

    kp = generate_keypair()
    key_data = {
        "secret_key": kp.secret_key.hex(),
        "public_key": kp.public_key.hex(),
    }

    if out:
        path = Path(out)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(key_data, indent=2))
        path.chmod(0o600)
        _emit({"public_key": kp.public_key.hex(), "saved_to": str(path)})
    else:
        _emit(key_data)


# =============================================================================
# VRF Commands
# =============================================================================


@cli.command("prove")
@click.option("--secret-key", required=True, help="32-byte secret key (hex)")
@click.option("--alpha", required=True, help="Input message (UTF-8 text)")
@click.pass_context
def prove_cmd(ctx, secret_key, alpha):
    """Compute VRF output and proof for a message"""
    from fairvrf.crypto import VRFError, keypair_from_secret, prove

    sk = _parse_hex(secret_key, "--secret-key", SECRET_KEY_SIZE)
    config = ctx.obj["config"]

    try:
        kp = keypair_from_secret(sk)
        output = prove(kp.secret_key, alpha.encode("utf-8"), config.latency_target_ms)
    except VRFError as e:
        raise click.ClickException(f"prove failed: {e}")

    result = output.to_dict()
    result["public_key"] = kp.public_key.hex()
    _emit(result)


@cli.command("verify")
@click.option("--public-key", required=True, help="32-byte public key (hex)")
@click.option("--proof", "proof_json", required=True, help="Proof JSON with gamma, c and s (hex)")
@click.option("--alpha", required=True, help="Input message (UTF-8 text)")
@click.pass_context
def verify_cmd(ctx, public_key, proof_json, alpha):
    """Verify a VRF proof; exits 1 if it is invalid"""
    from fairvrf.crypto import VRFProof, verify

    pk = _parse_hex(public_key, "--public-key", PUBLIC_KEY_SIZE)
    config = ctx.obj["config"]

    try:
        proof_data = json.loads(proof_json)
        # Accept either a bare proof or a full prove output
        if "proof" in proof_data:
            proof_data = proof_data["proof"]
        proof = VRFProof.from_dict(proof_data)
    except (ValueError, KeyError, TypeError) as e:
        raise click.BadParameter(f"malformed proof: {e}", param_hint="--proof")

    output = verify(pk, proof, alpha.encode("utf-8"), config.latency_target_ms)
    _emit({"is_valid": output.is_valid, "beta": output.beta.hex()})

    if not output.is_valid:
        ctx.exit(1)


# =============================================================================
# Selection Commands
# =============================================================================


@cli.command("select")
@click.option("--weights", required=True, help="Comma-separated weights, e.g. 10,20,70")
@click.option("--count", required=True, type=int, help="Number of winners")
@click.option("--seed", required=True, help="Randomness seed (hex, at least 4 bytes)")
@click.pass_context
def select_cmd(ctx, weights, count, seed):
    """Select weighted winners from a seed"""
    from fairvrf.core.selection import select_winners

    weight_list = _parse_weights(weights)
    seed_bytes = _parse_hex(seed, "--seed")
    config = ctx.obj["config"]

    try:
        winners = select_winners(weight_list, count, seed_bytes, config.max_selection_attempts)
    except ValueError as e:
        raise click.ClickException(str(e))

    _emit({"winners": winners})


# =============================================================================
# Benchmark Command
# =============================================================================


@cli.command("bench")
@click.option("--iterations", default=200, type=click.IntRange(min=1), help="Iterations per benchmark")
def bench(iterations):
    """Benchmark VRF and selection throughput"""
    from fairvrf.utils.benchmark import benchmark_vrf, benchmark_selection

    results = benchmark_vrf(iterations) + benchmark_selection(iterations)
    _emit({"results": [r.to_dict() for r in results]})


if __name__ == "__main__":
    cli()
