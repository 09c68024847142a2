"""
Command-line interface for the Noir proof orchestrator.

Builds witnesses, proves (or reuses cached proofs) and prints the contract
call arguments for each game action. Also inspects and evicts cache entries.
"""

import json
import logging
import sys
from typing import Callable, Optional

import click
from rich.console import Console
from rich.table import Table

from noirsnark import __version__
from noirsnark.proving.cache import ProofCache
from noirsnark.proving.calldata import CallArgs
from noirsnark.proving.config import (
    DEFAULT_REVISION,
    REVISIONS,
    OrchestratorConfig,
    get_revision,
    load_game_config,
)
from noirsnark.proving.constants import CircuitKind, parse_circuit_kind
from noirsnark.proving.errors import NoirSnarkError
from noirsnark.proving.factory import BACKEND_REGISTRY, DEFAULT_BACKEND
from noirsnark.proving.orchestrator import ProofOrchestrator
from noirsnark.proving.witness import Location


def _fail(exc: Exception) -> None:
    click.echo(click.style(f"✗ Error: {exc}", fg="red"), err=True)
    sys.exit(1)


def _render_call(call: CallArgs) -> str:
    return json.dumps(
        {
            "kind": call.kind.value,
            "entrypoint": call.entrypoint,
            "inputs": [str(value) for value in call.inputs],
            "named_inputs": {k: str(v) for k, v in call.named_inputs().items()},
            "proof": call.proof_hex,
        },
        indent=2,
    )


def _run_action(ctx: click.Context, action: Callable[[ProofOrchestrator], CallArgs]) -> None:
    try:
        orchestrator = _make_orchestrator(ctx.obj)
        call = action(orchestrator)
    except (NoirSnarkError, ValueError) as exc:
        _fail(exc)
        return
    click.echo(_render_call(call))


def _make_orchestrator(options: dict) -> ProofOrchestrator:
    game = load_game_config(options["game_config"])
    config = OrchestratorConfig.from_env(
        circuits_dir=options["circuits_dir"],
        cache_dir=options["cache_dir"],
        revision=get_revision(options["revision"]),
        prover_backend=options["backend"],
        prover_timeout=options["timeout"],
    )
    return ProofOrchestrator(config, game)


def _location(commitment: str, perlin: int, dist: int = 0, biomebase: int = 0) -> Location:
    return Location.from_hex(
        commitment, perlin=perlin, dist_from_origin=dist, biomebase=biomebase
    )


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--game-config",
    type=click.Path(dir_okay=False),
    default="darkforest.toml",
    show_default=True,
    help="Game configuration with an [initializers] table",
)
@click.option("--circuits-dir", type=click.Path(file_okay=False), help="Root of the Noir circuit packages")
@click.option("--cache-dir", type=click.Path(file_okay=False), help="Proof cache directory")
@click.option(
    "--revision",
    type=click.Choice(sorted(REVISIONS)),
    default=DEFAULT_REVISION,
    show_default=True,
    help="Circuit revision (hex width and move calldata layout)",
)
@click.option(
    "--backend",
    type=click.Choice(sorted(BACKEND_REGISTRY)),
    default=None,
    help=f"Proving backend (default: NOIRSNARK_PROVER_BACKEND or {DEFAULT_BACKEND})",
)
@click.option("--timeout", type=float, default=None, help="Prover timeout in seconds")
@click.option("--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(
    ctx: click.Context,
    game_config: str,
    circuits_dir: Optional[str],
    cache_dir: Optional[str],
    revision: str,
    backend: Optional[str],
    timeout: Optional[float],
    verbose: bool,
):
    """
    Noir proof orchestrator for the Dark Forest test harness.

    Each action command prints the contract entrypoint, public inputs and
    proof as JSON.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {
        "game_config": game_config,
        "circuits_dir": circuits_dir,
        "cache_dir": cache_dir,
        "revision": revision,
        "backend": backend,
        "timeout": timeout,
    }


_test_case_option = click.option(
    "--test-case", required=True, help="Cache key for this proof (e.g. planet-1)"
)


@main.command()
@_test_case_option
@click.option("--x", type=int, required=True)
@click.option("--y", type=int, required=True)
@click.option("--commitment", required=True, help="Location hash (hex)")
@click.option("--perlin", type=int, required=True)
@click.pass_context
def init(ctx, test_case, x, y, commitment, perlin):
    """Prove and print initializePlayer arguments."""
    _run_action(
        ctx,
        lambda o: o.prepare_init(test_case, x, y, _location(commitment, perlin)),
    )


@main.command()
@_test_case_option
@click.option("--x", type=int, required=True)
@click.option("--y", type=int, required=True)
@click.option("--commitment", required=True, help="Location hash (hex)")
@click.option("--perlin", type=int, required=True)
@click.pass_context
def reveal(ctx, test_case, x, y, commitment, perlin):
    """Prove and print revealLocation arguments."""
    _run_action(
        ctx,
        lambda o: o.prepare_reveal(test_case, x, y, _location(commitment, perlin)),
    )


@main.command()
@_test_case_option
@click.option("--from", "from_xy", type=(int, int), required=True, help="Source X Y")
@click.option("--to", "to_xy", type=(int, int), required=True, help="Destination X Y")
@click.option("--from-commitment", required=True)
@click.option("--to-commitment", required=True)
@click.option("--from-perlin", type=int, required=True)
@click.option("--to-perlin", type=int, required=True)
@click.option("--to-dist", type=int, default=0, show_default=True, help="Destination distance from origin")
@click.option("--max-distance", type=int, required=True)
@click.option("--population", type=int, default=0, show_default=True)
@click.option("--silver", type=int, default=0, show_default=True)
@click.option("--artifact-id", default="0", show_default=True, help="Moved artifact id (int or hex)")
@click.option("--abandoning", is_flag=True)
@click.pass_context
def move(
    ctx,
    test_case,
    from_xy,
    to_xy,
    from_commitment,
    to_commitment,
    from_perlin,
    to_perlin,
    to_dist,
    max_distance,
    population,
    silver,
    artifact_id,
    abandoning,
):
    """Prove and print move arguments."""
    _run_action(
        ctx,
        lambda o: o.prepare_move(
            test_case,
            from_xy[0],
            from_xy[1],
            to_xy[0],
            to_xy[1],
            _location(from_commitment, from_perlin),
            _location(to_commitment, to_perlin, dist=to_dist),
            max_distance,
            population,
            silver,
            artifact_id=artifact_id,
            abandoning=int(abandoning),
        ),
    )


@main.command()
@_test_case_option
@click.option("--key", required=True, help="Whitelist key as a field integer (decimal or hex)")
@click.option("--key-hash", required=True, help="MiMC hash of the key (hex)")
@click.option("--recipient", required=True, help="Recipient address")
@click.pass_context
def whitelist(ctx, test_case, key, key_hash, recipient):
    """Prove and print useKey arguments."""
    _run_action(ctx, lambda o: o.prepare_whitelist(test_case, key, key_hash, recipient))


@main.command()
@_test_case_option
@click.option("--x", type=int, required=True)
@click.option("--y", type=int, required=True)
@click.option("--commitment", required=True, help="Location hash (hex)")
@click.option("--perlin", type=int, default=0, show_default=True)
@click.option("--biomebase", type=int, required=True)
@click.pass_context
def biomebase(ctx, test_case, x, y, commitment, perlin, biomebase):
    """Prove and print findArtifact arguments."""
    _run_action(
        ctx,
        lambda o: o.prepare_biomebase(
            test_case, x, y, _location(commitment, perlin, biomebase=biomebase)
        ),
    )


def _cache(options: dict) -> ProofCache:
    config = OrchestratorConfig.from_env(
        circuits_dir=options["circuits_dir"], cache_dir=options["cache_dir"]
    )
    return ProofCache(config.cache_dir)


def _artifact_status(cache: ProofCache, kind_value: str, test_case: str) -> str:
    try:
        path = cache.artifact_path(parse_circuit_kind(kind_value), test_case)
    except ValueError:
        return "[red]invalid key[/red]"
    return "[green]present[/green]" if path.is_file() else "[red]missing[/red]"


@main.command("cache-list")
@click.pass_context
def cache_list(ctx):
    """List cached proofs and their content hashes."""
    cache = _cache(ctx.obj)
    try:
        entries = cache.entries()
    except NoirSnarkError as exc:
        _fail(exc)
        return

    if not entries:
        click.echo(click.style(f"No cached proofs in {cache.cache_dir}", fg="yellow"))
        return

    table = Table(title=f"Proof cache: {cache.cache_dir}")
    table.add_column("Circuit", style="cyan")
    table.add_column("Test case")
    table.add_column("Content hash")
    table.add_column("Artifact")
    for key in sorted(entries):
        kind_value, _, test_case = key.partition("/")
        table.add_row(
            kind_value,
            test_case,
            str(entries[key])[:16],
            _artifact_status(cache, kind_value, test_case),
        )
    Console().print(table)


@main.command("cache-evict")
@click.argument("kind", type=click.Choice([k.value for k in CircuitKind]))
@click.argument("test_case")
@click.pass_context
def cache_evict(ctx, kind, test_case):
    """Remove one cached proof."""
    cache = _cache(ctx.obj)
    try:
        removed = cache.evict(parse_circuit_kind(kind), test_case)
    except (NoirSnarkError, ValueError) as exc:
        _fail(exc)
        return
    if removed:
        click.echo(click.style(f"✓ Evicted {kind}/{test_case}", fg="green"))
    else:
        click.echo(click.style(f"No cached proof for {kind}/{test_case}", fg="yellow"))


if __name__ == "__main__":
    main()
