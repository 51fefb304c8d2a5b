"""Command-line interface for the surfacing messaging engine."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import click

from surfacing.engine.message import Surface

logger = logging.getLogger(__name__)

_SURFACES = [s.value for s in Surface]


@click.group()
@click.option("--log-level", default="WARNING", help="Logging level.")
def cli(log_level: str) -> None:
    """Surfacing -- in-app message selection and lifecycle engine."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _load(
    config_path: str | None,
    messages_path: str | None,
    flags: tuple[str, ...],
) -> tuple[Any, Any, dict[str, Any]]:
    """Resolve the config, the message source and the evaluation context."""
    from surfacing.config.loader import load_config
    from surfacing.sources.yaml_source import YamlMessageSource

    config = load_config(config_path)
    if messages_path is not None:
        config = config.model_copy(update={"messages_path": messages_path})
    if config.messages_path is None:
        raise click.UsageError("No message definitions given (use --messages).")

    context = {flag: True for flag in flags}
    return config, YamlMessageSource(config.messages_path, config), context


def _surfaces(config: Any, surface: str | None) -> list[Surface]:
    if surface is not None:
        return [Surface(surface)]
    return list(config.surfaces)


# ------------------------------------------------------------------
# surfacing show
# ------------------------------------------------------------------


@cli.command()
@click.option("--config", "config_path", default=None, type=click.Path(exists=False),
              help="Path to engine config YAML.")
@click.option("--messages", "messages_path", default=None, type=click.Path(exists=False),
              help="Path to message definitions YAML.")
@click.option("--surface", type=click.Choice(_SURFACES), default=None,
              help="Only evaluate this surface.")
@click.option("--flag", "flags", multiple=True, help="Context flag set to true (repeatable).")
@click.option("--verbose", is_flag=True, help="Enable verbose output.")
def show(
    config_path: str | None,
    messages_path: str | None,
    surface: str | None,
    flags: tuple[str, ...],
    verbose: bool,
) -> None:
    """Evaluate surfaces once and print the message chosen for each."""
    from surfacing.session.runner import MessagingSession

    if verbose:
        logging.getLogger("surfacing").setLevel(logging.DEBUG)

    config, source, context = _load(config_path, messages_path, flags)
    targets = _surfaces(config, surface)

    async def _run() -> dict[Surface, Any]:
        async with MessagingSession(config, source=source, context=context) as session:
            session.restore()
            await session.drain()
            chosen: dict[Surface, Any] = {}
            for target in targets:
                session.evaluate(target)
                await session.drain()
                chosen[target] = session.message_to_show(target)
            return chosen

    chosen = asyncio.run(_run())

    click.echo(click.style("=== Messages to show ===", fg="cyan", bold=True))
    for target, message in chosen.items():
        if message is None:
            click.echo(f"  {target.value:<13} " + click.style("(none)", fg="yellow"))
            continue
        click.echo(
            f"  {target.value:<13} "
            + click.style(message.id, fg="green", bold=True)
            + f"  priority={message.priority}"
            + f"  displays={message.display_count}/{message.style.max_display_count}"
        )
        if message.title:
            click.echo(f"                {message.title}")


# ------------------------------------------------------------------
# surfacing simulate
# ------------------------------------------------------------------


@cli.command()
@click.option("--config", "config_path", default=None, type=click.Path(exists=False),
              help="Path to engine config YAML.")
@click.option("--messages", "messages_path", default=None, type=click.Path(exists=False),
              help="Path to message definitions YAML.")
@click.option("--surface", type=click.Choice(_SURFACES), default=None,
              help="Only evaluate this surface.")
@click.option("--flag", "flags", multiple=True, help="Context flag set to true (repeatable).")
@click.option("--rounds", type=int, default=3, help="Number of evaluation rounds.")
@click.option("--on-show", type=click.Choice(["keep", "click", "dismiss"]), default="keep",
              help="What the simulated user does with a shown message.")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def simulate(
    config_path: str | None,
    messages_path: str | None,
    surface: str | None,
    flags: tuple[str, ...],
    rounds: int,
    on_show: str,
    as_json: bool,
) -> None:
    """Run several evaluation rounds and report the lifecycle counts."""
    from surfacing.session.runner import run_simulation

    config, source, context = _load(config_path, messages_path, flags)
    result = asyncio.run(
        run_simulation(
            config,
            source,
            rounds=rounds,
            on_show=on_show,
            surfaces=_surfaces(config, surface),
            context=context,
        )
    )

    if as_json:
        click.echo(json.dumps({
            "rounds": result.rounds,
            "shown": [
                {"round": r, "surface": s, "id": mid} for r, s, mid in result.shown
            ],
            "remaining": result.remaining,
            "lifecycle": result.lifecycle_counts,
        }, indent=2))
        return

    click.echo(click.style("=== Simulation ===", fg="cyan", bold=True))
    click.echo(f"  Rounds: {result.rounds}  On show: {on_show}")
    click.echo(f"  Duration: {result.duration:.2f}s")
    click.echo()
    for round_no, surface_name, message_id in result.shown:
        click.echo(f"  [{round_no:>3}] {surface_name:<13} {message_id}")
    click.echo()
    click.echo(click.style("Lifecycle:", fg="cyan"))
    for kind, counts in result.lifecycle_counts.items():
        total = sum(counts.values())
        click.echo(f"  {kind:<10} {total}")
    click.echo(f"  Remaining messages: {', '.join(result.remaining) or '(none)'}")


if __name__ == "__main__":
    cli()
