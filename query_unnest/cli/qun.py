"""Command line entry point: build a demo plan and print the rewritten tree."""

from __future__ import annotations

from typing import Optional

import click

from ..config import Config, load_config
from ..examples import SCENARIOS
from ..optimizer import OptimizerContext, PlanBuilder, RewriteError
from ..plan import render_plan
from ..utils.logging import get_contextual_logger, setup_logging


def _load(config_path: Optional[str]) -> Config:
    if config_path is None:
        return Config()
    return load_config(config_path)


def _apply_overrides(
    config: Config,
    hoist: Optional[bool],
    decorrelate: Optional[bool],
    log_level: Optional[str],
) -> None:
    if hoist is not None:
        config.optimizer.enable_hoisting = hoist
    if decorrelate is not None:
        config.optimizer.enable_decorrelation = decorrelate
    if log_level is not None:
        config.logging.level = log_level


@click.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    help="Path to YAML config file. Defaults to all rules enabled.",
)
@click.option(
    "-s",
    "--scenario",
    type=click.Choice(sorted(SCENARIOS)),
    default="correlated",
    show_default=True,
    help="Demo plan to build.",
)
@click.option("--hoist/--no-hoist", default=None, help="Toggle subquery hoisting.")
@click.option(
    "--decorrelate/--no-decorrelate",
    default=None,
    help="Toggle dependent join decorrelation.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level; DEBUG traces every rewrite.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    scenario: str,
    hoist: Optional[bool],
    decorrelate: Optional[bool],
    log_level: Optional[str],
) -> None:
    """Build a demo plan with the rewriting constructors and print it."""
    config = _load(config_path)
    _apply_overrides(config, hoist, decorrelate, log_level)
    setup_logging(
        level=config.logging.level,
        structured=config.logging.structured,
        log_file=config.logging.log_file,
    )
    logger = get_contextual_logger(__name__, {"scenario": scenario})

    context = OptimizerContext.from_config(config.optimizer)
    builder = PlanBuilder(context)
    logger.info(f"Building scenario '{scenario}' with rules: {context.rules!r}")
    try:
        plan = SCENARIOS[scenario](builder)
    except RewriteError as exc:
        click.echo(f"error: {exc}", err=True)
        ctx.exit(1)

    click.echo(render_plan(plan))
    columns = ", ".join(f"@{column}" for column in sorted(plan.attributes()))
    click.echo(f"attributes: [{columns}]")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
