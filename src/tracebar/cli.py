"""Tracebar CLI.

Usage:
    tracebar demo                       # Nested spans on 3 worker threads
    tracebar demo --workers 5 --depth 3
    tracebar demo --no-log              # Spinners only
    tracebar config show                # Print the resolved configuration
"""

import logging
import random
import threading
import time

import click
import yaml
from rich.console import Console

from tracebar.foundation.config import load_config
from tracebar.foundation.errors import TracebarError
from tracebar.foundation.logging import configure_logging
from tracebar.progress import IndicatorLayer
from tracebar.tracing import Span, Tracer

logger = logging.getLogger("tracebar.demo")

STEP_NAMES = ("resolve", "fetch", "unpack", "compile", "link", "verify")


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (default: .tracebar/config.yaml, then ~/.tracebar/config.yaml)",
)
@click.pass_context
def main(ctx: click.Context, config_path: str | None) -> None:
    """Live terminal spinners for nested spans."""
    try:
        ctx.obj = load_config(config_path)
    except TracebarError as e:
        raise click.ClickException(str(e)) from e


def _run_steps(tracer: Tracer, parent: Span, depth: int, delay: float, log: bool) -> None:
    for step in random.sample(STEP_NAMES, k=2):
        with tracer.span(step, parent=parent, depth=depth) as span:
            if log:
                logger.info("%s started under %s", step, parent.name)
            time.sleep(random.uniform(delay / 2, delay))
            if depth > 1:
                _run_steps(tracer, span, depth - 1, delay, log)


def _worker(tracer: Tracer, root: Span, index: int, depth: int, delay: float, log: bool) -> None:
    with tracer.span(f"worker-{index}", parent=root, worker=index) as span:
        _run_steps(tracer, span, depth, delay, log)
        if log:
            logger.info("worker-%d done", index)


@main.command()
@click.option("--workers", "-w", default=3, type=click.IntRange(min=1), help="Worker threads")
@click.option("--depth", "-d", default=2, type=click.IntRange(min=1), help="Span nesting depth")
@click.option("--delay", default=0.5, type=click.FloatRange(min=0), help="Max seconds per step")
@click.option("--log/--no-log", default=True, help="Interleave log lines with the spinners")
@click.pass_obj
def demo(config, workers: int, depth: int, delay: float, log: bool) -> None:
    """Run a nested, multi-threaded span tree."""
    layer = IndicatorLayer.from_config(config)
    configure_logging(
        debug=config.debug,
        level=None if config.debug else logging.INFO,
        stream=layer.get_writer(),
    )
    tracer = Tracer().with_layer(layer)

    with tracer.span("demo", workers=workers) as root:
        threads = [
            threading.Thread(
                target=_worker,
                args=(tracer, root, index, depth, delay, log),
                name=f"demo-worker-{index}",
            )
            for index in range(workers)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    layer.multibar.stop()
    click.echo("demo finished")


@main.group("config")
def config_group() -> None:
    """Inspect configuration."""


@config_group.command("show")
@click.pass_obj
def config_show(cfg) -> None:
    """Print the resolved configuration as YAML."""
    text = yaml.safe_dump(cfg.to_dict(), allow_unicode=True, sort_keys=False)
    Console().print(text, end="", markup=False, highlight=False)


if __name__ == "__main__":
    main()
