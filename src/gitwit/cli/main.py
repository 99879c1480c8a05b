"""Command line tools for inspecting GitWit resilience settings."""

import asyncio
import logging
import sys
from typing import List

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from gitwit.config.parser import YAMLParser
from gitwit.resilience import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitOpenError,
    ResilientCaller,
    RetryConfig,
    ServiceError,
    calculate_backoff_delay,
    is_retryable,
)

console = Console()


@click.group()
@click.version_option(package_name="gitwit-resilience")
@click.option("--debug", is_flag=True, help="Log retry and breaker events")
def cli(debug: bool):
    """GitWit resilience CLI.

    Validate retry/circuit breaker settings and try them out offline.
    """
    load_dotenv()
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@click.argument("yaml_path", type=click.Path(exists=True))
@click.option("--verbose", "-v", is_flag=True, help="Show the resolved policy")
def validate(yaml_path: str, verbose: bool):
    """Validate a YAML resilience configuration.

    YAML_PATH: Path to the configuration file
    """
    try:
        console.print(f"[blue]Validating {yaml_path}...[/blue]")

        parser = YAMLParser()
        config = parser.parse_file(yaml_path)

        console.print("[green]✓ Configuration is valid![/green]")

        if verbose:
            console.print("\n[bold]Retry policy:[/bold]")
            console.print(f"  Max attempts: {config.retry.max_attempts}")
            console.print(f"  Base delay: {config.retry.base_delay}s")
            console.print(f"  Max jitter: {config.retry.max_jitter}s")

            console.print("\n[bold]Circuit breaker:[/bold]")
            console.print(f"  Failure threshold: {config.breaker.failure_threshold}")
            console.print(f"  Recovery timeout: {config.breaker.recovery_timeout}s")

            if config.providers:
                table = Table(title="Providers")
                table.add_column("Name", style="cyan")
                table.add_column("Model")
                table.add_column("Enabled", justify="center")
                table.add_column("Threshold", justify="right")
                table.add_column("Timeout (s)", justify="right")

                for provider in config.providers:
                    policy = provider.breaker or config.breaker
                    table.add_row(
                        provider.name.value,
                        provider.model or "-",
                        "yes" if provider.enabled else "no",
                        str(policy.failure_threshold),
                        f"{policy.recovery_timeout:g}",
                    )
                console.print(table)

    except Exception as e:
        console.print(f"[red]✗ Validation failed: {str(e)}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("status", type=int)
@click.option("--max-attempts", default=3, show_default=True, type=click.IntRange(min=1))
@click.option("--base-delay", default=1.0, show_default=True, type=click.FloatRange(min=0))
@click.option("--max-jitter", default=1.0, show_default=True, type=click.FloatRange(min=0))
def classify(status: int, max_attempts: int, base_delay: float, max_jitter: float):
    """Show whether STATUS is retried and the backoff window of each retry."""
    if not is_retryable(ServiceError("status check", status=status)):
        console.print(f"[yellow]Status {status} is fatal: no retries[/yellow]")
        return

    console.print(f"[green]Status {status} is transient: retried[/green]")
    table = Table(title="Backoff schedule")
    table.add_column("Retry", justify="right")
    table.add_column("Min delay (s)", justify="right")
    table.add_column("Max delay (s)", justify="right")
    floor = RetryConfig(max_attempts=max_attempts, base_delay=base_delay, max_jitter=0.0)
    for attempt in range(max_attempts - 1):
        low = calculate_backoff_delay(attempt, floor)
        table.add_row(str(attempt + 1), f"{low:.2f}", f"{low + max_jitter:.2f}")
    console.print(table)


def _scripted_operation(outcomes: List[str]):
    """Turn tokens like ``503`` or ``ok`` into an async operation replaying them.

    The last token repeats once the script runs out.
    """
    remaining = list(outcomes)

    async def operation():
        token = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if token.isdigit():
            raise ServiceError(f"simulated status {token}", status=int(token))
        return token

    return operation


async def _no_sleep(_delay: float):
    return None


@cli.command()
@click.argument("outcomes", nargs=-1, required=True)
@click.option("--calls", "-n", default=1, show_default=True, type=click.IntRange(min=1),
              help="Number of logical calls to make")
@click.option("--max-attempts", default=3, show_default=True, type=click.IntRange(min=1))
@click.option("--threshold", default=3, show_default=True, type=click.IntRange(min=1))
def simulate(outcomes, calls: int, max_attempts: int, threshold: int):
    """Replay OUTCOMES (status codes or values) through retry and breaker.

    Backoff delays are reported but not slept.
    """
    breaker = CircuitBreaker("simulation", CircuitBreakerConfig(failure_threshold=threshold))
    delays: List[float] = []
    caller = ResilientCaller(
        breaker,
        RetryConfig(max_attempts=max_attempts),
        sleep=_no_sleep,
        on_retry=lambda error, attempt, delay: delays.append(delay),
    )
    operation = _scripted_operation(list(outcomes))

    table = Table(title="Simulation")
    table.add_column("Call", justify="right")
    table.add_column("Outcome")
    table.add_column("Retries", justify="right")
    table.add_column("Delays (s)")
    table.add_column("Breaker")

    for number in range(1, calls + 1):
        delays.clear()
        try:
            outcome = f"[green]{asyncio.run(caller.call(operation))}[/green]"
        except CircuitOpenError:
            outcome = "[red]circuit open[/red]"
        except ServiceError as e:
            outcome = f"[yellow]failed ({e.status})[/yellow]"
        table.add_row(
            str(number),
            outcome,
            str(len(delays)),
            ", ".join(f"{d:.2f}" for d in delays) or "-",
            breaker.state.value,
        )

    console.print(table)


if __name__ == "__main__":
    cli()
