"""CLI for ksqltopics."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ksqltopics import __version__

console = Console()
error_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show diagnostic logging")
def main(verbose: bool) -> None:
    """ksqltopics - topics for ksqlDB test cases.

    Infer the topics, partitions and value schemas that a ksqlDB test case
    needs, and provision them.
    """
    configure_logging(verbose)


def _build_cases(test_file: str, format_filter: Optional[str] = None):
    from ksqltopics.compiler import TestCaseBuilder

    cases = TestCaseBuilder().build(Path(test_file))
    if format_filter:
        cases = [c for c in cases if (c.format or "").upper() == format_filter.upper()]
    return cases


@main.command()
@click.argument("test_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format-filter",
    "-f",
    help="Only show test cases expanded for this format",
)
@click.option(
    "--show-schemas",
    is_flag=True,
    help="Print inferred value schemas",
)
def topics(test_file: str, format_filter: Optional[str], show_schemas: bool) -> None:
    """Show the topics each test case in TEST_FILE needs."""
    from ksqltopics.core.parser import ParseError

    try:
        cases = _build_cases(test_file, format_filter)
    except ParseError as e:
        error_console.print(f"[red]ERROR[/red]: {e}")
        sys.exit(1)
    except Exception as e:
        error_console.print(f"[red]ERROR[/red]: Unexpected error: {e}")
        sys.exit(1)

    if not cases:
        console.print("[yellow]No test cases found[/yellow]")
        return

    for case in cases:
        table = Table(title=case.name)
        table.add_column("Topic", style="cyan")
        table.add_column("Partitions", style="green")
        table.add_column("Replicas", style="green")
        table.add_column("Value Schema", style="magenta")

        for topic in sorted(case.topics, key=lambda t: t.name):
            schema_type = topic.value_schema.schema_type if topic.value_schema else "-"
            table.add_row(
                topic.name,
                str(topic.partitions),
                str(topic.replication_factor),
                schema_type,
            )
        console.print(table)

        if show_schemas:
            for topic in case.topics:
                if topic.value_schema:
                    console.print(f"[bold]{topic.name}[/bold] ({topic.value_schema.schema_type}):")
                    console.print(topic.value_schema.schema_str, markup=False)


@main.command()
@click.argument("test_file", type=click.Path(exists=True, dir_okay=False))
def names(test_file: str) -> None:
    """List the names of the test cases in TEST_FILE."""
    from ksqltopics.core.parser import ParseError

    try:
        cases = _build_cases(test_file)
    except ParseError as e:
        error_console.print(f"[red]ERROR[/red]: {e}")
        sys.exit(1)
    except Exception as e:
        error_console.print(f"[red]ERROR[/red]: Unexpected error: {e}")
        sys.exit(1)

    for case in cases:
        console.print(case.name, markup=False)


@main.command()
@click.argument("test_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--bootstrap-servers",
    "-b",
    required=True,
    envvar="KAFKA_BOOTSTRAP_SERVERS",
    help="Kafka bootstrap servers",
)
@click.option(
    "--schema-registry",
    "-s",
    envvar="SCHEMA_REGISTRY_URL",
    help="Schema Registry URL; schemas are only registered when set",
)
@click.option(
    "--test",
    "-t",
    "test_name",
    help="Only provision the test case with this name",
)
def provision(
    test_file: str,
    bootstrap_servers: str,
    schema_registry: Optional[str],
    test_name: Optional[str],
) -> None:
    """Create the topics and value schemas of TEST_FILE."""
    from ksqltopics.core.parser import ParseError
    from ksqltopics.deployer import KafkaProvisioner, SchemaRegistryProvisioner

    try:
        cases = _build_cases(test_file)
        if test_name:
            cases = [c for c in cases if c.name == test_name]
            if not cases:
                error_console.print(f"[red]ERROR[/red]: Test '{test_name}' not found")
                sys.exit(1)

        # The same topic may be used by several test cases; first one wins
        all_topics = {}
        for case in cases:
            for topic in case.topics:
                all_topics.setdefault(topic.name, topic)

        with KafkaProvisioner(bootstrap_servers) as kafka:
            actions = kafka.provision(all_topics.values())

        for name, action in sorted(actions.items()):
            style = "green" if action == "created" else "dim"
            console.print(f"[{style}]{action}[/{style}] topic {name}")

        if schema_registry:
            registry = SchemaRegistryProvisioner(schema_registry)
            for subject, schema_id in registry.provision(all_topics.values()).items():
                console.print(f"[green]registered[/green] {subject} (id {schema_id})")

    except ParseError as e:
        error_console.print(f"[red]ERROR[/red]: {e}")
        sys.exit(1)
    except RuntimeError as e:
        error_console.print(f"[red]ERROR[/red]: {e}")
        sys.exit(1)
    except Exception as e:
        error_console.print(f"[red]ERROR[/red]: Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
