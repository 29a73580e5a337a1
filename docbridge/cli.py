import json

import click


@click.group()
def main() -> None:
    """docbridge - document persistence manager for OpenSearch."""
    from docbridge.log import setup_logging
    from docbridge.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level, serialize=settings.log_serialize, client_level=settings.client_log_level)


def _collect(module: str):
    """Collect every Document defined in *module* (an importable dotted path)."""
    from docbridge.mapping.metadata import MetadataCollector

    try:
        collector = MetadataCollector().collect_module(module)
    except ImportError as exc:
        raise click.BadParameter(str(exc), param_hint="MODULE") from exc
    if not collector.bundles_mapping:
        raise click.ClickException(f"No documents defined in {module}.")
    return collector


# ---------------------------------------------------------------------------
# Mapping inspection
# ---------------------------------------------------------------------------


@main.group()
def mapping() -> None:
    """Inspect generated index mappings."""


@mapping.command()
@click.argument("module")
def show(module: str) -> None:
    """Print the index mapping of every document in MODULE."""
    collector = _collect(module)
    click.echo(json.dumps(collector.get_mappings(), indent=2, sort_keys=True))


# ---------------------------------------------------------------------------
# Index lifecycle
# ---------------------------------------------------------------------------


@main.group()
def index() -> None:
    """Create and drop indices for documents."""


@index.command()
@click.argument("module")
@click.option("--force", is_flag=True, default=False, help="Drop existing indices first.")
def create(module: str, force: bool) -> None:
    """Create one index per document type in MODULE."""
    from docbridge.factory import create_connection

    collector = _collect(module)
    connection = create_connection()
    for key, descriptor in collector.bundles_mapping.items():
        if force:
            connection.drop_index(descriptor.type)
        connection.create_index(descriptor.type, collector.get_mapping(key))
        click.echo(f"Created index for {key}.")


@index.command()
@click.argument("module")
def drop(module: str) -> None:
    """Drop the index of every document type in MODULE."""
    from docbridge.factory import create_connection

    collector = _collect(module)
    connection = create_connection()
    for key, descriptor in collector.bundles_mapping.items():
        connection.drop_index(descriptor.type)
        click.echo(f"Dropped index for {key}.")


if __name__ == "__main__":
    main()
