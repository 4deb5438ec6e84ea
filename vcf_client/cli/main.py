#!/usr/bin/env python3
"""
vcf-client command-line interface.

Thin click wrapper around VcfClient: every command loads the configuration,
runs one public operation and prints its JSON result. Degraded results are
printed too and make the command exit with status 1.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple

import click

from .. import __version__
from ..client import VcfClient
from ..config.loader import ConfigLoader
from ..config.models import LogLevel
from ..exceptions import ConfigurationError
from ..logging import setup_logging
from ..models.results import ErrorResponse
from .formatting import print_instances

logger = logging.getLogger(__name__)


def _to_jsonable(result: Any) -> Any:
    if isinstance(result, ErrorResponse):
        return result.to_dict()
    return result


def _load_client(ctx: click.Context) -> VcfClient:
    try:
        config = ConfigLoader().load_config(ctx.obj["config_file"])
        if ctx.obj["verbose"]:
            config.logging.level = LogLevel.DEBUG
        setup_logging(config.logging)
        return VcfClient(config)
    except ConfigurationError as e:
        raise click.ClickException(e.message) from None


def _run(ctx: click.Context, operation: Callable[[VcfClient], Awaitable[Any]]) -> None:
    """Build a client, run one operation and print its result."""

    async def runner() -> Any:
        async with _load_client(ctx) as client:
            return await operation(client)

    try:
        result = asyncio.run(runner())
    except ConfigurationError as e:
        raise click.ClickException(e.message) from None

    click.echo(json.dumps(_to_jsonable(result), indent=2, default=str))
    if isinstance(result, ErrorResponse):
        ctx.exit(1)


@click.group()
@click.version_option(__version__)
@click.option('--config', '-c', type=click.Path(exists=True), help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Query VCF Automation and VCF Operations instances."""
    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config
    ctx.obj['verbose'] = verbose


@cli.command()
@click.option('--table', 'as_table', is_flag=True, help='Render a table instead of JSON')
@click.pass_context
def instances(ctx: click.Context, as_table: bool) -> None:
    """List configured instances of both backend families."""
    if as_table:
        client = _load_client(ctx)
        print_instances(client.list_instances())
        return

    async def operation(client: VcfClient) -> Any:
        return client.list_instances()

    _run(ctx, operation)


@cli.command()
@click.argument('resource_id')
@click.option('--stat-key', '-k', 'stat_keys', multiple=True, required=True, help='Metric key (repeatable)')
@click.option('--begin', type=int, help='Range start, epoch milliseconds')
@click.option('--end', type=int, help='Range end, epoch milliseconds')
@click.option('--rollup', help='Rollup type (AVG, MAX, MIN, SUM, ...)')
@click.option('--instance', '-i', 'instance_name', help='Operations instance name')
@click.pass_context
def metrics(
    ctx: click.Context,
    resource_id: str,
    stat_keys: Tuple[str, ...],
    begin: Optional[int],
    end: Optional[int],
    rollup: Optional[str],
    instance_name: Optional[str],
) -> None:
    """Fetch time series for one resource."""
    _run(
        ctx,
        lambda client: client.operations.get_metrics(
            resource_id, list(stat_keys), begin, end, rollup, instance_name
        ),
    )


@cli.command()
@click.argument('resource_ids', nargs=-1, required=True)
@click.option('--stat-key', '-k', 'stat_keys', multiple=True, help='Metric key (repeatable)')
@click.option('--instance', '-i', 'instance_name', help='Operations instance name')
@click.pass_context
def latest(
    ctx: click.Context,
    resource_ids: Tuple[str, ...],
    stat_keys: Tuple[str, ...],
    instance_name: Optional[str],
) -> None:
    """Fetch the most recent sample of each metric."""
    _run(
        ctx,
        lambda client: client.operations.get_latest_metrics(
            list(resource_ids), list(stat_keys), instance_name
        ),
    )


@cli.command()
@click.argument('name')
@click.option(
    '--type', '-t', 'resource_type',
    type=click.Choice(['project', 'vm', 'cluster', 'supervisor-namespace']),
    help='Declared resource type',
)
@click.option('--instance', '-i', 'instance_name', help='Operations instance name')
@click.pass_context
def find(
    ctx: click.Context,
    name: str,
    resource_type: Optional[str],
    instance_name: Optional[str],
) -> None:
    """Resolve a resource by display name."""
    _run(
        ctx,
        lambda client: client.operations.find_resource_by_name(
            name, instance_name, resource_type
        ),
    )


@cli.command('find-property')
@click.argument('key')
@click.argument('value')
@click.option('--instance', '-i', 'instance_name', help='Operations instance name')
@click.pass_context
def find_property(
    ctx: click.Context, key: str, value: str, instance_name: Optional[str]
) -> None:
    """Resolve a resource by a property value."""
    _run(
        ctx,
        lambda client: client.operations.find_resource_by_property(
            key, value, instance_name
        ),
    )


@cli.command()
@click.argument('resource_id')
@click.option('--stat-keys', 'show_stat_keys', is_flag=True, help='List available metric keys instead')
@click.option('--instance', '-i', 'instance_name', help='Operations instance name')
@click.pass_context
def resource(
    ctx: click.Context,
    resource_id: str,
    show_stat_keys: bool,
    instance_name: Optional[str],
) -> None:
    """Show an operations resource, or the metrics it collects."""
    if show_stat_keys:
        _run(
            ctx,
            lambda client: client.operations.get_available_metrics(
                resource_id, instance_name
            ),
        )
    else:
        _run(
            ctx,
            lambda client: client.operations.get_resource_details(
                resource_id, instance_name
            ),
        )


@cli.command()
@click.option('--name', '-n', help='Resource name')
@click.option('--adapter-kind', help='Adapter kind, e.g. VMWARE')
@click.option('--resource-kind', help='Resource kind, e.g. VirtualMachine')
@click.option('--instance', '-i', 'instance_name', help='Operations instance name')
@click.pass_context
def search(
    ctx: click.Context,
    name: Optional[str],
    adapter_kind: Optional[str],
    resource_kind: Optional[str],
    instance_name: Optional[str],
) -> None:
    """Search operations resources."""
    _run(
        ctx,
        lambda client: client.operations.search_resources(
            name, adapter_kind, resource_kind, instance_name
        ),
    )


@cli.command()
@click.option('--id', 'deployment_id', help='Show one deployment')
@click.option('--resources', is_flag=True, help='List the resources of --id')
@click.option('--instance', '-i', 'instance_name', help='Automation instance name')
@click.pass_context
def deployments(
    ctx: click.Context,
    deployment_id: Optional[str],
    resources: bool,
    instance_name: Optional[str],
) -> None:
    """List deployments, or show one."""
    if resources and not deployment_id:
        raise click.UsageError("--resources requires --id")

    async def operation(client: VcfClient) -> Any:
        if deployment_id and resources:
            return await client.automation.get_deployment_resources(
                deployment_id, instance_name
            )
        if deployment_id:
            return await client.automation.get_deployment_details(
                deployment_id, instance_name
            )
        return await client.automation.get_deployments(instance_name)

    _run(ctx, operation)


@cli.command()
@click.option('--id', 'project_id', help='Show one project')
@click.option('--instance', '-i', 'instance_name', help='Automation instance name')
@click.pass_context
def projects(
    ctx: click.Context, project_id: Optional[str], instance_name: Optional[str]
) -> None:
    """List projects, or show one."""

    async def operation(client: VcfClient) -> Any:
        if project_id:
            return await client.automation.get_project_details(
                project_id, instance_name
            )
        return await client.automation.get_projects(instance_name)

    _run(ctx, operation)


if __name__ == '__main__':
    cli()
