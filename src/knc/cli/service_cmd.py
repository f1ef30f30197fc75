"""
knc.cli.service_cmd — knc service command.

  knc service update echo -f echo.yaml --tag echo-v1=old --traffic old=10,@latest=90
  knc service update echo -f echo.yaml --untag old -o echo.updated.yaml
"""

import click

from knc.cli.common import fail, output_yaml
from knc.errors import KncError
from knc.log import get_logger
from knc.serving.client import ManifestServingClient
from knc.traffic.compute import compute
from knc.utils import split_list

logger = get_logger(__name__)


@click.group("service")
def service_cmd():
    """Manage services."""
    pass


@service_cmd.command("update")
@click.argument("name")
@click.option("-f", "--filename", "manifests", multiple=True, required=True,
              help="Manifest file with the Service (multiple allowed)")
@click.option("-n", "--namespace", default="default",
              help="Namespace of the service")
@click.option("--tag", "tags", multiple=True,
              help="Tag a revision, 'revision=tag' ('@latest' for the latest ready revision)")
@click.option("--traffic", "traffic", multiple=True,
              help="Traffic split, 'revision_or_tag=percent'; percents must sum to 100")
@click.option("--untag", "untags", multiple=True,
              help="Tag to remove from its revision")
@click.option("-o", "--output", default=None,
              help="Output file (default: stdout)")
@click.pass_context
def service_update(ctx, name, manifests, namespace, tags, traffic, untags, output):
    """Update the traffic block of a service and print the result."""
    try:
        client = ManifestServingClient.from_files(manifests, namespace)
        service = client.get_service(name)
        traffic_pairs = split_list(traffic)
        service.traffic = compute(
            service.traffic,
            tags=split_list(tags),
            traffic=traffic_pairs,
            untags=split_list(untags),
            service_name=service.name,
            traffic_specified=bool(traffic_pairs),
        )
        client.update_service(service)
        logger.debug("service %s now has %d traffic target(s)", name, len(service.traffic))
        output_yaml(service.to_dict(), output)
    except KncError as e:
        fail(ctx, e)
