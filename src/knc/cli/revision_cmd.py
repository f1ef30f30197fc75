"""
knc.cli.revision_cmd — knc revision command.

  knc revision list -f revisions.yaml                 all revisions in "default"
  knc revision list -f revisions.yaml -s echo -A      of service echo, all namespaces
  knc revision list echo-00001 -f revisions.yaml -o yaml
  knc revision describe echo-00001 -f revisions.yaml -v
"""

import json
import sys

import click

from knc.cli.common import fail, output_yaml
from knc.errors import KncError, ValidationError
from knc.printers.tablegenerator import PrintOptions, TableGenerator
from knc.revision.describe import describe
from knc.revision.handlers import revision_list_handlers
from knc.revision.list import enrich, sort_revisions
from knc.serving.client import (
    ManifestServingClient,
    service_getter,
    with_name,
    with_service,
)


@click.group("revision")
def revision_cmd():
    """Manage revisions."""
    pass


@revision_cmd.command("list")
@click.argument("names", nargs=-1)
@click.option("-f", "--filename", "manifests", multiple=True, required=True,
              help="Manifest file with Services and Revisions (multiple allowed)")
@click.option("-n", "--namespace", default="default",
              help="Namespace to list revisions in")
@click.option("-A", "--all-namespaces", is_flag=True,
              help="List revisions in all namespaces")
@click.option("-s", "--service", default=None,
              help="Only revisions of this service")
@click.option("--no-headers", is_flag=True,
              help="Don't print the header row")
@click.option("-o", "--output", "output_format", type=click.Choice(["yaml", "json"]),
              default=None, help="Machine readable output format")
@click.pass_context
def revision_list(ctx, names, manifests, namespace, all_namespaces, service,
                  no_headers, output_format):
    """List revisions, newest generation first."""
    try:
        if len(names) > 1:
            raise ValidationError(
                f"'knc revision list' accepts maximum 1 argument, "
                f"not {len(names)} arguments as given"
            )

        ns = None if all_namespaces else namespace
        client = ManifestServingClient.from_files(manifests, ns)

        filters = []
        if service:
            # Fails when the service does not exist
            client.get_service(service)
            filters.append(with_service(service))
        if names:
            filters.append(with_name(names[0]))

        revisions = client.list_revisions(*filters)
        if not revisions.items:
            click.echo("No revisions found.")
            return

        # Traffic and tags are only shown in the table
        if output_format is None:
            enrich(revisions.items, service_getter(client.for_namespace))
        revisions.items = sort_revisions(revisions.items)

        if output_format == "yaml":
            output_yaml(revisions.to_dict(), None)
        elif output_format == "json":
            click.echo(json.dumps(revisions.to_dict(), indent=2, ensure_ascii=False))
        else:
            generator = TableGenerator(PrintOptions(
                all_namespaces=ns is None,
                no_headers=no_headers,
            ))
            revision_list_handlers(generator)
            generator.print_obj(revisions, sys.stdout)
    except KncError as e:
        fail(ctx, e)


@revision_cmd.command("describe")
@click.argument("name")
@click.option("-f", "--filename", "manifests", multiple=True, required=True,
              help="Manifest file with Services and Revisions (multiple allowed)")
@click.option("-n", "--namespace", default="default",
              help="Namespace of the revision")
@click.option("-v", "--verbose", is_flag=True,
              help="More output")
@click.option("-o", "--output", "output_format", type=click.Choice(["yaml"]),
              default=None, help="Machine readable output format")
@click.pass_context
def revision_describe(ctx, name, manifests, namespace, verbose, output_format):
    """Show details of a revision."""
    try:
        client = ManifestServingClient.from_files(manifests, namespace)
        revision = client.get_revision(name)

        if output_format == "yaml":
            output_yaml(revision.to_dict(), None)
            return

        service = None
        if verbose and revision.service_name:
            service = client.get_service(revision.service_name)
        describe(sys.stdout, revision, service, verbose)
    except KncError as e:
        fail(ctx, e)
