"""
knc.cli.sink_cmd — knc sink command.

  knc sink resolve broker:default -f broker.yaml
  knc sink resolve https://event.receiver.uri
"""

import click

from knc.cli.common import fail, output_yaml
from knc.errors import KncError
from knc.flags.sink import parse_sink
from knc.serving.client import load_documents, object_lookup


@click.group("sink")
def sink_cmd():
    """Work with event sink references."""
    pass


@sink_cmd.command("resolve")
@click.argument("sink")
@click.option("-f", "--filename", "manifests", multiple=True,
              help="Manifest file with the referenced objects (multiple allowed)")
@click.option("-n", "--namespace", default="default",
              help="Current namespace")
@click.pass_context
def sink_resolve(ctx, sink, manifests, namespace):
    """Resolve a sink reference to its destination."""
    config = ctx.find_root().obj["config"]
    try:
        reference = parse_sink(sink, namespace, config.sink_table())
        lookup = object_lookup(load_documents(manifests))
        destination = reference.resolve(lookup)
        click.echo(f"# {reference.as_text(namespace)}")
        output_yaml(destination.to_dict(), None)
    except KncError as e:
        fail(ctx, e)
