"""
knc.cli.reference_cmd — knc reference command.

  knc reference parse Deployment:apps/v1:web
  knc reference parse ksvc:app=echo -n prod
  knc reference channel-type imc
"""

import click

from knc.cli.common import fail, output_yaml
from knc.errors import KncError
from knc.flags.channel import parse_channel_type
from knc.flags.reference import parse_reference


@click.group("reference")
def reference_cmd():
    """Work with resource references."""
    pass


@reference_cmd.command("parse")
@click.argument("reference")
@click.option("-n", "--namespace", default="",
              help="Namespace to put on the reference")
@click.pass_context
def reference_parse(ctx, reference, namespace):
    """Parse a kind:group/version:nameOrSelector reference."""
    config = ctx.find_root().obj["config"]
    try:
        parsed = parse_reference(reference, namespace, config.alias_table())
        output_yaml(parsed.to_dict(), None)
    except KncError as e:
        fail(ctx, e)


@reference_cmd.command("channel-type")
@click.argument("channel_type")
@click.pass_context
def reference_channel_type(ctx, channel_type):
    """Resolve a channel type alias or Group:Version:Kind."""
    config = ctx.find_root().obj["config"]
    try:
        gvk = parse_channel_type(channel_type, config.channel_type_table())
        output_yaml({"apiVersion": gvk.api_version, "kind": gvk.kind}, None)
    except KncError as e:
        fail(ctx, e)
