"""
knc.cli — CLI entry point.

Commands:
  knc service update NAME      — Tag, untag and split traffic
  knc revision list [NAME]     — List revisions with traffic and tags
  knc revision describe NAME   — Revision details
  knc sink resolve SINK        — Resolve an event sink reference
  knc reference parse REF      — Parse a resource reference
  knc reference channel-type T — Resolve a channel type
"""

import click

from knc.cli.common import fail
from knc.config import load_config
from knc.errors import ConfigError
from knc.log import set_debug
from knc.cli.service_cmd import service_cmd
from knc.cli.revision_cmd import revision_cmd
from knc.cli.sink_cmd import sink_cmd
from knc.cli.reference_cmd import reference_cmd


@click.group()
@click.version_option(package_name="knc")
@click.option("--config", "config_file", default=None,
              help="Config file (default: $XDG_CONFIG_HOME/knc/config.yaml)")
@click.option("--debug", is_flag=True, help="Debug logging on stderr")
@click.pass_context
def main(ctx, config_file, debug):
    """knc — Serverless platform client."""
    set_debug(debug)
    try:
        config = load_config(config_file)
    except ConfigError as e:
        fail(ctx, e)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


main.add_command(service_cmd, "service")
main.add_command(revision_cmd, "revision")
main.add_command(sink_cmd, "sink")
main.add_command(reference_cmd, "reference")
