"""knc.revision.handlers — Table rows for `knc revision list`."""

from __future__ import annotations

from knc.commands.human_readable import (
    conditions_value,
    non_ready_condition_reason,
    ready_condition,
    translate_timestamp_since,
)
from knc.printers.tablegenerator import (
    ColumnDefinition,
    PrintOptions,
    TableGenerator,
    TableRow,
)
from knc.serving.model import (
    REVISION_TAGS_ANNOTATION_KEY,
    REVISION_TRAFFIC_ANNOTATION_KEY,
    Revision,
    RevisionList,
)

REVISION_COLUMNS = [
    ColumnDefinition("Namespace", description="Namespace of the revision.", priority=0),
    ColumnDefinition("Name", description="Name of the revision."),
    ColumnDefinition("Service", description="Name of the service."),
    ColumnDefinition("Traffic", description="Percentage of traffic assigned to the revision."),
    ColumnDefinition("Tags", description="Tags assigned to the revision."),
    ColumnDefinition("Generation", description="Generation of the revision."),
    ColumnDefinition("Age", description="Age of the revision."),
    ColumnDefinition("Conditions", description="Ready conditions out of all conditions."),
    ColumnDefinition("Ready", description="Ready condition status of the revision."),
    ColumnDefinition("Reason", description="Reason for a non-ready condition."),
]


def print_revision(revision: Revision, options: PrintOptions) -> list[TableRow]:
    conditions = revision.status.conditions
    cells: list[str] = []
    if options.all_namespaces:
        cells.append(revision.namespace)
    cells += [
        revision.name,
        revision.service_name,
        revision.annotations.get(REVISION_TRAFFIC_ANNOTATION_KEY, ""),
        revision.annotations.get(REVISION_TAGS_ANNOTATION_KEY, ""),
        revision.configuration_generation,
        translate_timestamp_since(revision.metadata.creation_timestamp),
        conditions_value(conditions),
        ready_condition(conditions),
        non_ready_condition_reason(conditions),
    ]
    return [TableRow(cells=cells, obj=revision)]


def print_revision_list(revisions: RevisionList, options: PrintOptions) -> list[TableRow]:
    rows: list[TableRow] = []
    for revision in revisions.items:
        rows.extend(print_revision(revision, options))
    return rows


def revision_list_handlers(generator: TableGenerator) -> None:
    generator.register(REVISION_COLUMNS, print_revision)
    generator.register(REVISION_COLUMNS, print_revision_list)
