"""
knc.printers.tablegenerator — Per-type table rows for human output.

Row handlers are registered together with the table's column
definitions and are looked up by the exact type of the printed object:

    def print_revision(rev: Revision, options: PrintOptions) -> list[TableRow]:
        ...

    generator = TableGenerator()
    generator.register(REVISION_COLUMNS, print_revision)
    generator.print_obj(revision, sys.stdout)

Columns with priority 0 (the namespace column) are only shown when
listing across all namespaces; handlers emit the matching cell then.
"""

from __future__ import annotations

import inspect
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, TextIO

from knc.errors import KncError
from knc.printers.tabwriter import TabWriter
from knc.printers.prefixwriter import new_tab_writer

# Longest cell printed before it is cut and suffixed with " ..."
MAX_CELL_WIDTH = 50


class PrinterError(KncError):
    """Table handler registration or lookup error."""
    pass


@dataclass
class ColumnDefinition:
    name: str
    type: str = "string"
    description: str = ""
    priority: int = 1


@dataclass
class TableRow:
    cells: list[str]
    obj: Any = None


@dataclass
class Table:
    columns: list[ColumnDefinition]
    rows: list[TableRow] = field(default_factory=list)


@dataclass
class PrintOptions:
    all_namespaces: bool = False
    no_headers: bool = False


RowHandler = Callable[[Any, PrintOptions], "list[TableRow]"]


@dataclass
class _HandlerEntry:
    columns: list[ColumnDefinition]
    handler: RowHandler


def truncate(value: str, width: int = MAX_CELL_WIDTH) -> str:
    """Cut value so that it fits width, marking the cut with " ..."."""
    if len(value) <= width:
        return value
    return value[: width - 4] + " ..."


def handler_type(handler: Any) -> type:
    """Validate a row handler and return the object type it prints.

    A handler takes exactly two parameters, the object (annotated with
    its class) and the PrintOptions, and returns a list of TableRow.
    """
    if not callable(handler):
        raise PrinterError(f"invalid print handler. {handler!r} is not a function")

    params = list(inspect.signature(handler).parameters.values())
    if len(params) != 2:
        raise PrinterError(
            "invalid print handler. Must accept 2 parameters and return a list of rows"
        )

    try:
        hints = typing.get_type_hints(handler)
    except (NameError, TypeError) as e:
        raise PrinterError(f"invalid print handler. Cannot resolve annotations: {e}") from e

    obj_type = hints.get(params[0].name)
    options_type = hints.get(params[1].name)
    return_type = hints.get("return")
    if (
        not isinstance(obj_type, type)
        or options_type is not PrintOptions
        or return_type not in (list[TableRow], list)
    ):
        raise PrinterError(
            "invalid print handler. The expected signature is: "
            "handler(obj: <type>, options: PrintOptions) -> list[TableRow]"
        )
    return obj_type


class TableGenerator:
    """Registry of row handlers keyed by the printed object's type."""

    def __init__(self, options: PrintOptions | None = None):
        self.options = options or PrintOptions()
        self._handlers: dict[type, _HandlerEntry] = {}

    def register(self, columns: list[ColumnDefinition], handler: RowHandler) -> None:
        """Register a row handler for the type its first parameter names.

        Raises:
            PrinterError: Invalid handler, or one already registered for the type
        """
        obj_type = handler_type(handler)
        if obj_type in self._handlers:
            raise PrinterError(
                f"registered duplicate printer for {obj_type.__name__}"
            )
        self._handlers[obj_type] = _HandlerEntry(list(columns), handler)

    def generate(self, obj: Any, options: PrintOptions | None = None) -> Table:
        """Build the table for obj.

        Raises:
            PrinterError: No handler registered for type(obj)
        """
        entry = self._handlers.get(type(obj))
        if entry is None:
            raise PrinterError(
                f"no table handler registered for this type: {type(obj).__name__}"
            )
        rows = entry.handler(obj, options or self.options)
        return Table(columns=entry.columns, rows=list(rows))

    def print_obj(self, obj: Any, output: TextIO | TabWriter) -> None:
        """Print obj as an aligned table (header row unless no_headers)."""
        if obj is None:
            return

        table = self.generate(obj, self.options)

        if isinstance(output, TabWriter):
            writer, owned = output, False
        else:
            writer, owned = new_tab_writer(output), True

        if not self.options.no_headers:
            headers = [
                c.name.upper()
                for c in table.columns
                if self.options.all_namespaces or c.priority != 0
            ]
            writer.write("\t".join(headers) + "\n")

        for row in table.rows:
            writer.write("\t".join(truncate(str(c)) for c in row.cells) + "\n")

        if owned:
            writer.flush()
