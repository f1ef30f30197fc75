"""
knc.printers.prefixwriter — Indented attribute output for describe.

    dw = PrefixWriter(sys.stdout)
    section = dw.write_attribute("Service", "echo")
    section.write_attribute("Latest Ready", "true")
    dw.flush()

    Service:          echo
      Latest Ready:   true

Every nested call returns a new writer carrying its own indentation
(leading empty columns plus leading spaces); all of them share one
TabWriter, which aligns the columns on flush().
"""

from __future__ import annotations

from typing import Any, TextIO

from knc.printers.tabwriter import TabWriter

_LEVEL_SPACE = "  "


def label(name: str) -> str:
    """Attribute label as printed in front of its value."""
    return name + ":"


def new_tab_writer(output: TextIO) -> TabWriter:
    return TabWriter(output, minwidth=0, padding=2)


class PrefixWriter:
    """Column writer with an indentation of its own."""

    def __init__(
        self,
        output: TextIO | TabWriter,
        col_indent: int = 0,
        space_indent: int = 0,
    ):
        self._out = output if isinstance(output, TabWriter) else new_tab_writer(output)
        self.col_indent = col_indent
        self.space_indent = space_indent

    def _prefix(self) -> str:
        return _LEVEL_SPACE * self.space_indent

    def write_cols(self, *cols: str) -> PrefixWriter:
        """Write columns; the returned writer continues in the last column."""
        cells = [""] * self.col_indent + [str(c) for c in cols]
        if cells:
            cells[0] = self._prefix() + cells[0]
        self._out.write("\t".join(cells))
        return PrefixWriter(
            self._out,
            self.col_indent + max(len(cols) - 1, 0),
            self.space_indent,
        )

    def write_cols_ln(self, *cols: str) -> PrefixWriter:
        nested = self.write_cols(*cols)
        self.write_line()
        return nested

    def write_attribute(self, name: str, value: Any) -> PrefixWriter:
        """Write "name: value"; sub-attributes go two spaces deeper."""
        self.write_cols_ln(label(name), str(value))
        return PrefixWriter(self._out, self.col_indent, self.space_indent + 1)

    def write_line(self, *args: Any) -> None:
        """Write an unindented line."""
        self._out.write(" ".join(str(a) for a in args) + "\n")

    def writef(self, fmt: str, *args: Any) -> None:
        """Write printf-style text at this writer's space indentation."""
        self._out.write(self._prefix() + (fmt % args if args else fmt))

    def flush(self) -> None:
        """Align and drain everything written so far.

        Raises:
            OutputError: The output stream rejected the write
        """
        self._out.flush()
