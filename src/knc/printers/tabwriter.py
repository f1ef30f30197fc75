"""
knc.printers.tabwriter — Elastic tab-stop column alignment.

Text is buffered until flush(). Every tab-terminated cell belongs to a
column; consecutive lines that have a cell in the same column form a
column block and share its width. The last cell of a line is never
aligned, so a line without tabs ends every block above it:

    Name:\\techo-00001\\n           Name:       echo-00001
    Namespace:\\tdefault\\n    →    Namespace:  default
    \\n
    Conditions:\\t\\n               Conditions:
"""

from __future__ import annotations

from typing import TextIO

from knc.errors import OutputError


class TabWriter:
    """Buffering writer that aligns tab-separated columns on flush.

    Args:
        output: Text stream receiving the aligned output
        minwidth: Minimal cell width, padding included
        padding: Spaces added to the widest cell of a column
    """

    def __init__(self, output: TextIO, minwidth: int = 0, padding: int = 2):
        self.output = output
        self.minwidth = minwidth
        self.padding = padding
        self._buffer: list[str] = []

    def write(self, text: str) -> None:
        self._buffer.append(text)

    def flush(self) -> None:
        """Align buffered text and write it out.

        Raises:
            OutputError: The output stream rejected the write
        """
        text = "".join(self._buffer)
        self._buffer = []
        if not text:
            return

        rendered = self.format(text)
        try:
            self.output.write(rendered)
            flush = getattr(self.output, "flush", None)
            if flush is not None:
                flush()
        except (OSError, ValueError) as e:
            raise OutputError(f"cannot write output: {e}") from e

    def format(self, text: str) -> str:
        """Return text with its tab-separated columns aligned."""
        terminated = text.endswith("\n")
        raw_lines = text.split("\n")
        if terminated:
            raw_lines.pop()
        lines = [line.split("\t") for line in raw_lines]

        out: list[str] = []
        self._format_block(lines, 0, len(lines), [], out)
        result = "\n".join(out)
        return result + "\n" if terminated else result

    def _format_block(
        self,
        lines: list[list[str]],
        start: int,
        end: int,
        widths: list[int],
        out: list[str],
    ) -> None:
        column = len(widths)
        this = start
        while this < end:
            if column >= len(lines[this]) - 1:
                this += 1
                continue

            # Lines before the block only use the outer columns
            self._write_lines(lines, start, this, widths, out)
            start = this

            width = self.minwidth
            while this < end and column < len(lines[this]) - 1:
                width = max(width, len(lines[this][column]) + self.padding)
                this += 1

            self._format_block(lines, start, this, widths + [width], out)
            start = this

        self._write_lines(lines, start, end, widths, out)

    @staticmethod
    def _write_lines(
        lines: list[list[str]],
        start: int,
        end: int,
        widths: list[int],
        out: list[str],
    ) -> None:
        for cells in lines[start:end]:
            parts: list[str] = []
            for j, cell in enumerate(cells):
                if j < len(widths):
                    parts.append(cell.ljust(widths[j]))
                else:
                    parts.append(cell)
            out.append("".join(parts))
