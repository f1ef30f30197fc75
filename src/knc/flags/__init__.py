"""knc.flags — Flag value parsers."""
