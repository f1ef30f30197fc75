"""knc.printers — Column and table output."""
