"""knc.commands — Helpers shared by describe and list output."""
