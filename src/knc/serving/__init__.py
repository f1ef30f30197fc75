"""knc.serving — Serving objects and object access."""
