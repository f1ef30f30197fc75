"""knc.traffic — Traffic block computation."""
