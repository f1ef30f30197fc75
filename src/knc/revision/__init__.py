"""knc.revision — Revision listing and describe."""
