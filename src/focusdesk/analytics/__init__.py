"""Daily analytics rollups."""
