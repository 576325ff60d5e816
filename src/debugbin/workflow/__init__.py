"""Build-and-extract workflow."""
