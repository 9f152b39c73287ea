"""Core refresh machinery."""
