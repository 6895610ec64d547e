"""Local git working copy operations."""
