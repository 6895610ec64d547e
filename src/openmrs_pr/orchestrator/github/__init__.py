"""GitHub pull request integration."""
