"""JIRA issue tracker integration."""
