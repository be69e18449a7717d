"""Shared helpers: GitHub access, configuration, validation, formatting."""
