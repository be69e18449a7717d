"""GSD Bot: milestone planning driven by issue comments."""

__version__ = "0.4.0"
