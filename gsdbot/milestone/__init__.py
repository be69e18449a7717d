"""Milestone planning: state, requirements, documents and summaries."""
