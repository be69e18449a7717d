"""Milestone workflow: status state machine and orchestration."""
