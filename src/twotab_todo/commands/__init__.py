"""CLI commands driving the todo engine."""
