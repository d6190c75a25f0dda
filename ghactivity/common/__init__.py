"""Helpers shared across ghactivity layers."""
