"""Aggregate activity count resources."""
