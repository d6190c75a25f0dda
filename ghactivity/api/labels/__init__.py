"""Time-to-label resources."""
