"""Support tickets and replies."""
