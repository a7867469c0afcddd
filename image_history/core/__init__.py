"""Core history and media components."""
