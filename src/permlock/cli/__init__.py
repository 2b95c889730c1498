"""Command line interface for permlock."""
