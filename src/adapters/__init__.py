"""Adapters that plug storage and presentation concerns into the core ports."""
