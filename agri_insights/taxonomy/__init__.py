"""Canonical enum tags shared across the analytics core."""
