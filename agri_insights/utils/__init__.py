"""Logging and time helpers."""
