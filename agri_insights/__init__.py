"""Agri Insights: analytics core for agri-input dealers."""

__version__ = "0.1.0"
