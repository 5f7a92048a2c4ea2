"""
Ingestion layer: the adapter between the record store's exports and the
analytics core's immutable value types.

Submodules:
  snapshot  : JSON snapshot loader, store-row adapter, per-row validation
"""
