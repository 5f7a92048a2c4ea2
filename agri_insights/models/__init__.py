"""
Immutable value types for the analytics core.

Modules
-------
ledger    : LedgerEntry.
farm      : Farmer, FarmPlot, AgronomicInput.
commerce  : Product, Listing, InventorySignal, Order, OrderLineItem.
weather   : WeatherSnapshot.
insights  : Output types (AgingBuckets, ReminderAdvice, PredictionResult, ...).
fields    : Shared repair helpers for malformed store values.
"""
