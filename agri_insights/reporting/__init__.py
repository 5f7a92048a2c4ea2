"""
Reporting layer: turns analytics outputs into terminal text.

Modules
-------
formatters : ASCII formatters for each CLI report (ledger, reminders,
             demand, segments, bundles, sales trend, leads).
"""
