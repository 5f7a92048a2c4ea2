"""
Analytics core: pure, deterministic transformations over in-memory records.

No function in this package performs I/O, reads the clock or mutates its
inputs; "now" is always an explicit argument.

Modules
-------
ledger     : calculate_balance() + age_debt() FIFO aging + per-farmer
             summaries, debt status and display fractions.
reminders  : advise_reminder(): harvest / high-balance reminder policy.
demand     : forecast_demand(): declarative rule table over plot cohorts,
             weather and stock.
segments   : segment_customers(): exclusive RFM-style segments.
basket     : find_bundles(): pairwise co-occurrence mining.
trends     : monthly_trend(): fixed-window monthly vendor revenue.
leads      : find_upsell_leads(): micronutrient / bio-stimulant leads.
"""
