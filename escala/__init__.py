"""
Escala: hospital shift scheduling and billing.
Assigns doctors to hospital shifts on a monthly calendar seeded from a weekly
template, prices the assignments from financial rules and produces reports
and timesheets.

The whole application state is one plain dictionary (the store); every
operation here takes a store and returns a new one.
"""

__version__ = "1.0.0"
