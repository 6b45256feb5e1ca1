"""
Restaurant table reservation engine.

Finds the table combination that seats a party, evaluates availability for
every lunch and dinner slot, and manages multi-table booking groups.
"""

__version__ = "0.1.0"
