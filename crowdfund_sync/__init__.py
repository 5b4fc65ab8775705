"""
Campaign lifecycle status engine and ledger sync store for a
crowdfunding dashboard.
"""

__version__ = "0.1.0"
