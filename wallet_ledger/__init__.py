"""
Wallet Ledger - Source Package

The ledger and aggregation core of a personal finance tracker:
wallets, income/expense transactions, and savings goals.

DESIGN PRINCIPLES:
1. Transaction history is the source of truth for wallet balances
2. Every balance change is paired with the transaction change that caused it
3. No silent divergence - inconsistencies are healed AND logged
4. Failures come back as results, never as crashes in the caller
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Wallet Ledger Team"
