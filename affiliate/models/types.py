"""
Standard type definitions for database models.

Provides consistent types for monetary fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for volumes, commissions, balances (USD)
# Precision: 28 digits total, 8 after decimal point
# Range: up to 99,999,999,999,999,999,999.99999999
MoneyType = DECIMAL(28, 8)
