"""Affiliate program backend: registration, volume attribution, tiers and payouts."""

__version__ = "1.0.0"
