"""Display commerce attribution and payout API."""

__version__ = "1.0.0"
