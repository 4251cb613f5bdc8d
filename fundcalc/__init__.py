"""Mutual-fund projection engine: returns, XIRR, SIP/SWP and retirement planning."""

__version__ = "0.1.0"
