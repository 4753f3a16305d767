"""Core logic for indicators, signal scoring, and models.

This package contains pure business logic with no I/O dependencies
(no network, file, or database access). The backtesting system
(backtest/) builds the portfolio simulation and data sources on top of it.
"""
