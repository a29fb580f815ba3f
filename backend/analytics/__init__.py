"""Quantitative analytics core (pure computation, no I/O).

This package contains the indicator function library, the custom
indicator graph engine, and the order book / volume profile analytics.
It is shared by the backtest simulator (backtest/) and the background
worker (worker/), which only move data in and out of it.
"""
