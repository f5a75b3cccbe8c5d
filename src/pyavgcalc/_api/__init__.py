"""Endpoint modules: request builders and response parsers.

Internal to pyavgcalc and may change at any time.
"""
