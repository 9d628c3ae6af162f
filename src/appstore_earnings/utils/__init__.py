"""
Utility helpers for the earnings reporter.
"""
