"""
App Store earnings reporting.
Parses Apple Financial Reports, converts proceeds into one currency,
groups products under their parent apps and estimates payment status.
"""

__version__ = "0.3.0"
