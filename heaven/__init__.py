"""
7th Heaven Club referral network engine.

Referral forest loading, level analysis and reward claim gating for the
Celsius storefront rewards program.
"""

__version__ = "0.1.0"
