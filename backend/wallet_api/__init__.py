"""
Wallet dashboard API backend.
"""
