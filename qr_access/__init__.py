# =======================================================================================
# qr_access/__init__.py - Package Initialization
# =======================================================================================
"""
QR Access Control - Credential & Scan Validation Engine

Issues rotating QR credentials bound to registered identities, validates
scans against each identity's subscription window and keeps an append-only
audit log of every admitted entry and exit.
"""

__version__ = "1.0.0"
__author__ = "QR Access Control Team"
