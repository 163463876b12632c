"""
otpmigrate - extract OTP secrets from authenticator exports and re-package them.

Deutsch:
    Extrahiert OTP-Geheimnisse aus Authenticator-Exporten und exportiert sie neu.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.4.0"
