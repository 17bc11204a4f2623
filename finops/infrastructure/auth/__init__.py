"""Token, password and TOTP adapters."""
