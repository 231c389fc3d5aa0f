"""
Usages module - License seat consumption.

This module handles:
- LicenseUsage entity (one device fingerprint holding a seat)
- Counting and revoking active usages of a license
"""
