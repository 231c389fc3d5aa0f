"""
Licenses module - License ownership.

This module handles:
- License entity and domain logic
- License ownership and transferability
"""
