"""
Transfers module - License transfer approval workflow.

This module handles:
- Transfer requests and their approval steps
- Approval planning, authorization and state aggregation
- Transfer execution and immutable transfer history
"""
