"""
Core module for shared domain infrastructure.

This module contains:
- Domain events, exceptions and value objects
- Actor capability contracts
- Event bus and audit logging
- Tracing and metrics
"""
