"""
Procurement Kernel

Shared infrastructure for purchase reconciliation:
- Purchase, return, timeline and payment input records
- Structured JSON logging with request-scoped context
- Typed exceptions with machine-readable codes
- Injectable clock
- Dependency-injected async data store client
"""

__version__ = "0.1.0"
