"""
crewlog kernel

Shared foundation for the crew compliance engine:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- Day-granular ledger value objects
"""

__version__ = "0.1.0"
