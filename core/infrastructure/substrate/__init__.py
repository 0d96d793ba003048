"""Job substrate implementations."""
from .in_memory import InMemoryJobSubstrate, RecurringJob

__all__ = ["InMemoryJobSubstrate", "RecurringJob"]
