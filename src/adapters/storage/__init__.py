"""Storage adapters - Object store implementations for payment proofs."""

from .local import LocalObjectStorage
from .supabase import SupabaseObjectStorage

__all__ = ["LocalObjectStorage", "SupabaseObjectStorage"]
