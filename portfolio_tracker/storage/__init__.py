"""Snapshot persistence."""
from .supabase import SnapshotStoreError, SupabaseSnapshotStore

__all__ = ["SnapshotStoreError", "SupabaseSnapshotStore"]
