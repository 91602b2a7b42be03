"""Cache module for analysis results."""

from divvy.data.cache.analysis_cache import AnalysisCache, CacheRecord, hash_options
from divvy.data.cache.supabase_client import SupabaseClient

__all__ = ["AnalysisCache", "CacheRecord", "SupabaseClient", "hash_options"]
