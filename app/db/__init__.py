"""Accès aux stockages externes : Supabase (source de vérité) et Redis (cache)"""
from .supabase_client import create_supabase_client
from .cache import RedisCache

__all__ = ["create_supabase_client", "RedisCache"]
