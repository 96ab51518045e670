"""
Client Supabase partagé, utilisé uniquement comme fournisseur d'identité
(résolution d'un access token via Supabase Auth). Les données métier sont dans PostgreSQL.
"""
from functools import lru_cache

from supabase import Client, create_client

from storefront.config import SUPABASE_ANON, SUPABASE_URL

@lru_cache(maxsize=1)
def get_supabase() -> Client:
    if not (SUPABASE_URL and SUPABASE_ANON):
        raise RuntimeError("SUPABASE_URL et SUPABASE_ANON_KEY sont requis pour l'authentification")
    return create_client(SUPABASE_URL, SUPABASE_ANON)
