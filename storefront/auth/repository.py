from typing import Any, Dict, Optional
from storefront.infra.supabase_client import get_supabase

def fetch_identity(access_token: str) -> Optional[Dict[str, Any]]:
    """
    Appelle supabase.auth.get_user(access_token).
    Retour: {"id", "email", "user_metadata"} ou None si le fournisseur ne renvoie aucun utilisateur.
    """
    res = get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None)
    if not user:
        return None
    if isinstance(user, dict):
        return user
    return {
        "id": getattr(user, "id", None),
        "email": getattr(user, "email", None),
        "user_metadata": getattr(user, "user_metadata", None),
    }
