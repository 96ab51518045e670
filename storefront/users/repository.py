"""Couche d’accès aux données (PostgreSQL) pour le domaine Utilisateurs.
Fait le lien entre l’identité externe (Supabase Auth) et la ligne users interne.
"""
from typing import Any, Dict, Optional
from storefront.infra import database

def get_user_by_auth_id(auth_id: str) -> Optional[Dict[str, Any]]:
    """Récupère l’utilisateur interne associé à un identifiant externe.
    - Table: users (auth_id unique)
    - Retour: dict {id, auth_id, first_name, last_name, email, phone} ou None
    """
    if not auth_id:
        return None
    with database.get_conn() as conn:
        row = conn.execute(
            "SELECT id, auth_id, first_name, last_name, email, phone FROM users WHERE auth_id = %s",
            (auth_id,),
        ).fetchone()
    if not row:
        return None
    row["id"] = str(row["id"])
    return row
