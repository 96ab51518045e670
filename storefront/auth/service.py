from typing import Any, Dict
from . import repository

def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """Identité externe normalisée pour un access token.
    - Retourne {id, email, metadata, token}; id vaut None si le token ne correspond à personne
    - id est l'identifiant du fournisseur (users.auth_id), pas la ligne users interne
    """
    raw = repository.fetch_identity(access_token) or {}
    return {
        "id": raw.get("id"),
        "email": raw.get("email"),
        "metadata": raw.get("user_metadata") or {},
        "token": access_token,
    }
