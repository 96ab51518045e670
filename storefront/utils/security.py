"""
Authentification des appels API par le fournisseur d'identité (Supabase Auth).
Le token est lu dans l'en-tête Authorization (Bearer), sinon dans le cookie de session.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request

logger = logging.getLogger(__name__)

COOKIE_NAME = "sb_access"
BEARER_PREFIX = "bearer "

def extract_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization") or ""
    if header[:len(BEARER_PREFIX)].lower() == BEARER_PREFIX:
        token = header[len(BEARER_PREFIX):].strip()
        if token:
            return token
    return request.cookies.get(COOKIE_NAME) or None

def _unauthorized() -> HTTPException:
    return HTTPException(status_code=401, detail="Unauthorized")

def get_current_user(request: Request) -> Dict[str, Any]:
    """
    Identité externe de l'appelant: {id, email, metadata, token}.
    401 si token absent, rejeté par le fournisseur, ou sans identifiant.
    """
    token = extract_token(request)
    if not token:
        raise _unauthorized()

    # Import tardif: les tests remplacent storefront.auth.service.get_user_from_token
    from storefront.auth import service as auth_service
    try:
        user = auth_service.get_user_from_token(token)
    except Exception as e:
        logger.info("auth rejected token path=%s: %s", request.url.path, e)
        raise _unauthorized() from e
    if not user or not user.get("id"):
        raise _unauthorized()
    return user

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user
