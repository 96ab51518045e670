"""
Middlewares HTTP du service checkout (API JSON, pas de pages HTML).
- CORS limité aux méthodes et en-têtes utilisés par le front de paiement.
- Hôtes autorisés (ALLOWED_HOSTS), ouverts si CORS_ORIGINS contient "*" (dev).
- En-têtes de réponse: anti-sniffing/framing, HSTS si cookies sécurisés, no-store sur /api/v1/checkout.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from storefront.config import ALLOWED_HOSTS, COOKIE_SECURE, CORS_ORIGINS

API_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}
HSTS = "max-age=63072000; includeSubDomains; preload"

def register_basic_middlewares(app: FastAPI) -> None:
    hosts = list(ALLOWED_HOSTS)
    if "*" in CORS_ORIGINS:
        hosts.append("*")
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=hosts)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

def register_response_headers_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def api_response_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in API_HEADERS.items():
            response.headers.setdefault(name, value)
        if COOKIE_SECURE:
            response.headers.setdefault("Strict-Transport-Security", HSTS)
        # Réponses de paiement: jamais en cache (client secret, commandes)
        if request.url.path.startswith("/api/v1/checkout"):
            response.headers["Cache-Control"] = "no-store"
            response.headers["Pragma"] = "no-cache"
        return response
