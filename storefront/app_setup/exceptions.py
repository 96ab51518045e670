"""
Gestionnaires d’exceptions utilisés par la factory.
- CheckoutError: statut HTTP et message public portés par l’exception, body {"error": ...}.
- RequestValidationError sur /api/*: 400 {"error": "Invalid request data", "details": [...]}.
- HTTPException: {"error": detail} pour les clients API, {"detail": ...} ailleurs.
- Exception non prévue: 500 JSON générique (journalisée avec sa trace).
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.checkout.errors import CheckoutError, InvalidRequest, Unauthorized

logger = logging.getLogger(__name__)

def _validation_details(exc: RequestValidationError):
    # Détails par champ, sans l’entrée brute (peut contenir des données personnelles)
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]

def register_exception_handlers(app: FastAPI) -> None:
    """
    Enregistre les handlers de la taxonomie checkout et des erreurs HTTP génériques.
    - Les familles PaymentState / 500 gardent un message volontairement générique.
    """
    @app.exception_handler(CheckoutError)
    async def checkout_error_handler(request: Request, exc: CheckoutError):
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_payload()))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        if not request.url.path.startswith("/api/"):
            return await request_validation_exception_handler(request, exc)
        err = InvalidRequest(details=_validation_details(exc))
        return JSONResponse(status_code=err.status_code, content=jsonable_encoder(err.to_payload()))

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        headers = getattr(exc, "headers", None)
        if request.url.path.startswith("/api/"):
            if exc.status_code == Unauthorized.status_code:
                content = Unauthorized().to_payload()
            else:
                content = {"error": exc.detail}
            return JSONResponse(status_code=exc.status_code, content=content, headers=headers)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error("Erreur non gérée %s %s", request.method, request.url.path, exc_info=exc)
        if request.url.path.startswith("/api/"):
            return JSONResponse(status_code=500, content=CheckoutError().to_payload())
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
