"""
Factory d'application: point unique d'assemblage (storefront.asgi, tests).
"""
from fastapi import FastAPI

from .exceptions import register_exception_handlers
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_response_headers_middleware
from .routers import register_routers

def create_app() -> FastAPI:
    """
    App FastAPI du checkout:
      - lifespan (rate limiter Redis)
      - middlewares CORS / TrustedHost / en-têtes de réponse
      - handlers d'erreurs {"error": ...}
      - routers checkout + health
    """
    app = FastAPI(title="Storefront Checkout", version="0.1.0", lifespan=lifespan)
    register_basic_middlewares(app)
    register_response_headers_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
