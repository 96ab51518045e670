"""
Lance le service checkout avec uvicorn: python -m storefront

- HOST / PORT: adresse d'écoute (0.0.0.0:8000 par défaut)
- UVICORN_RELOAD=1: reload auto en dev
- LOG_LEVEL: niveau de logs (info par défaut)
"""
import os

import uvicorn

def main() -> None:
    uvicorn.run(
        "storefront.asgi:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("UVICORN_RELOAD", "").lower() in ("1", "true", "yes"),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )

if __name__ == "__main__":
    main()
