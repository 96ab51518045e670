"""
Cycle de vie de l'app: connexion du rate limiter (fastapi-limiter) à Redis.

Variables d'environnement:
  - RATE_LIMIT_REDIS_URL: Redis cible (redis://127.0.0.1:6379/0 par défaut)
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: aucune connexion, limitation désactivée
  - USE_FAKE_REDIS_FOR_TESTS=1: Redis en mémoire (fakeredis)
  - LOCAL_RATE_LIMIT_FALLBACK=1: voir storefront.utils.rate_limit (fenêtre locale)
"""
import logging
import os
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

logger = logging.getLogger("uvicorn.error")

def _limiter_backend():
    if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
        from fakeredis.aioredis import FakeRedis  # tests only
        return FakeRedis(decode_responses=True)
    url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
    return aioredis.from_url(url, encoding="utf-8", decode_responses=True)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    app.state.rate_limit_enabled reflète l'état effectif:
    un Redis injoignable désactive la limitation sans empêcher le démarrage.
    """
    app.state.rate_limit_enabled = False
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
    else:
        try:
            await FastAPILimiter.init(_limiter_backend())
            app.state.rate_limit_enabled = True
            logger.info("Rate limiting enabled")
        except Exception as e:
            logger.warning("Rate limiting disabled, Redis init failed: %s", e)

    yield

    if app.state.rate_limit_enabled:
        await FastAPILimiter.close()
