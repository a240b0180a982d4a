from typing import Iterable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware


def configure_cors(app: FastAPI, origins: Iterable[str]):
    # the storefront sends the session cookie, so origins must be explicit (no "*")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o for o in origins if o and o != "*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        max_age=86400,
    )


def add_security_headers(app: FastAPI):
    @app.middleware("http")
    async def security_headers_mw(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer-when-downgrade"
        # session state must never be served from a shared cache
        if request.url.path.startswith(("/api/cart", "/api/auth", "/api/checkout", "/api/orders")):
            response.headers["Cache-Control"] = "no-store"
        return response
