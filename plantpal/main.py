import logging

import socketio
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from plantpal.config import settings
from plantpal.errors import UninitializedGatewayError
from plantpal.models.database import engine, Base, SessionLocal
from plantpal.api.routes import dashboard, health
from plantpal.auth.jwt import verify_token
from plantpal.realtime.gateway import PresenceGateway
from plantpal.services.presence_store import SqlPresenceStore

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

# Create tables
Base.metadata.create_all(bind=engine)


def create_app() -> FastAPI:
    app = FastAPI(
        title="PlantPal Dashboard API",
        version="1.0.0",
        description="Dashboard API and realtime presence gateway for PlantPal devices"
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS.split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(health.router)
    app.include_router(dashboard.router)

    @app.exception_handler(UninitializedGatewayError)
    async def gateway_unavailable(request: Request, exc: UninitializedGatewayError):
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.get("/")
    async def root():
        return {"message": "PlantPal Dashboard API", "version": "1.0.0"}

    return app


def attach_gateway(app: FastAPI, gateway: PresenceGateway) -> socketio.ASGIApp:
    """Initialize and start the gateway, then expose it to request handlers."""
    asgi_app = gateway.init(app)
    gateway.start()
    app.state.gateway = gateway
    return asgi_app


app = create_app()

# Serve this one: Socket.IO in front of the HTTP app
asgi_app = attach_gateway(app, PresenceGateway(
    SqlPresenceStore(SessionLocal),
    verify_token,
    cors_origins=settings.CORS_ORIGINS.split(","),
    socketio_path=settings.SOCKETIO_PATH,
    handshake_timeout=settings.HANDSHAKE_TIMEOUT_SECONDS,
))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("plantpal.main:asgi_app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
