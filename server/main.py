"""FastAPI WebSocket server for Column Golf."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from config import config
from handlers import ConnectionContext, dispatch
from logging_config import setup_logging
from routers.health import router as health_router
from routers.health import set_health_dependencies
from session import SessionManager

# Configure logging based on environment
setup_logging(
    level=config.LOG_LEVEL,
    environment=config.ENVIRONMENT,
)
logger = logging.getLogger(__name__)

session_manager = SessionManager(max_sessions=config.MAX_SESSIONS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    set_health_dependencies(session_manager=session_manager)

    logger.info(f"Column Golf server started (environment={config.ENVIRONMENT})")

    yield

    logger.info("Shutdown initiated...")
    await session_manager.close_all()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Column Golf",
    debug=config.DEBUG,
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(health_router)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()

    session = session_manager.create_session(websocket)
    if session is None:
        await websocket.send_json({"type": "error", "message": "Server is full, try again later"})
        await websocket.close(code=1013, reason="Server is full")
        return

    ctx = ConnectionContext(
        websocket=websocket,
        connection_id=session.session_id,
        session=session,
    )
    logger.debug(f"WebSocket connected as {ctx.connection_id}")

    try:
        while True:
            data = await websocket.receive_json()
            await dispatch(data, ctx)
    except WebSocketDisconnect:
        logger.debug(f"WebSocket {ctx.connection_id} disconnected")
    finally:
        await session_manager.remove_session(session.session_id)


def run():
    """Run the server using uvicorn."""
    import uvicorn

    logger.info(f"Starting Column Golf server on {config.HOST}:{config.PORT}")
    logger.info(f"Debug mode: {config.DEBUG}")

    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
