from datetime import datetime, timezone

from fastapi import Depends, FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from chatdesk.config import settings
from chatdesk.database import get_db, init_db
from chatdesk.logging_config import get_logger, setup_logging
from chatdesk.realtime import EVENT_MESSAGE, manager
from chatdesk.routers import broadcasts, flows, keywords, messages, webhook
from chatdesk.routers import settings as settings_router
from chatdesk.services.settings_service import get_whatsapp_config

setup_logging(settings.log_level)
logger = get_logger("main")

app = FastAPI(
    title="Chatdesk API",
    description="WhatsApp Business messaging backend",
    version="0.1.0",
)

cors_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
if not cors_origins:
    cors_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(webhook.router)
app.include_router(messages.router)
app.include_router(flows.router)
app.include_router(keywords.router)
app.include_router(broadcasts.router)
app.include_router(settings_router.router)


@app.on_event("startup")
def create_tables() -> None:
    init_db()
    logger.info("Database ready")


@app.get("/health")
def health(db: Session = Depends(get_db)):
    config = get_whatsapp_config(db)
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "config": {
            "hasAccessToken": bool(config.access_token),
            "hasPhoneNumberId": bool(config.phone_number_id),
            "verifyToken": config.verify_token,
            "webhookUrl": config.webhook_url,
        },
    }


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Dashboard clients receive apiData events and may relay message events."""
    await manager.connect(websocket)
    try:
        while True:
            payload = await websocket.receive_json()
            if isinstance(payload, dict) and payload.get("event") == EVENT_MESSAGE:
                await manager.broadcast(EVENT_MESSAGE, payload.get("data"))
    except WebSocketDisconnect:
        logger.debug("WS client closed the connection")
    except ValueError as e:
        logger.warning(f"WS client sent an invalid frame: {e}")
        await websocket.close(code=1003)
    finally:
        manager.disconnect(websocket)
