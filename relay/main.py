from typing import Optional

from fastapi import FastAPI

from relay.config import Settings, get_settings
from relay.logging_config import get_logger, setup_logging
from relay.routers import alerts, webhook
from relay.services import alert_service
from relay.services.backends import BackendAdapter, create_backend
from relay.services.conversation_router import ConversationRouter
from relay.services.menu_catalog import MenuCatalog
from relay.services.relay_service import InboundDeduplicator, RelayService
from relay.services.session_store import SessionStore
from relay.services.whatsapp_service import WhatsAppMessenger

logger = get_logger("main")


def create_app(
    settings: Optional[Settings] = None,
    backend: Optional[BackendAdapter] = None,
    messenger: Optional[WhatsAppMessenger] = None,
    store: Optional[SessionStore] = None,
) -> FastAPI:
    """Build the application. Configuration errors surface here, before any request is served."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    alert_service.configure(settings.alert_bot_token, settings.alert_chat_id)

    backend = backend or create_backend(settings)
    messenger = messenger or WhatsAppMessenger(
        messages_url=settings.messages_url,
        access_token=settings.whatsapp_cloud_access_token,
        header_image_url=settings.menu_header_image_url,
        timeout_seconds=settings.whatsapp_timeout_seconds,
    )
    store = store or SessionStore(ttl_seconds=settings.session_ttl_seconds)
    router = ConversationRouter(store=store, catalog=MenuCatalog(), backend=backend)

    app = FastAPI(
        title="WhatsApp Relay",
        description="Menu-driven WhatsApp chatbot relay",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.sessions = store
    app.state.relay = RelayService(
        router=router,
        messenger=messenger,
        deduplicator=InboundDeduplicator(max_entries=settings.dedup_max_entries),
    )

    app.include_router(webhook.router)
    app.include_router(alerts.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "backend": backend.name, "sessions": len(store)}

    logger.info(
        "Relay configured",
        extra={"context": {"backend": backend.name, "session_ttl_seconds": settings.session_ttl_seconds}},
    )
    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
