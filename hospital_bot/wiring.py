from __future__ import annotations
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from hospital_bot.config import Settings, settings as default_settings
from hospital_bot.db.session import make_engine, make_sessionmaker
from hospital_bot.flows.base import FlowServices
from hospital_bot.llm.adapter import LLMAdapter
from hospital_bot.log import configure_logging
from hospital_bot.router import FlowRouter
from hospital_bot.services.gateways import NotificationGateway
from hospital_bot.services.persistence import SqlPersistenceGateway
from hospital_bot.services.suggestion import SuggestionService
from hospital_bot.services.whatsapp import WhatsAppGateway
from hospital_bot.session.store import SessionStore, build_session_store


def build_router(
    settings: Settings = default_settings,
    gateway: Optional[NotificationGateway] = None,
    store: Optional[SessionStore] = None,
    engine: Optional[AsyncEngine] = None,
) -> FlowRouter:
    """
    Production wiring: WhatsApp out, SQL persistence, Redis or in-process sessions.

    Build once per process and reuse; pass `engine` to share a connection pool.
    """
    configure_logging(settings.log_level)
    if engine is None:
        engine = make_engine(settings.database_url)
    services = FlowServices(
        persistence=SqlPersistenceGateway(make_sessionmaker(engine)),
        suggestions=SuggestionService(LLMAdapter(settings), settings.ai_confidence_threshold),
        settings=settings,
    )
    return FlowRouter(
        store=store or build_session_store(settings),
        gateway=gateway or WhatsAppGateway(settings),
        services=services,
        settings=settings,
    )
