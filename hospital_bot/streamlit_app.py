from __future__ import annotations
import sys
import asyncio
import uuid
from typing import List

import streamlit as st
from sqlalchemy.ext.asyncio import AsyncEngine

from hospital_bot.config import settings
from hospital_bot.db.session import init_db, make_engine
from hospital_bot.messages import Button, InboundMessage, ListSection
from hospital_bot.router import FlowRouter
from hospital_bot.session.store import MemorySessionStore
from hospital_bot.wiring import build_router

# ---- Windows event loop fix ----
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())  # type: ignore[attr-defined]

st.set_page_config(page_title=f"{settings.hospital_name} assistant", page_icon="🏥", layout="centered")

STAFF_LABEL = "staff"


class TranscriptGateway:
    """Appends outgoing messages to the current browser session's transcript instead of sending them."""

    def _add(self, user_id: str, content: str) -> None:
        role = "assistant" if user_id == st.session_state.get("patient_id") else STAFF_LABEL
        st.session_state.messages.append({"role": role, "content": content})

    async def send_text(self, user_id: str, text: str) -> None:
        self._add(user_id, text)

    async def send_list(self, user_id: str, body: str, button_label: str, sections: List[ListSection]) -> None:
        options = "\n".join(f"- `{r.id}` {r.title}" for s in sections for r in s.rows)
        self._add(user_id, f"{body}\n\n**{button_label}:**\n{options}")

    async def send_buttons(self, user_id: str, body: str, buttons: List[Button]) -> None:
        options = " | ".join(f"`{b.id}` {b.title}" for b in buttons)
        self._add(user_id, f"{body}\n\n{options}")

    async def mark_read(self, message_id: str) -> None:
        return None


# --------- shared per process: one loop, one engine, one router ----------
@st.cache_resource
def event_loop() -> asyncio.AbstractEventLoop:
    # the engine pool and router locks are bound to this loop
    return asyncio.new_event_loop()


@st.cache_resource
def db_engine() -> AsyncEngine:
    engine = make_engine(settings.database_url)
    event_loop().run_until_complete(init_db(engine))
    return engine


@st.cache_resource
def chat_router() -> FlowRouter:
    return build_router(
        settings,
        gateway=TranscriptGateway(),
        store=MemorySessionStore(settings.session_ttl_minutes),
        engine=db_engine(),
    )

chat_router()
# ------------------------------------------------------

st.title("💬 Hospital assistant")
st.caption("Local console: staff alerts are shown inline.")

if "messages" not in st.session_state:
    st.session_state.messages = []
if "patient_id" not in st.session_state:
    st.session_state.patient_id = f"console-{uuid.uuid4().hex[:8]}"

for msg in st.session_state.messages:
    role = "assistant" if msg["role"] == STAFF_LABEL else msg["role"]
    with st.chat_message(role, avatar="🛎️" if msg["role"] == STAFF_LABEL else None):
        st.markdown(msg["content"])

prompt = st.chat_input("Type your message...")


async def handle_user_input(router: FlowRouter, user_text: str):
    st.session_state.messages.append({"role": "user", "content": user_text})
    await router.handle_message(
        InboundMessage(
            type="text",
            sender_id=st.session_state.patient_id,
            message_id=uuid.uuid4().hex,
            sender_name="Patient",
            text=user_text,
        )
    )

if prompt:
    router = chat_router()
    event_loop().run_until_complete(handle_user_input(router, prompt))
    st.rerun()
