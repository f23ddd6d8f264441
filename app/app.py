"""
UI layer
Purpose: Streamlit operator console. Stands in for the chat transport: the
operator types (and optionally attaches a photo) as any sender id, the
message goes through the same dispatcher a chat channel would use, and the
outbound text, images and voice notes are rendered here. All work is
delegated to bot.dispatcher; the page only keeps the visible transcript.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime

import streamlit as st

from bot.config import load_env_file, load_settings
from bot.factory import Bot, build_bot
from bot.models import InboundMessage, MediaAttachment


# ---------------------------
# Page config
# ---------------------------
st.set_page_config(
    page_title="WhatsApp AI Bridge",
    page_icon="💬",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ---------------------------
# Shared bot (one per process)
# ---------------------------
@st.cache_resource
def get_bot() -> Bot:
    """Build the bot once; every browser session shares its memory and store."""
    load_env_file()
    return build_bot(load_settings())


@dataclass
class ConsoleTransport:
    """Collects outbound items for one inbound message."""

    sender_id: str
    items: list[dict] = field(default_factory=list)

    def reply(self, text: str) -> None:
        self.items.append({"kind": "text", "data": text})

    def reply_image(self, png_bytes: bytes) -> None:
        self.items.append({"kind": "image", "data": png_bytes})

    def send_voice(self, ogg_bytes: bytes) -> None:
        self.items.append({"kind": "voice", "data": ogg_bytes})


# ---------------------------
# Session state init
# ---------------------------
st_session = st.session_state
st_session.setdefault("sender_id", "console-user")
st_session.setdefault("transcript", [])
st_session.setdefault("upload_key", 0)


# ---------------------------
# Helpers
# ---------------------------
def transcript_for(sender_id: str) -> list[dict]:
    return [e for e in st_session.transcript if e["sender"] == sender_id]


def render_item(item: dict) -> None:
    kind = item.get("kind")
    data = item.get("data")
    if kind == "image":
        st.image(data, width=400)
    elif kind == "voice":
        if data:
            st.audio(data, format="audio/ogg")
        else:
            st.caption("(empty voice note)")
    else:
        st.markdown(data or "(empty)")


def send(bot: Bot, sender_id: str, text: str, upload) -> None:
    media = None
    if upload is not None:
        media = MediaAttachment(data=upload.getvalue(), mime_type=upload.type or "")

    now = datetime.now().strftime("%H:%M:%S")
    st_session.transcript.append(
        {
            "sender": sender_id,
            "direction": "in",
            "at": now,
            "items": [{"kind": "text", "data": text}]
            + ([{"kind": "image", "data": media.data}] if media and media.is_image else []),
        }
    )

    transport = ConsoleTransport(sender_id=sender_id)
    with st.spinner("Bot is replying…"):
        bot.dispatcher.handle(
            InboundMessage(sender_id=sender_id, body=text, media=media), transport
        )
    st_session.transcript.append(
        {"sender": sender_id, "direction": "out", "at": now, "items": transport.items}
    )


def clear_transcript() -> None:
    """Wipe the visible transcript. Stored history is untouched."""
    st_session.transcript = []


# ---------------------------
# SIDEBAR: status & sender
# ---------------------------
try:
    bot = get_bot()
except ValueError as e:
    st.error(f"Configuration error: {e}")
    st.stop()

with st.sidebar:
    st.markdown("# Settings")

    st.markdown("## Providers")
    for label, client in (("Primary", bot.primary), ("Fallback", bot.fallback)):
        status = "✅ key set" if client.has_credentials else "⚠️ key missing"
        st.markdown(f"**{label}:** `{client.name}` · {status}")
    st.caption(
        f"Models: {bot.settings.openai_model} → {bot.settings.deepseek_model} · "
        f"max tokens {bot.settings.max_output_tokens} · "
        f"temperature {bot.settings.temperature}"
    )
    st.divider()

    st.markdown("## History file")
    st.code(bot.memory.store.path.resolve().as_posix(), language=None)
    st.caption(
        f"{len(bot.memory.users())} users · last {bot.memory.max_turns} turns kept per user"
    )
    st.divider()

    st.markdown("## Sender")
    st_session.sender_id = (
        st.text_input("Sender id", value=st_session.sender_id).strip() or "console-user"
    )
    st.button("Clear transcript", on_click=clear_transcript)


# ---------------------------
# Main tabs
# ---------------------------
st.title("WhatsApp AI Bridge")
chat_tab, history_tab, about_tab = st.tabs(["Chat", "History", "About"])

with chat_tab:
    sender_id = st_session.sender_id
    transcript = st.container(height=520, border=True)
    with transcript:
        for entry in transcript_for(sender_id):
            role = "user" if entry["direction"] == "in" else "assistant"
            with st.chat_message(role):
                st.caption(entry["at"])
                for item in entry["items"]:
                    render_item(item)

    upload = st.file_uploader(
        "Attach a photo (caption with bw / cartoon / colorize / enhance, or style: …)",
        type=["png", "jpg", "jpeg", "webp"],
        key=f"upload_{st_session.upload_key}",
    )
    raw = st.chat_input("Type a message…")
    if raw is not None:
        send(bot, sender_id, raw, upload)
        if upload is not None:
            st_session.upload_key += 1
        st.rerun()

with history_tab:
    st.subheader("Stored conversation")
    st.caption("What the bot remembers for this sender (oldest first).")
    turns = bot.controller.history(st_session.sender_id)
    if not turns:
        st.info("No stored turns for this sender yet.")
    for turn in turns:
        with st.chat_message(turn.role.value):
            st.markdown(turn.content)

with about_tab:
    st.subheader("About")
    st.markdown(
        """
        A chat bot that answers with an AI model and remembers the last few
        messages of every sender, across restarts.

        - Text replies come from OpenAI; when OpenAI reports a quota or
          billing problem (or has no key) the same request goes to DeepSeek.
        - `voice: your text` answers with a voice note; add *reply voice* to a
          normal message to get the text and a voice note.
        - Send a photo captioned *bw*, *cartoon*, *colorize* or *enhance*
          (plus extra wishes), or `style: description` for a custom look.
        """
    )

st.divider()
st.caption("Operator console. Messages sent here are stored like real chat messages.")
