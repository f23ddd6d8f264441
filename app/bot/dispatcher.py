"""
Purpose: Route one inbound chat message to the right handler.

Order: greeting for first-time senders, creator info, `voice:` command,
image edits (custom `style:` or a preset option), then the default AI text
reply with an optional voice note. The AI paths go through
ConversationController.get_reply; everything else is a one-shot call.

Any error that escapes a handler is logged and answered with one generic
notice; classification detail never reaches the chat.
"""

from __future__ import annotations
import logging
import re
from typing import Optional

from .controller import ConversationController
from .interfaces import ImageEditor, Transport, VoiceSynthesizer
from .models import ImageEditOption, InboundMessage, MediaAttachment
from .prompts import DefaultPromptFactory
from .prompts import chat as texts

logger = logging.getLogger("bot.dispatcher")

_OPTION_ORDER = (
    ImageEditOption.BW,
    ImageEditOption.CARTOON,
    ImageEditOption.COLORIZE,
    ImageEditOption.ENHANCE,
)
_OPTION_WORDS = re.compile(r"bw|cartoon|colorize|enhance", re.IGNORECASE)
_STYLE_PREFIX = re.compile(r"^style:", re.IGNORECASE)


def pick_image_option(body: str) -> tuple[ImageEditOption, str]:
    """Return (option, extra_prompt) for a preset image edit caption."""
    lowered = (body or "").lower()
    option = next((o for o in _OPTION_ORDER if o.value in lowered), ImageEditOption.ENHANCE)
    extra = _OPTION_WORDS.sub("", lowered).strip()
    return option, extra


class MessageDispatcher:
    def __init__(
        self,
        controller: ConversationController,
        prompts: DefaultPromptFactory,
        *,
        synthesize_voice: VoiceSynthesizer,
        edit_image: ImageEditor,
        greeted: Optional[set[str]] = None,
    ):
        self.controller = controller
        self.prompts = prompts
        self.synthesize_voice = synthesize_voice
        self.edit_image = edit_image
        self.greeted: set[str] = greeted if greeted is not None else set()

    def handle(self, message: InboundMessage, transport: Transport) -> None:
        try:
            self._route(message, transport)
        except Exception:
            logger.exception(
                "message handler error",
                extra={"event_type": "handler_error", "user_id": message.sender_id},
            )
            transport.reply(texts.GENERIC_FAILURE)

    def _route(self, message: InboundMessage, transport: Transport) -> None:
        body = message.body or ""
        lowered = body.lower().strip()

        if message.sender_id not in self.greeted:
            transport.reply(texts.GREETING)
            self.greeted.add(message.sender_id)
            return

        if any(k in lowered for k in texts.CREATOR_KEYWORDS):
            transport.reply(texts.CREATOR_REPLY)
            return

        if lowered.startswith(texts.VOICE_COMMAND_PREFIXES):
            self._voice_command(message, transport)
            return

        if message.media is not None and message.media.is_image:
            self._image(message, message.media, transport)
            return

        reply = self.controller.get_reply(message.sender_id, body)
        transport.reply(reply)

        if any(k in lowered for k in texts.VOICE_REPLY_KEYWORDS):
            try:
                transport.send_voice(self.synthesize_voice(reply))
            except Exception:
                logger.exception(
                    "voice reply error",
                    extra={"event_type": "voice_reply_error", "user_id": message.sender_id},
                )

    def _voice_command(self, message: InboundMessage, transport: Transport) -> None:
        text = ":".join(message.body.split(":")[1:]).strip()
        if not text:
            transport.reply(texts.VOICE_USAGE)
            return
        reply = self.controller.get_reply(message.sender_id, text)
        transport.send_voice(self.synthesize_voice(reply))

    def _image(
        self, message: InboundMessage, media: MediaAttachment, transport: Transport
    ) -> None:
        body = message.body or ""
        if _STYLE_PREFIX.match(body.lower()):
            description = _STYLE_PREFIX.sub("", body).strip()
            if not description:
                transport.reply(texts.STYLE_USAGE)
                return
            transport.reply(texts.style_ack(description))
            self._edit_and_reply(
                message,
                media,
                self.prompts.style_instruction(description),
                transport,
                failure_text=texts.STYLE_FAILURE,
            )
            return

        option, extra = pick_image_option(body)
        transport.reply(texts.image_ack(option.value))
        self._edit_and_reply(
            message,
            media,
            self.prompts.image_edit_instruction(option, extra),
            transport,
            failure_text=texts.IMAGE_FAILURE,
        )

    def _edit_and_reply(
        self,
        message: InboundMessage,
        media: MediaAttachment,
        prompt: str,
        transport: Transport,
        *,
        failure_text: str,
    ) -> None:
        try:
            edited = self.edit_image(media.data, media.mime_type, prompt)
        except Exception:
            logger.exception(
                "image edit error",
                extra={"event_type": "image_edit_error", "user_id": message.sender_id},
            )
            transport.reply(failure_text)
            return
        transport.reply_image(edited)

