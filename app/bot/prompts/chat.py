"""Fixed chat texts: greeting, creator info, usage hints, failure notices."""

from __future__ import annotations

GREETING = (
    "🙏🏻 ආයුබෝවන්! මම ජනිතගේ Whatsapp සහයක කෘතිම බුද්ධිය.\n"
    "☺ ඔබට මට මොන විදිහට උදව් කරන්න පුළුවන්ද?\n\n"
    "📞 Creator: Janitha Prasad\n"
    "🌐 සම්බන්ධ වීමට: http://wa.me/94763238609\n"
    "📄 පණිවිඩය සඳහා මගේ WhatsApp අංකය භාවිතා කරන්න.\n"
    "☺ ස්තුතියි."
)

CREATOR_REPLY = "🛠️ මගේ නිර්මාතෘ: Janitha Prasad ❤️"

CREATOR_KEYWORDS = (
    "oya kawda haduwe",
    "oyawa kawda haduwe",
    "who created you",
    "who made you",
    "nirmathru",
    "creator",
)

VOICE_COMMAND_PREFIXES = ("voice:", "ඔයාවෝස්:")
VOICE_REPLY_KEYWORDS = ("reply voice", "voice reply", "awazayen")

VOICE_USAGE = "Voice command format: voice: your text"
STYLE_USAGE = '⚠️ කරුණාකර "style: your description" format එකෙන් description එක දෙන්න.'

GENERIC_FAILURE = "දෝෂයක් සිදු වුනා. නැවත උත්සාහ කරන්න."
IMAGE_FAILURE = "සමාවෙන්න, චායාරූප සැකසීම අසමත් වුණා."
STYLE_FAILURE = "❌ Style image edit අසමත් වුණා."


def style_ack(description: str) -> str:
    return f'🎨 Applying custom style: "{description}"... ඉවහල් වෙන්න...'


def image_ack(option: str) -> str:
    return f"🖼️ Image received. Processing ({option}). ඉවහල් වෙමින් සිටී..."
