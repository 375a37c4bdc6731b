"""Keyword-based intent router: picks which tool groups to expose per turn.

This is a lexical heuristic. It will miss paraphrases and can fire on
incidental words; search and the weather tool are always exposed regardless.
"""
import re
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from app.models.message import ChatMessage

logger = logging.getLogger(__name__)

ASSET_TERMS = [
    "image", "images", "photo", "photos", "picture", "pictures", "pic", "pics",
    "video", "videos", "media", "asset", "assets", "cloudinary",
    "thumbnail", "thumbnails", "tag", "tags", "transform", "crop", "resize", "gallery",
]

CONTENT_TERMS = [
    "wordpress", "wp", "post", "posts", "publish", "published", "draft", "drafts",
    "blog", "article", "articles", "page", "pages", "site info", "cache", "purge",
]


def _compile(terms: Iterable[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(term).replace(r"\ ", r"\s+") for term in terms)
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


_ASSET_PATTERN = _compile(ASSET_TERMS)
_CONTENT_PATTERN = _compile(CONTENT_TERMS)


@dataclass(frozen=True)
class IntentDecision:
    assets: bool = False
    content: bool = False


def detect_intent(text: Optional[str]) -> IntentDecision:
    """Decide which optional tool groups the latest user message calls for."""
    if not text:
        return IntentDecision()
    decision = IntentDecision(
        assets=bool(_ASSET_PATTERN.search(text)),
        content=bool(_CONTENT_PATTERN.search(text)),
    )
    logger.debug(f"Intent decision: assets={decision.assets} content={decision.content}")
    return decision


def latest_user_text(messages: Iterable[ChatMessage]) -> str:
    """Text of the newest user message, or an empty string."""
    for message in reversed(list(messages)):
        if message.role == "user":
            return message.text
    return ""
