"""
Content policy for user-submitted takes.

Sanitization always runs before validation so the validator sees exactly the
text that will be stored.

Validation order (first failure wins):
1. Length bounds
2. Denylisted terms
3. Spam heuristics

The matched term is never echoed back to the client.
"""

import re
from collections.abc import Iterable
from enum import Enum
from typing import Optional, Protocol

import structlog
from pydantic import BaseModel

logger = structlog.get_logger(__name__)

MIN_CONTENT_LENGTH = 10
MAX_CONTENT_LENGTH = 280

INAPPROPRIATE_LANGUAGE_REASON = "Content contains inappropriate language"
SPAM_REASON = "Content appears to be spam"

# Intentionally minimal; extend through CONTENT_DENYLIST_EXTRA
DEFAULT_DENYLIST = (
    # Hate speech indicators
    "n1gg3r", "n1gger", "nigg3r", "nigger",
    "f4gg0t", "fagg0t", "f4ggot", "faggot",
    "k1ke", "kike",
    "ch1nk", "chink",
    "sp1c", "spic",
    # Slurs and extremely offensive terms
    "cunt", "c0nt", "kunt",
    "retard", "r3tard", "retarded",
    # Explicit sexual content
    "p0rn", "porn",
    "xxx",
    "p3nis", "penis",
    "vag1na", "vagina",
    "b00bs", "boobs",
    # Threats of violence
    "k1ll yourself", "kill yourself",
    "kys",
    "d1e", "die",
)

SPAM_PATTERNS = (
    # Same character 11+ times in a row
    re.compile(r"(.)\1{10,}"),
    # Phone numbers
    re.compile(r"\d{3}[-.\s]?\d{3}[-.\s]?\d{4}"),
    # URLs
    re.compile(r"(https?://[^\s]+)|(www\.[^\s]+)", re.IGNORECASE),
    # Email addresses
    re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"),
)

MAX_UPPERCASE_RATIO = 0.7
MIN_LETTERS_FOR_CAPS_CHECK = 10

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_HTML_TAG = re.compile(r"<[^>]*>")
_JS_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


class ContentCategory(str, Enum):
    """What a piece of content was classified as."""

    CLEAN = "clean"
    LENGTH = "length"
    PROFANITY = "profanity"
    SPAM = "spam"


class Classification(BaseModel):
    """Result of running a content policy over text."""

    category: ContentCategory
    confidence: float = 1.0


class ContentValidationResult(BaseModel):
    """Outcome of validate_content."""

    is_valid: bool
    reason: Optional[str] = None
    category: ContentCategory = ContentCategory.CLEAN


class ContentPolicy(Protocol):
    """
    Pluggable classifier for abusive content.

    Implementations may call out to an external moderation service; the
    admission layer only depends on this interface.
    """

    def classify(self, text: str) -> Classification: ...


def normalize(text: str) -> str:
    """Lower-case and strip everything that is not a-z or 0-9."""
    return _NON_ALNUM.sub("", text.lower())


def is_spam(content: str) -> bool:
    """Check content against the spam heuristics."""
    if any(pattern.search(content) for pattern in SPAM_PATTERNS):
        return True

    letters = [c for c in content if c.isascii() and c.isalpha()]
    if len(letters) > MIN_LETTERS_FOR_CAPS_CHECK:
        upper = sum(1 for c in letters if c.isupper())
        if upper / len(letters) > MAX_UPPERCASE_RATIO:
            return True

    return False


class DenylistContentPolicy:
    """Substring match against a normalized denylist, followed by spam heuristics."""

    def __init__(self, terms: Iterable[str] = DEFAULT_DENYLIST, extra_terms: Iterable[str] = ()):
        normalized = (normalize(term) for term in (*terms, *extra_terms))
        self._terms = tuple(dict.fromkeys(t for t in normalized if t))

    def contains_denylisted(self, text: str) -> bool:
        normalized = normalize(text)
        return any(term in normalized for term in self._terms)

    def classify(self, text: str) -> Classification:
        if self.contains_denylisted(text):
            return Classification(category=ContentCategory.PROFANITY)
        if is_spam(text):
            return Classification(category=ContentCategory.SPAM)
        return Classification(category=ContentCategory.CLEAN)


def sanitize_content(content: str) -> str:
    """
    Strip markup and script-like patterns and normalize whitespace.

    Idempotent: sanitize_content(sanitize_content(x)) == sanitize_content(x).
    """
    previous = None
    text = content
    # Stripping can splice fragments into a new pattern ("<<b>b>", "javajavascript:script:")
    while text != previous:
        previous = text
        text = _HTML_TAG.sub("", text)
        text = _JS_SCHEME.sub("", text)
        text = _EVENT_HANDLER.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def validate_content(
    content: str,
    policy: Optional[ContentPolicy] = None,
) -> ContentValidationResult:
    """Validate already-sanitized content against length bounds and the content policy."""
    if len(content.strip()) < MIN_CONTENT_LENGTH:
        return ContentValidationResult(
            is_valid=False,
            reason=f"Content is too short (minimum {MIN_CONTENT_LENGTH} characters)",
            category=ContentCategory.LENGTH,
        )

    if len(content) > MAX_CONTENT_LENGTH:
        return ContentValidationResult(
            is_valid=False,
            reason=f"Content is too long (maximum {MAX_CONTENT_LENGTH} characters)",
            category=ContentCategory.LENGTH,
        )

    classification = (policy or _default_policy).classify(content)

    if classification.category == ContentCategory.PROFANITY:
        return ContentValidationResult(
            is_valid=False,
            reason=INAPPROPRIATE_LANGUAGE_REASON,
            category=ContentCategory.PROFANITY,
        )

    if classification.category == ContentCategory.SPAM:
        return ContentValidationResult(
            is_valid=False,
            reason=SPAM_REASON,
            category=ContentCategory.SPAM,
        )

    return ContentValidationResult(is_valid=True)


_default_policy = DenylistContentPolicy()
