"""
Tests for content sanitization and validation.
"""

import pytest

from services.content_filter import (
    INAPPROPRIATE_LANGUAGE_REASON,
    SPAM_REASON,
    Classification,
    ContentCategory,
    DenylistContentPolicy,
    is_spam,
    normalize,
    sanitize_content,
    validate_content,
)

VALID_CONTENT = "Pineapple belongs on pizza and I will not apologize"


@pytest.mark.unit
class TestSanitizeContent:
    """Test markup stripping."""

    def test_strips_tags(self) -> None:
        assert sanitize_content("<b>Hot</b> take <script>x</script>") == "Hot take x"

    def test_strips_javascript_scheme(self) -> None:
        assert sanitize_content("click JavaScript:alert(1) now") == "click alert(1) now"

    def test_strips_event_handlers(self) -> None:
        assert sanitize_content("img onerror=boom here") == "img boom here"

    def test_collapses_whitespace_and_trims(self) -> None:
        assert sanitize_content("  too   many \n\t spaces  ") == "too many spaces"

    def test_nested_fragments(self) -> None:
        """Stripping one pattern must not leave another behind."""
        assert "javascript:" not in sanitize_content("javajavascript:script:alert(1)").lower()
        assert "<" not in sanitize_content("<<b>script>")

    @pytest.mark.parametrize(
        "text",
        [
            VALID_CONTENT,
            "  <i>spaced</i>   out  ",
            "javajavascript:script:x",
            "<<b>b>onclick=onmouseover=x",
            "",
        ],
    )
    def test_idempotent(self, text: str) -> None:
        once = sanitize_content(text)
        assert sanitize_content(once) == once


@pytest.mark.unit
class TestValidateContent:
    """Test validation order and outcomes."""

    def test_valid_content(self) -> None:
        result = validate_content(VALID_CONTENT)
        assert result.is_valid is True
        assert result.reason is None
        assert result.category == ContentCategory.CLEAN

    def test_too_short(self) -> None:
        result = validate_content("short")
        assert result.is_valid is False
        assert result.category == ContentCategory.LENGTH
        assert "minimum 10" in result.reason

    def test_too_short_after_trim(self) -> None:
        assert validate_content("   abc      ").is_valid is False

    def test_exactly_ten_characters(self) -> None:
        assert validate_content("abcdefghij").is_valid is True

    def test_too_long(self) -> None:
        result = validate_content("word " * 57)  # 285 characters
        assert result.is_valid is False
        assert result.category == ContentCategory.LENGTH

    def test_max_length_allowed(self) -> None:
        text = ("abcd " * 56)[:280]
        assert len(text) == 280
        assert validate_content(text).is_valid is True

    def test_denylisted_term_with_obfuscation(self) -> None:
        """Punctuation and casing do not hide a denylisted term."""
        result = validate_content("this is total P.O.R.N honestly")
        assert result.is_valid is False
        assert result.category == ContentCategory.PROFANITY
        assert result.reason == INAPPROPRIATE_LANGUAGE_REASON

    def test_reason_never_echoes_term(self) -> None:
        result = validate_content("people should just kill yourself")
        assert result.reason == INAPPROPRIATE_LANGUAGE_REASON
        assert "kill" not in result.reason

    def test_length_checked_before_denylist(self) -> None:
        assert validate_content("porn").category == ContentCategory.LENGTH

    @pytest.mark.parametrize(
        "text",
        [
            "soooooooooooooo good honestly",
            "call me at 555-123-4567 for more",
            "read more at https://example.com/takes",
            "see www.example.com for details",
            "mail me at someone@example.com today",
            "THIS IS ABSOLUTELY THE BEST TAKE EVER",
        ],
    )
    def test_spam(self, text: str) -> None:
        result = validate_content(text)
        assert result.is_valid is False
        assert result.category == ContentCategory.SPAM
        assert result.reason == SPAM_REASON

    def test_short_shouting_is_not_spam(self) -> None:
        """Uppercase ratio only applies above ten letters."""
        assert is_spam("NO WAY 123") is False

    def test_custom_policy(self) -> None:
        class AlwaysSpam:
            def classify(self, text: str) -> Classification:
                return Classification(category=ContentCategory.SPAM, confidence=0.9)

        result = validate_content(VALID_CONTENT, AlwaysSpam())
        assert result.category == ContentCategory.SPAM


@pytest.mark.unit
class TestDenylistContentPolicy:
    """Test denylist matching."""

    def test_normalize(self) -> None:
        assert normalize("K-Y S!") == "kys"

    def test_extra_terms(self) -> None:
        policy = DenylistContentPolicy(extra_terms=["Brussels Sprouts"])
        assert policy.classify("I love brussels-sprouts so much").category == ContentCategory.PROFANITY

    def test_clean(self) -> None:
        assert DenylistContentPolicy().classify(VALID_CONTENT).category == ContentCategory.CLEAN

    def test_empty_terms_are_dropped(self) -> None:
        policy = DenylistContentPolicy(terms=["!!!", "bad"])
        assert policy.classify(VALID_CONTENT).category == ContentCategory.CLEAN
