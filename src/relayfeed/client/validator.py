"""Content moderation for inbound events and outbound notes.

A text is *invalid* when it is longer than the configured maximum or
contains a blocked word (case-insensitive substring match). The blocked-word
set is the union of a default list, loaded once at startup, and user words
that can be edited at runtime.

See Also:
    [SubscriptionManager][relayfeed.client.subscription.SubscriptionManager]:
        Drops inbound events this validator rejects.
    [Publisher][relayfeed.client.publisher.Publisher]: Refuses to publish
        text notes this validator rejects.
"""

from __future__ import annotations

from collections.abc import Iterable

import aiohttp

from relayfeed.core.logger import Logger
from relayfeed.utils.http import load_json_source


DEFAULT_MAX_LENGTH = 108

_logger = Logger("validator")


def is_invalid(text: str | None, wordlist: Iterable[str], max_length: int = DEFAULT_MAX_LENGTH) -> bool:
    """Return True if *text* is too long or contains a blocked word.

    Length is counted in Unicode code points. Blocked words are stripped and
    lower-cased; empty or whitespace-only words are ignored. Empty text is
    never invalid.
    """
    if not text:
        return False
    if len(text) > max_length:
        return True
    lower = text.lower()
    for word in wordlist:
        needle = word.strip().lower()
        if needle and needle in lower:
            return True
    return False


class WordList:
    """Default blocked words plus user-editable blocked words."""

    def __init__(
        self,
        default_words: Iterable[str] | None = None,
        user_words: Iterable[str] | None = None,
    ) -> None:
        self._default: list[str] = list(default_words or [])
        self._user: list[str] = _dedupe(user_words or [])

    @property
    def default_words(self) -> list[str]:
        return list(self._default)

    @property
    def user_words(self) -> list[str]:
        return list(self._user)

    def set_default(self, words: Iterable[str]) -> None:
        self._default = list(words)

    def add(self, word: str) -> bool:
        """Add a user word. Returns False for blank or already-present words."""
        word = word.strip()
        if not word or word in self._user:
            return False
        self._user.append(word)
        return True

    def remove(self, word: str) -> bool:
        """Remove a user word. Returns False if it was not present."""
        try:
            self._user.remove(word.strip())
        except ValueError:
            return False
        return True

    def replace(self, words: Iterable[str]) -> None:
        """Replace the whole user list."""
        self._user = _dedupe(w.strip() for w in words if w.strip())

    def all_words(self) -> list[str]:
        """Return default then user words, de-duplicated, first occurrence kept."""
        return _dedupe([*self._default, *self._user])

    def __len__(self) -> int:
        return len(self.all_words())


def _dedupe(words: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(words))


class ContentValidator:
    """Binds a [WordList][relayfeed.client.validator.WordList] and a length limit.

    The word union is recomputed on every call, so edits to the word list
    take effect immediately.
    """

    def __init__(self, words: WordList, max_length: int = DEFAULT_MAX_LENGTH) -> None:
        self.words = words
        self.max_length = max_length

    def is_invalid(self, text: str | None) -> bool:
        return is_invalid(text, self.words.all_words(), self.max_length)


async def load_default_words(
    source: str,
    *,
    timeout: float = 10.0,  # noqa: ASYNC109
) -> list[str]:
    """Load the default blocked-word list from a URL or local JSON file.

    Never raises for load failures: network errors, HTTP errors, unreadable
    files, invalid JSON or a non-array payload are logged as a warning and
    yield an empty list. Non-string entries are skipped.
    """
    try:
        data = await load_json_source(source, timeout=timeout)
    except (aiohttp.ClientError, TimeoutError, OSError, ValueError) as e:
        _logger.warning("wordlist_load_failed", source=source, error=str(e))
        return []

    if not isinstance(data, list):
        _logger.warning("wordlist_invalid", source=source, error="expected a JSON array")
        return []

    words = [w for w in data if isinstance(w, str)]
    skipped = len(data) - len(words)
    if skipped:
        _logger.debug("wordlist_entries_skipped", source=source, count=skipped)
    _logger.info("wordlist_loaded", source=source, count=len(words))
    return words
