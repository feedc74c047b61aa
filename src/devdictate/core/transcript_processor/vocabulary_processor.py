"""Vocabulary and dictionary replacement processors."""
import re
from typing import List, Optional, Sequence, Tuple
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from ...utils.logger import get_logger

logger = get_logger(__name__)


class DictionaryEntry(BaseModel):
    """One or more trigger words replaced by a single value (or removed)."""

    model_config = ConfigDict(extra="ignore")

    id: UUID = Field(default_factory=uuid4)
    triggers: List[str]
    replacement: Optional[str] = None
    is_enabled: bool = True

    @property
    def display_name(self) -> str:
        return ", ".join(self.triggers)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> "DictionaryEntry":
        return cls.model_validate(data)


def default_dictionary_entries() -> List[DictionaryEntry]:
    """Filler words removed out of the box."""
    return [
        DictionaryEntry(triggers=["umm", "um"]),
        DictionaryEntry(triggers=["uh", "uhh"]),
        DictionaryEntry(triggers=["hmm", "hmmm"]),
        DictionaryEntry(triggers=["er"]),
        DictionaryEntry(triggers=["ah"]),
    ]


def apply_vocabulary_replacements(
    text: str,
    replacements: List[Tuple[str, str]],
    case_sensitive: bool = True
) -> str:
    """
    Apply vocabulary replacements to text.

    Replaces all occurrences of 'original' with 'replacement' for each rule.
    Processes rules in order they were defined.

    Args:
        text: The input transcription text
        replacements: List of (original, replacement) tuples
        case_sensitive: Whether to match case-sensitively (default True)

    Returns:
        Text with all replacements applied
    """
    if not replacements:
        return text

    result = text
    for original, replacement in replacements:
        if not original:  # Skip empty originals
            continue

        if case_sensitive:
            result = result.replace(original, replacement)
        else:
            result = re.sub(
                re.escape(original), lambda _m: replacement, result, flags=re.IGNORECASE
            )

    if result != text:
        logger.debug(f"Applied vocabulary replacements: '{text[:50]}...' -> '{result[:50]}...'")

    return result


def apply_dictionary_replacements(text: str, entries: Sequence[DictionaryEntry]) -> str:
    """
    Apply enabled dictionary entries to text.

    Each trigger is matched as a whole word, ignoring case. Entries without a
    replacement delete the matched word. Double spaces left behind are collapsed.
    """
    enabled = [entry for entry in entries if entry.is_enabled]
    if not enabled:
        return text

    result = text
    for entry in enabled:
        replacement = entry.replacement or ""
        for trigger in entry.triggers:
            if not trigger.strip():
                continue
            pattern = rf"(?<!\w){re.escape(trigger.strip())}(?!\w)"
            result = re.sub(pattern, lambda _m: replacement, result, flags=re.IGNORECASE)

    while "  " in result:
        result = result.replace("  ", " ")

    result = result.strip(" \t")

    if result != text:
        logger.debug(f"Applied dictionary entries: '{text[:50]}' -> '{result[:50]}'")

    return result
