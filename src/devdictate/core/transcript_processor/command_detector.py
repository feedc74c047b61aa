"""
Voice command detection.

Recognises two small command grammars at the start of an utterance:
mode commands that toggle markdown formatting, and prompt commands that
activate or clear a named prompt. A command either makes up the whole
utterance or is followed by a space and the dictated content.
"""

import re
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence, Tuple

from ...utils.logger import get_logger
from .prompts import Prompt

logger = get_logger(__name__)

TRAILING_PUNCTUATION = ".!?,;:"


class VoiceMode(str, Enum):
    NONE = "none"
    MARKDOWN = "markdown"

    @classmethod
    def from_flag(cls, markdown_enabled: bool) -> "VoiceMode":
        return cls.MARKDOWN if markdown_enabled else cls.NONE

    @property
    def display_name(self) -> str:
        return "Markdown" if self is VoiceMode.MARKDOWN else "Plain Text"


MARKDOWN_ON_TRIGGERS: Tuple[str, ...] = (
    "markdown",
    "mark down",
    "md",
    "markdown on",
    "mark down on",
    "md on",
    "markdown mode",
    "mark down mode",
    "md mode",
)

MARKDOWN_OFF_TRIGGERS: Tuple[str, ...] = (
    "markdown off",
    "mark down off",
    "md off",
    "plain",
    "plain text",
)

PROMPT_OFF_COMMANDS: Tuple[str, ...] = (
    "prompt off",
    "clear prompt",
    "no prompt",
    "disable prompt",
)

# Longest first so "markdown off" never reads as "markdown" + "off"
_MODE_TRIGGERS: List[Tuple[str, bool]] = sorted(
    [(t, True) for t in MARKDOWN_ON_TRIGGERS] + [(t, False) for t in MARKDOWN_OFF_TRIGGERS],
    key=lambda item: len(item[0]),
    reverse=True,
)


class ModeCommand(NamedTuple):
    triggered: bool
    enable_markdown: bool
    remainder: str


class PromptCommand(NamedTuple):
    triggered: bool
    prompt_name: Optional[str]
    remainder: str


def normalize_for_voice_command(text: str) -> str:
    """Lowercase, collapse whitespace and drop trailing sentence punctuation."""
    normalized = re.sub(r"\s+", " ", text.lower()).strip()
    normalized = normalized.rstrip(TRAILING_PUNCTUATION)
    return normalized.strip()


def match_command(text: str, command: str) -> Optional[str]:
    """
    Match ``command`` at the start of ``text``.

    Returns ``""`` when the whole utterance is the command, the original text
    after the command when the command is followed by more words, and ``None``
    when the utterance does not start with the command.
    """
    command = normalize_for_voice_command(command)
    if not command:
        return None

    # Walk the original text so the remainder keeps its casing; recognisers
    # often put a comma or period right after the command
    words = r"\s+".join(re.escape(word) for word in command.split(" "))
    punctuation = re.escape(TRAILING_PUNCTUATION)
    match = re.match(rf"\s*{words}[{punctuation}]*(?=\s|$)", text, re.IGNORECASE)
    if match is None:
        return None

    remainder = text[match.end():].strip()
    if not normalize_for_voice_command(remainder):
        return ""
    return remainder


def detect_mode_command(text: str, current_markdown: bool = False) -> ModeCommand:
    for trigger, enable in _MODE_TRIGGERS:
        remainder = match_command(text, trigger)
        if remainder is None:
            continue

        logger.info(
            f"Markdown {'ON' if enable else 'OFF'} trigger: {trigger!r}"
            + ("" if remainder else " (no content)")
        )
        return ModeCommand(True, enable, remainder)

    return ModeCommand(False, current_markdown, text)


def detect_prompt_command(text: str, enabled_prompts: Sequence[Prompt] = ()) -> PromptCommand:
    """
    Detect prompt activation and deactivation commands.

    Prompts are tried in the order given, so when two names collide after
    normalisation the prompt registered first wins.
    """
    for command in PROMPT_OFF_COMMANDS:
        remainder = match_command(text, command)
        if remainder is not None:
            logger.info(f"Prompt deactivation command: {command!r}")
            return PromptCommand(True, None, remainder)

    for prompt in enabled_prompts:
        name = normalize_for_voice_command(prompt.name)
        if not name:
            continue

        for pattern in (f"{name} prompt", f"prompt {name}"):
            remainder = match_command(text, pattern)
            if remainder is not None:
                logger.info(f"Prompt activation command: {pattern!r}")
                return PromptCommand(True, prompt.name, remainder)

    return PromptCommand(False, None, text)
