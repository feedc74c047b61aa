"""
Cleanup of raw generative-model output.

Models wrap their answer in stop tokens, code fences, chatty prefaces, echoes
of the prompt and quotes. ``ResponseSanitizer`` strips those layers in a fixed
order and falls back to the text that was sent when nothing usable is left.
"""

from dataclasses import dataclass
from typing import Tuple

from ...utils.logger import get_logger

logger = get_logger(__name__)

# Stop tokens emitted by Gemma, Phi, Llama, Qwen and similar chat models
END_OF_TURN_MARKERS: Tuple[str, ...] = (
    "<end_of_turn>",
    "<|end|>",
    "<|eot_id|>",
    "</s>",
    "<|im_end|>",
    "<|endoftext|>",
    "<|assistant|>",
    "<|user|>",
)

CODE_FENCE = "```"

CHATTY_PREFIXES: Tuple[str, ...] = (
    "sure,", "sure!", "sure.",
    "of course,", "of course!", "of course.",
    "certainly,", "certainly!", "certainly.",
    "absolutely,", "absolutely!", "absolutely.",
    "okay,", "okay.", "ok,", "ok.",
    "here you go:", "here you go.",
    "here it is:", "here it is.",
    "here's", "here is",
    "the result is:", "the result is",
    "the answer is:", "the answer is",
    "the output is:", "the output is",
    "the reversed text is:", "the reversed text is",
    "the corrected text is:", "the corrected text is",
    "output:", "result:", "answer:", "corrected:", "reversed:",
)

EXPLANATORY_PHRASES: Tuple[str, ...] = (
    "here's the", "here is the", "the reversed", "the corrected",
    "the result", "the answer", "the output", "your text",
    "the words", "reversed order", "word order",
)

WRAPPING_QUOTES: Tuple[str, ...] = ('"', "'", "`")

# Tunable: an echoed input only counts as an echo when the model added more
# than this many characters after it.
ECHO_MIN_EXTRA_CHARS = 5
# Tunable: what follows an echoed input must be longer than this to be kept.
ECHO_MIN_REMAINDER_CHARS = 3


@dataclass(frozen=True)
class SanitizerContext:
    raw_model_output: str
    original_text: str
    prompt_text_sent: str = ""


class ResponseSanitizer:
    """Extracts the answer from raw model output; never raises."""

    def clean_context(self, context: SanitizerContext) -> str:
        return self.clean(
            context.raw_model_output, context.original_text, context.prompt_text_sent
        )

    def clean(self, raw: str, original_text: str, prompt_text_sent: str = "") -> str:
        cleaned = self._truncate_at_end_marker(raw or "")
        cleaned = self._strip_code_fences(cleaned)
        cleaned = self._strip_chatty_prefixes(cleaned)
        cleaned = self._strip_explanation(cleaned)
        cleaned = self._strip_echoes(cleaned, original_text, prompt_text_sent)
        cleaned = self._strip_wrapping_quotes(cleaned).strip()

        logger.debug(f"RAW OUTPUT: {raw!r}")
        logger.debug(f"CLEANED: {cleaned!r}")

        if not cleaned:
            logger.info("Sanitized response is empty, using original text")
            return original_text

        return cleaned

    @staticmethod
    def _truncate_at_end_marker(text: str) -> str:
        positions = [text.find(marker) for marker in END_OF_TURN_MARKERS]
        found = [pos for pos in positions if pos != -1]
        if found:
            text = text[: min(found)]
        return text.strip()

    @staticmethod
    def _strip_code_fences(text: str) -> str:
        if text.startswith(CODE_FENCE):
            newline = text.find("\n")
            # The opening fence line may carry a language tag
            text = text[newline + 1:] if newline != -1 else text[len(CODE_FENCE):]

        if text.endswith(CODE_FENCE):
            text = text[: -len(CODE_FENCE)]

        return text.replace(CODE_FENCE, "").strip()

    @staticmethod
    def _strip_chatty_prefixes(text: str) -> str:
        # Models stack prefaces ("Sure, here's the result:"), so loop until none match
        removed = True
        while removed:
            removed = False
            text = text.strip()
            lowered = text.lower()
            for prefix in CHATTY_PREFIXES:
                if lowered.startswith(prefix):
                    text = text[len(prefix):].strip()
                    removed = True
                    break
        return text

    @staticmethod
    def _strip_explanation(text: str) -> str:
        before, colon, after = text.partition(":")
        if not colon:
            return text

        before = before.lower()
        if any(phrase in before for phrase in EXPLANATORY_PHRASES):
            after = after.strip()
            if after:
                return after
        return text

    @staticmethod
    def _strip_echoes(text: str, original_text: str, prompt_text_sent: str) -> str:
        if prompt_text_sent and text.startswith(prompt_text_sent):
            text = text[len(prompt_text_sent):].strip()

        if (
            original_text
            and text.startswith(original_text)
            and len(text) > len(original_text) + ECHO_MIN_EXTRA_CHARS
        ):
            after_input = text[len(original_text):].strip()
            if len(after_input) > ECHO_MIN_REMAINDER_CHARS:
                text = after_input

        return text

    @staticmethod
    def _strip_wrapping_quotes(text: str) -> str:
        text = text.strip()
        if len(text) >= 2 and text[0] == text[-1] and text[0] in WRAPPING_QUOTES:
            text = text[1:-1]
        return text
