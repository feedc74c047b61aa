"""
Correction pipeline.

Orchestrates the transcript processors for one transcription result:
mode command → prompt command → dictionary → vocabulary → markdown or minimal cleanup
(+ symbol rules) → AI transform → response sanitizer → post-process.
"""

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from ...utils.logger import get_logger
from .command_detector import detect_mode_command, detect_prompt_command
from .llm_processor import PROVIDERS, LLMTransformer, TextTransformer
from .markdown_preprocessor import MarkdownPreprocessor, collapse_spaces, minimal_cleanup
from .prompts import build_prompt_text
from .response_sanitizer import ResponseSanitizer
from .symbol_rules import CorrectionRule, SymbolRuleTable
from .vocabulary_processor import (
    DictionaryEntry,
    apply_dictionary_replacements,
    apply_vocabulary_replacements,
)

if TYPE_CHECKING:
    from ..settings.session_state import SessionState
    from ..settings.settings import Settings

logger = get_logger(__name__)


@dataclass
class CorrectionResult:
    text: str
    original_text: str
    prompt_name: Optional[str] = None
    was_corrected: bool = field(init=False, default=False)

    def __post_init__(self):
        self.was_corrected = self.text != self.original_text


def post_process(text: str) -> str:
    """Collapse concatenation artifacts ("# #", "- -") and stray spaces."""
    result = text

    while "# #" in result:
        result = result.replace("# #", "##")

    while "- -" in result:
        result = result.replace("- -", "--")

    return collapse_spaces(result).strip()


class CorrectionPipeline:
    """
    Runs the correction steps for one transcription result at a time.

    The pipeline holds no state of its own; the markdown flag and the active
    prompt live in the injected ``SessionState``. Callers serialize calls to
    ``process``. Cancelling the awaiting task cancels an in-flight transform.
    """

    def __init__(
        self,
        state: "SessionState",
        transformer: Optional[TextTransformer] = None,
        symbol_table: Optional[SymbolRuleTable] = None,
        dictionary_entries: Optional[Sequence[DictionaryEntry]] = None,
        sanitizer: Optional[ResponseSanitizer] = None,
        markdown: Optional[MarkdownPreprocessor] = None,
        vocabulary_replacements: Optional[Sequence[Tuple[str, str]]] = None,
    ):
        self._state = state
        self._transformer = transformer
        self._symbol_table = symbol_table
        self._dictionary_entries = list(dictionary_entries or [])
        self._sanitizer = sanitizer or ResponseSanitizer()
        self._markdown = markdown or MarkdownPreprocessor()
        self._vocabulary: List[Tuple[str, str]] = list(vocabulary_replacements or [])

    @property
    def transformer(self) -> Optional[TextTransformer]:
        return self._transformer

    async def process(self, text: str) -> CorrectionResult:
        original = text

        if not text.strip():
            logger.info("No text detected, skipping pipeline")
            return CorrectionResult(text=original, original_text=original)

        logger.info(f">>> INPUT: {text!r}")

        # Mode command
        mode = detect_mode_command(text, self._state.get_markdown_mode_enabled())
        if mode.triggered:
            self._state.set_markdown_mode_enabled(mode.enable_markdown)
            text = mode.remainder
            if not text.strip():
                logger.info("Markdown trigger only, returning empty")
                return CorrectionResult(text="", original_text=original)

        # Prompt command
        command = detect_prompt_command(text, self._state.list_enabled_prompts())
        if command.triggered:
            if command.prompt_name is not None:
                prompt = self._state.find_prompt_by_name(command.prompt_name)
                self._state.set_active_prompt_id(prompt.id if prompt else None)
                logger.info(f"Activated prompt: {command.prompt_name}")
            else:
                self._state.set_active_prompt_id(None)
                logger.info("Deactivated prompt")
            text = command.remainder
            if not text.strip():
                logger.info("Prompt trigger only, returning empty")
                return CorrectionResult(text="", original_text=original)

        if self._dictionary_entries:
            text = apply_dictionary_replacements(text, self._dictionary_entries)

        if self._vocabulary:
            text = apply_vocabulary_replacements(text, self._vocabulary)

        if self._state.get_markdown_mode_enabled():
            text = self._markdown.process(text)
            logger.info(f"After markdown preprocess: {text!r}")
        else:
            text = minimal_cleanup(text)
            if self._symbol_table is not None:
                text = self._symbol_table.apply(text)

        active_prompt = self._state.get_active_prompt()
        if active_prompt is not None:
            text = await self._transform(text, active_prompt.name, active_prompt.prompt_text)
        else:
            logger.debug("No active prompt, skipping AI transform")

        text = post_process(text)

        logger.info(f"<<< OUTPUT: {text!r}")

        return CorrectionResult(
            text=text,
            original_text=original,
            prompt_name=active_prompt.name if active_prompt else None,
        )

    async def _transform(self, text: str, prompt_name: str, template: str) -> str:
        if self._transformer is None:
            logger.info("No transformer configured, skipping transform")
            return text

        if not text.strip():
            return text

        try:
            if not await self._transformer.is_available():
                logger.info("Transformer not available, skipping transform")
                return text

            logger.info(f"Applying prompt {prompt_name!r}")
            raw = await self._transformer.transform(text, template)
        except asyncio.CancelledError:
            logger.info("Transform cancelled")
            raise
        except Exception as e:
            logger.error(f"AI transform error: {e}", exc_info=True)
            return text

        cleaned = self._sanitizer.clean(raw, text, build_prompt_text(text, template))
        logger.info(f"After AI transform: {cleaned!r}")
        return cleaned


def create_pipeline(
    settings: Optional["Settings"] = None,
    transformer: Optional[TextTransformer] = None,
    autosave: bool = True,
) -> CorrectionPipeline:
    """Build a pipeline wired from ``Settings``."""
    from ..settings.session_state import SettingsSessionState
    from ..settings.settings import get_settings

    settings = settings if settings is not None else get_settings()
    state = SettingsSessionState(settings, autosave=autosave)

    symbol_table = None
    if settings.symbol_rules_enabled:
        custom_rules = []
        for item in settings.custom_rules:
            try:
                custom_rules.append(CorrectionRule.from_dict(item))
            except Exception as e:
                logger.warning(f"Skipping invalid custom rule {item!r}: {e}")
        symbol_table = SymbolRuleTable().adding(custom_rules)

    vocabulary = [
        (original, replacement) for original, replacement in settings.vocabulary_replacements
    ]

    entries = []
    for item in settings.dictionary_entries:
        try:
            entries.append(DictionaryEntry.from_dict(item))
        except Exception as e:
            logger.warning(f"Skipping invalid dictionary entry {item!r}: {e}")

    if transformer is None and settings.llm_model:
        model_name = LLMTransformer.format_model_name(
            settings.llm_model, settings.llm_provider
        )
        api_base = settings.llm_api_base or PROVIDERS.get(settings.llm_provider, (None, None, None))[1]
        transformer = LLMTransformer(
            model=model_name,
            api_key=settings.llm_api_key,
            api_base=api_base,
        )

    return CorrectionPipeline(
        state,
        transformer=transformer,
        symbol_table=symbol_table,
        dictionary_entries=entries,
        vocabulary_replacements=vocabulary,
    )
