from .command_detector import (
    ModeCommand,
    PromptCommand,
    VoiceMode,
    detect_mode_command,
    detect_prompt_command,
)
from .llm_processor import PROVIDERS, LLMTransformer, TextTransformer, TransformerError
from .markdown_preprocessor import MarkdownPreprocessor, minimal_cleanup
from .pipeline import CorrectionPipeline, CorrectionResult, create_pipeline
from .prompts import Prompt, build_prompt_text, get_builtin_prompts
from .response_sanitizer import ResponseSanitizer, SanitizerContext
from .symbol_rules import DEFAULT_RULES, CorrectionRule, SymbolRuleTable
from .vocabulary_processor import (
    DictionaryEntry,
    apply_dictionary_replacements,
    apply_vocabulary_replacements,
)

__all__ = [
    "CorrectionPipeline",
    "CorrectionResult",
    "CorrectionRule",
    "DEFAULT_RULES",
    "DictionaryEntry",
    "LLMTransformer",
    "MarkdownPreprocessor",
    "ModeCommand",
    "PROVIDERS",
    "Prompt",
    "PromptCommand",
    "ResponseSanitizer",
    "SanitizerContext",
    "SymbolRuleTable",
    "TextTransformer",
    "TransformerError",
    "VoiceMode",
    "apply_dictionary_replacements",
    "apply_vocabulary_replacements",
    "build_prompt_text",
    "create_pipeline",
    "detect_mode_command",
    "detect_prompt_command",
    "get_builtin_prompts",
    "minimal_cleanup",
]
