"""
Spoken markdown preprocessing.

Converts spoken formatting commands ("h2", "bold on ... bold off", "bullet",
"new paragraph") into markdown syntax. The steps in ``MarkdownPreprocessor.process``
run in a fixed order and each one sees the output of the previous steps.
"""

import re
from typing import List, NamedTuple, Pattern, Sequence, Tuple

from ...utils.logger import get_logger

logger = get_logger(__name__)

SPOKEN_KEYWORDS: Tuple[str, ...] = (
    "hash", "dash", "dot", "equals", "colon", "semicolon", "plus", "minus",
    "open", "close", "paren", "bracket", "brace", "curly",
    "quote", "quotes", "tick", "backtick",
    "h1", "h2", "h3", "h4", "h5", "h6", "heading",
    "bold", "italic", "bullet", "number", "numbered", "list",
    "link", "image", "code", "codeblock", "checkbox", "checked",
    "horizontal", "rule", "divider", "endcode",
)


class Toggle(NamedTuple):
    marker: str
    start_forms: Sequence[str]
    end_forms: Sequence[str]
    guard: str = ""


TOGGLES: Tuple[Toggle, ...] = (
    Toggle("**", ("bold on", "bold start", "start bold"), ("bold off", "bold end", "end bold")),
    Toggle("*", ("italic on", "italic start", "start italic"), ("italic off", "italic end", "end italic")),
    # Inline code must leave "code block" / "end code block" to the block steps
    Toggle(
        "`",
        ("code on", "code start", "start code"),
        ("code off", "code end", "end code"),
        guard=r"(?!\s*block\b)",
    ),
    Toggle(
        "~~",
        ("strike on", "strike start", "start strike", "strikethrough on"),
        ("strike off", "strike end", "end strike", "strikethrough off"),
    ),
)

# Longer triggers first where one is a prefix of another
BLOCK_ELEMENTS: Tuple[Tuple[str, str], ...] = (
    ("h6", "###### "), ("h5", "##### "), ("h4", "#### "),
    ("h3", "### "), ("h2", "## "), ("h1", "# "),
    ("heading 6", "###### "), ("heading 5", "##### "), ("heading 4", "#### "),
    ("heading 3", "### "), ("heading 2", "## "), ("heading 1", "# "),
    ("bullet", "- "), ("list item", "- "),
    ("numbered", "1. "), ("number", "1. "),
    ("block quote", "> "), ("quote", "> "),
    ("checkbox", "- [ ] "), ("todo", "- [ ] "), ("checked", "- [x] "),
    ("code block", "```"), ("codeblock", "```"),
)

LINE_BREAKS: Tuple[Tuple[str, str], ...] = (
    ("new paragraph", "\n\n"),
    ("new line", "\n"),
    ("line break", "\n"),
    ("next line", "\n"),
)

HORIZONTAL_RULE_PHRASES = ("horizontal rule", "divider")


def _alternation(forms: Sequence[str]) -> str:
    ordered = sorted(forms, key=len, reverse=True)
    return "|".join(r"\s+".join(re.escape(w) for w in form.split()) for form in ordered)


def _compile_toggle(toggle: Toggle) -> Tuple[Pattern[str], Pattern[str]]:
    start = re.compile(
        rf"\b(?:{_alternation(toggle.start_forms)})\b{toggle.guard}[.,]?(?:[ \t]+|$)",
        re.IGNORECASE,
    )
    end = re.compile(
        rf"[ \t]*\b(?:{_alternation(toggle.end_forms)})\b{toggle.guard}[.,]?(?:[ \t]+|$)",
        re.IGNORECASE,
    )
    return start, end


def collapse_spaces(text: str) -> str:
    while "  " in text:
        text = text.replace("  ", " ")
    return text


def minimal_cleanup(text: str) -> str:
    """Cleanup used outside markdown mode: drop recogniser commas, collapse spaces."""
    result = text.replace(",", "")
    return collapse_spaces(result).strip()


class MarkdownPreprocessor:

    def __init__(self):
        self._keyword_re = re.compile(
            r"\b(?:" + "|".join(SPOKEN_KEYWORDS) + r")\b", re.IGNORECASE
        )
        self._hash_runs: List[Tuple[Pattern[str], str]] = [
            (re.compile(r"\b" + r"\s+".join(["hash"] * n) + r"[ \t]+", re.IGNORECASE), "#" * n + " ")
            for n in range(6, 0, -1)
        ]
        self._double_dash = re.compile(r"\bdash\s+dash\b", re.IGNORECASE)
        self._toggles = [(t.marker, *_compile_toggle(t)) for t in TOGGLES]
        self._blocks = [
            (re.compile(rf"^{_alternation([trigger])} +", re.IGNORECASE | re.MULTILINE), replacement)
            for trigger, replacement in BLOCK_ELEMENTS
        ]
        self._end_code_block = re.compile(r"[ \t]*\bend\s+code\s?block\b", re.IGNORECASE)
        self._line_breaks = [
            (re.compile(rf"[ \t]*\b{_alternation([phrase])}\b[ \t]*", re.IGNORECASE), replacement)
            for phrase, replacement in LINE_BREAKS
        ]

    def process(self, text: str) -> str:
        # 1. Recognisers insert commas between repeated words ("hash, hash")
        result = text.replace(",", "")

        # 2. Case-insensitive matching without touching ordinary prose
        result = self._keyword_re.sub(lambda m: m.group(0).lower(), result)

        # 3. Hash runs, six down to one
        for regex, replacement in self._hash_runs:
            result = regex.sub(replacement, result)

        # 4. Double dash
        result = self._double_dash.sub("--", result)

        # 5. Paired toggles; the space before a closing form is removed
        for marker, start_re, end_re in self._toggles:
            result = start_re.sub(marker, result)
            result = end_re.sub(
                lambda m, marker=marker: marker + ("" if m.end() == len(m.string) else " "),
                result,
            )

        # 6. Block elements at the start of a line
        for regex, replacement in self._blocks:
            result = regex.sub(replacement, result)

        # 7. Closing fence
        result = self._end_code_block.sub("\n```", result)

        # 8. Horizontal rule when spoken on its own
        if result.strip().lower() in HORIZONTAL_RULE_PHRASES:
            result = "---"

        # 9. Line breaks
        for regex, replacement in self._line_breaks:
            result = regex.sub(replacement, result)

        # 10. Whitespace
        result = collapse_spaces(result).strip()

        if result != text:
            logger.debug(f"Markdown preprocess: {text[:50]!r} -> {result[:50]!r}")

        return result
