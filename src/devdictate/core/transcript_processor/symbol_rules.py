"""Ordered spoken-symbol rewrite rules for developer dictation."""

import re
from typing import List, Optional, Pattern, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from ...utils.logger import get_logger

logger = get_logger(__name__)


class CorrectionRule(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    pattern: str
    replacement: str
    is_regex: bool = False
    case_sensitive: bool = False

    def to_dict(self) -> dict:
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: dict) -> "CorrectionRule":
        return cls.model_validate(data)


def _regex(pattern: str, replacement: str, case_sensitive: bool = False) -> CorrectionRule:
    return CorrectionRule(
        pattern=pattern,
        replacement=replacement,
        is_regex=True,
        case_sensitive=case_sensitive,
    )


# Rules run top to bottom over the whole string. Any trigger that is a prefix of
# another trigger ("hash hash" / "hash", "equals equals" / "equals") must appear
# after the longer one.
DEFAULT_RULES: Tuple[CorrectionRule, ...] = (
    # 1. Heading hash runs, longest first
    _regex(r"\bhash hash hash hash hash hash\b", "######"),
    _regex(r"\bhash hash hash hash hash\b", "#####"),
    _regex(r"\bhash hash hash hash\b", "####"),
    _regex(r"\bhash hash hash\b", "###"),
    _regex(r"\bhash hash\b", "##"),
    # 2. Long options and short flags attach to the following word
    _regex(r"\b(?:dash dash|double dash)\s+(?=\w)", "--"),
    _regex(r"\b(?:dash dash|double dash)\b", "--"),
    _regex(r"\bdash\s+(?=[a-zA-Z]\b)", "-"),
    # 3. Multi-word operators
    _regex(r"\btriple equals\b", "==="),
    _regex(r"\bequals equals\b", "=="),
    _regex(r"\bnot equals\b", "!="),
    _regex(r"\bplus equals\b", "+="),
    _regex(r"\bminus equals\b", "-="),
    _regex(r"\bfat arrow\b", "=>"),
    _regex(r"\bdouble arrow\b", "=>"),
    _regex(r"\barrow\b", "->"),
    # 4. File extensions, before the bare "dot"
    _regex(r"\s*\bdot (js|ts|py|swift|rs|json|yaml|yml|md)\b", r".\1"),
    # 5. Brackets and comparisons
    _regex(r"\bopen paren\b", "("),
    _regex(r"\bclose paren\b", ")"),
    _regex(r"\bopen bracket\b", "["),
    _regex(r"\bclose bracket\b", "]"),
    _regex(r"\bopen (?:brace|curly)\b", "{"),
    _regex(r"\bclose (?:brace|curly)\b", "}"),
    _regex(r"\bless than\b", "<"),
    _regex(r"\bgreater than\b", ">"),
    # 6. Single symbols. No "comma" rule: minimal cleanup strips every comma,
    # so an emitted "," would not survive a second pass.
    _regex(r"\bdash\b", "-"),
    _regex(r"\bdot\b", "."),
    _regex(r"\bunderscore\b", "_"),
    _regex(r"\bback ?slash\b", r"\\"),
    _regex(r"\bslash\b", "/"),
    _regex(r"\bequals\b", "="),
    _regex(r"\bplus\b", "+"),
    _regex(r"\basterisk\b", "*"),
    _regex(r"\bstar\b", "*"),
    _regex(r"\bat sign\b", "@"),
    _regex(r"\bhash\b", "#"),
    _regex(r"\bpound\b", "#"),
    _regex(r"\bdollar(?: sign)?\b", "$"),
    _regex(r"\bpercent\b", "%"),
    _regex(r"\bcaret\b", "^"),
    _regex(r"\bampersand\b", "&"),
    _regex(r"\bpipe\b", "|"),
    _regex(r"\btilde\b", "~"),
    _regex(r"\bbacktick\b", "`"),
    _regex(r"\bsemicolon\b", ";"),
    _regex(r"\bcolon\b", ":"),
    # 7. Whitespace keywords
    _regex(r"\bnew line\b", "\n"),
    _regex(r"\btab\b", "\t"),
    _regex(r"\bspace\b", " "),
    # 8. Git subcommands: restore lowercase after sentence capitalisation
    _regex(r"\b[Gg]it [Ss]tatus\b", "git status", case_sensitive=True),
    _regex(r"\b[Gg]it [Aa]dd\b", "git add", case_sensitive=True),
    _regex(r"\b[Gg]it [Cc]ommit\b", "git commit", case_sensitive=True),
    _regex(r"\b[Gg]it [Pp]ush\b", "git push", case_sensitive=True),
    _regex(r"\b[Gg]it [Pp]ull\b", "git pull", case_sensitive=True),
    _regex(r"\b[Gg]it [Cc]heckout\b", "git checkout", case_sensitive=True),
    _regex(r"\b[Gg]it [Bb]ranch\b", "git branch", case_sensitive=True),
    _regex(r"\b[Gg]it [Mm]erge\b", "git merge", case_sensitive=True),
    _regex(r"\b[Gg]it [Rr]ebase\b", "git rebase", case_sensitive=True),
    _regex(r"\b[Gg]it [Dd]iff\b", "git diff", case_sensitive=True),
    _regex(r"\b[Gg]it [Ll]og\b", "git log", case_sensitive=True),
    _regex(r"\b[Gg]it [Ss]tash\b", "git stash", case_sensitive=True),
    # 9. Tool names and acronyms
    _regex(r"\bN P M\b", "npm"),
    _regex(r"\b(?:api|Api)\b", "API", case_sensitive=True),
    _regex(r"(?<!\.)\b(?:json|Json)\b", "JSON", case_sensitive=True),
    _regex(r"\b(?:html|Html)\b", "HTML", case_sensitive=True),
    _regex(r"\b(?:css|Css)\b", "CSS", case_sensitive=True),
    _regex(r"\b(?:url|Url)\b", "URL", case_sensitive=True),
    _regex(r"\b(?:https|Https)\b", "HTTPS", case_sensitive=True),
    _regex(r"\b(?:http|Http)\b", "HTTP", case_sensitive=True),
    _regex(r"\b(?:sql|Sql)\b", "SQL", case_sensitive=True),
    _regex(r"\b(?:restful|Restful)\b", "RESTful", case_sensitive=True),
    # 10. Language names
    _regex(r"\b(?:javascript|Javascript|java script|Java script)\b", "JavaScript", case_sensitive=True),
    _regex(r"\b(?:typescript|Typescript|type script|Type script)\b", "TypeScript", case_sensitive=True),
    _regex(r"\bpython\b", "Python", case_sensitive=True),
    _regex(r"(?<!\.)\bswift\b", "Swift", case_sensitive=True),
    _regex(r"(?<!\.)\brust\b", "Rust", case_sensitive=True),
    _regex(r"\bkotlin\b", "Kotlin", case_sensitive=True),
)


class SymbolRuleTable:
    """
    Applies an ordered list of correction rules to a string.

    Every rule runs over the whole string in declaration order, so a rule sees
    the output of all rules before it. A rule whose pattern does not compile is
    dropped when the table is built; a rule whose replacement template fails to
    expand is skipped for that call. ``apply`` never raises.
    """

    def __init__(self, rules: Optional[Sequence[CorrectionRule]] = None):
        self.rules: List[CorrectionRule] = list(DEFAULT_RULES if rules is None else rules)
        self._compiled: List[Tuple[CorrectionRule, Pattern[str]]] = []

        for rule in self.rules:
            compiled = self._compile(rule)
            if compiled is not None:
                self._compiled.append((rule, compiled))

    @staticmethod
    def _compile(rule: CorrectionRule) -> Optional[Pattern[str]]:
        if not rule.pattern:
            return None

        flags = 0 if rule.case_sensitive else re.IGNORECASE
        source = rule.pattern if rule.is_regex else re.escape(rule.pattern)
        try:
            return re.compile(source, flags)
        except re.error as e:
            logger.warning(f"Skipping invalid correction rule {rule.pattern!r}: {e}")
            return None

    def apply(self, text: str) -> str:
        if not text:
            return text

        result = text
        for rule, regex in self._compiled:
            try:
                if rule.is_regex:
                    result = regex.sub(rule.replacement, result)
                else:
                    # Literal rules never interpret backslashes in the replacement
                    result = regex.sub(lambda _m, r=rule.replacement: r, result)
            except (re.error, IndexError) as e:
                logger.warning(f"Skipping correction rule {rule.pattern!r}: {e}")
                continue

        if result != text:
            logger.debug(f"Applied symbol rules: {text[:50]!r} -> {result[:50]!r}")

        return result

    def adding(self, rules: Sequence[CorrectionRule]) -> "SymbolRuleTable":
        """Return a new table with ``rules`` appended after the current ones."""
        return SymbolRuleTable(self.rules + list(rules))
