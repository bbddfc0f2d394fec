# ─────────────────────────────────────────────────────────────────────────────
# Content Moderator — lexical + structural screening of free text
# ─────────────────────────────────────────────────────────────────────────────
# One rule table, two policies:
#
#   contextual (default): a term only flags in qualifying context
#                          ("kill the guests", not "killer deals"). Mild
#                          terms are borderline, and hospitality gripes
#                          ("guests hate the new kiosk") are allowed.
#   strict:              bare-word lists; every hit is serious.
#
# Structural rules (URLs, card numbers, email addresses) apply under both
# policies and are always serious. Violations report the category and the
# triggering fragment only, never the surrounding text.
# ─────────────────────────────────────────────────────────────────────────────


import re
from dataclasses import dataclass, field
from typing import Literal

ModerationPolicy = Literal["contextual", "strict"]

_FLAGS = re.IGNORECASE

_PEOPLE = (
    r"(?:people|persons?|someone|somebody|everyone|everybody|users?|guests?|"
    r"customers?|clients?|staff|employees?|workers?|travell?ers?|tourists?|visitors?)"
)
_HOSPITALITY_SUBJECT = (
    r"(?:guests?|customers?|clients?|travell?ers?|tourists?|visitors?|diners?|"
    r"staff|housekeep\w*|concierges?|managers?|owners?|hoteliers?|everyone|nobody|people)"
)
_PROTECTED_GROUPS = (
    r"(?:immigrants?|foreigners?|minorities|women|men|gays?|lesbians?|jews?|"
    r"muslims?|christians?|blacks?|whites?|asians?|mexicans?|refugees?)"
)


@dataclass(frozen=True)
class ModerationRule:
    """A tagged pattern. ``allow`` (matched against the text leading up to
    and including a hit) turns that hit into a non-violation."""

    category: str
    pattern: re.Pattern[str]
    serious: bool = True
    allow: re.Pattern[str] | None = None
    description: str = "Inappropriate content detected"
    echo_fragment: bool = True

    def first_violation(self, text: str) -> "Violation | None":
        for match in self.pattern.finditer(text):
            if self.allow is not None and self._allowed(text, match):
                continue
            return Violation(
                category=self.category,
                fragment=match.group(0) if self.echo_fragment else None,
                serious=self.serious,
                description=self.description,
            )
        return None

    def _allowed(self, text: str, match: re.Match[str]) -> bool:
        window = text[max(0, match.start() - 60) : match.end()]
        return self.allow.search(window) is not None


@dataclass(frozen=True)
class Violation:
    category: str
    fragment: str | None
    serious: bool
    description: str

    @property
    def message(self) -> str:
        if self.fragment is None:
            return f"{self.description} ({self.category})"
        return f"{self.description} ({self.category}): {self.fragment}"


@dataclass
class ModerationResult:
    findings: list[Violation] = field(default_factory=list)

    @property
    def appropriate(self) -> bool:
        return not self.findings

    @property
    def violations(self) -> list[str]:
        return [v.message for v in self.findings]

    @property
    def serious(self) -> list[Violation]:
        return [v for v in self.findings if v.serious]

    @property
    def borderline(self) -> list[Violation]:
        return [v for v in self.findings if not v.serious]


def _rule(category: str, pattern: str, **kwargs) -> ModerationRule:
    allow = kwargs.pop("allow", None)
    return ModerationRule(
        category=category,
        pattern=re.compile(pattern, _FLAGS),
        allow=re.compile(allow, _FLAGS) if allow else None,
        **kwargs,
    )


# ── Structural rules (both policies) ─────────────────────────────────────────

STRUCTURAL_RULES: tuple[ModerationRule, ...] = (
    _rule("url", r"https?://", description="URLs not allowed in content"),
    _rule(
        "credit-card",
        r"\b\d{4}[-\s]\d{4}[-\s]\d{4}[-\s]\d{4}\b",
        description="Credit card patterns not allowed",
        echo_fragment=False,
    ),
    _rule(
        "email",
        r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
        description="Email addresses not allowed",
        echo_fragment=False,
    ),
)

# ── Strict policy: bare words ────────────────────────────────────────────────

STRICT_RULES: tuple[ModerationRule, ...] = (
    _rule("profanity", r"\b(?:fuck|shit|damn|hell|ass|bitch|bastard|cunt|cock|dick)\b"),
    _rule("violence", r"\b(?:kill|murder|death|violence|harm|hurt|attack|assault|rape)\b"),
    _rule("illegal-drugs", r"\b(?:illegal|drugs|cocaine|marijuana|heroin|meth|crack|cannabis)\b"),
    _rule("hate", r"\b(?:hate|racism|sexism|discrimination|nazi|terrorist|bomb)\b"),
    _rule("sexual", r"\b(?:sexual|porn|explicit|nude|xxx|sex|orgasm|masturbat\w*)\b"),
    _rule("self-harm", r"\b(?:suicide|self-harm|cutting|overdose)\b"),
    _rule("fraud-security", r"\b(?:scam|fraud|phishing|hack|exploit|malware)\b"),
)

# ── Contextual policy ────────────────────────────────────────────────────────

CONTEXTUAL_RULES: tuple[ModerationRule, ...] = (
    _rule("profanity", r"\b(?:fuck\w*|shit\w*|bitch\w*|bastards?|cunts?)\b"),
    _rule("profanity", r"\b(?:damn|hell|crap)\b", serious=False),
    _rule(
        "violence",
        r"\b(?:kill|murder|attack|assault|hurt|harm|shoot|stab|beat)(?:s|ed|ing)?\s+"
        rf"(?:the\s+|all\s+|those\s+|these\s+|some\s+|our\s+|your\s+)?{_PEOPLE}\b",
    ),
    _rule("violence", r"\brap(?:e|es|ed|ing|ist)\b"),
    _rule("illegal-drugs", r"\b(?:cocaine|heroin|meth(?:amphetamine)?|fentanyl)\b"),
    _rule(
        "illegal-drugs",
        r"\b(?:buy|buying|sell|selling|deal|dealing|smoke|smoking|snort|snorting)\s+"
        r"(?:some\s+)?(?:drugs|marijuana|cannabis|weed|crack)\b",
    ),
    _rule("hate", r"\b(?:nazis?|terrorists?|racis[mt]|sexis[mt])\b"),
    _rule("hate", rf"\bhat(?:e|es|ed|ing)\s+(?:all\s+|the\s+)?{_PROTECTED_GROUPS}\b"),
    _rule(
        "hate",
        r"\bhat(?:e|es|ed|ing)\b",
        serious=False,
        allow=rf"\b{_HOSPITALITY_SUBJECT}\s+(?:\w+\s+)?hat(?:e|es|ed|ing)\Z",
    ),
    _rule(
        "violence",
        r"\b(?:build|building|plant|planting|detonate|detonating|set\s+off)\s+(?:a\s+|the\s+)?bombs?\b",
    ),
    _rule("sexual", r"\b(?:porn\w*|xxx|nudes?|nudity|orgasm\w*|masturbat\w*)\b"),
    _rule("sexual", r"\b(?:explicit|graphic)\s+sex\w*\b"),
    _rule("self-harm", r"\b(?:suicid\w*|self-harm\w*|overdos\w*)\b"),
    _rule("self-harm", r"\bcutting\s+(?:myself|yourself|himself|herself|themselves)\b"),
    _rule("fraud-security", r"\b(?:phishing|malware|ransomware|keyloggers?)\b"),
    _rule(
        "fraud-security",
        r"\b(?:steal|stealing|stole|stolen)\s+(?:credit\s+cards?|passwords?|identit(?:y|ies))\b",
    ),
    _rule("fraud-security", r"\b(?:scams?|fraud)\b", serious=False),
)

_POLICY_RULES: dict[str, tuple[ModerationRule, ...]] = {
    "contextual": CONTEXTUAL_RULES,
    "strict": STRICT_RULES,
}


class ContentModerator:
    """Runs the rule table for a policy over a piece of text."""

    def __init__(self, policy: ModerationPolicy = "contextual") -> None:
        if policy not in _POLICY_RULES:
            raise ValueError(f"Unknown moderation policy: {policy!r}")
        self.policy = policy
        self._rules = _POLICY_RULES[policy] + STRUCTURAL_RULES

    def check(self, text: str) -> ModerationResult:
        result = ModerationResult()
        for rule in self._rules:
            violation = rule.first_violation(text)
            if violation is not None:
                result.findings.append(violation)
        return result

    def fatal_for_output(self, result: ModerationResult) -> list[Violation]:
        """Violations that reject generated content.

        Strict: every violation. Contextual: serious ones only.
        """
        if self.policy == "strict":
            return list(result.findings)
        return result.serious
