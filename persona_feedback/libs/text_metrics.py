"""Surface measurements of feedback prose.

The composer uses these helpers to shape sentences and the fidelity scorer uses
the very same helpers to measure them, so both sides always agree on what a
sentence, a word or a clause is.
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence

SENTENCE_BOUNDARY = re.compile(r'(?<=[.!?])\s+')
LIST_ITEM = re.compile(r'^(?:[-*•]|\d+[.)])\s+')
WORD = re.compile(r"[A-Za-z0-9À-ɏ]+(?:['’/-][A-Za-z0-9À-ɏ]+)*")
PLACEHOLDER = re.compile(r'\{(\w+)\}')

CLAUSE_MARKER = re.compile(
    r";|,\s+(?:and|but|so)\b|\b(?:because|although|though|whereas|since|which|unless)\b|\bwhile\b(?!\s+loops?\b)",
    re.IGNORECASE,
)
HEDGE_MARKER = re.compile(
    r"\b(?:maybe|perhaps|might|could|consider|considering|possibly|you may want|"
    r"it may help|try to|i would suggest|it would be worth)\b",
    re.IGNORECASE,
)
DIRECT_MARKER = re.compile(r"\b(?:must|you need to|needs to|have to)\b", re.IGNORECASE)

IMPERATIVE_VERBS = frozenset({
    "add", "address", "avoid", "check", "document", "ensure", "extract", "fix",
    "focus", "handle", "implement", "keep", "make", "move", "prioritize",
    "prioritise", "refactor", "remove", "rename", "replace", "review", "revisit",
    "separate", "split", "test", "use", "validate", "wrap", "write",
})

# Restatements that strip tone and clause markers from finding text quoted
# inside a composed sentence; applied in order. No replacement is itself a marker.
MARKER_REWRITES = tuple((re.compile(pattern, re.IGNORECASE), replacement) for pattern, replacement in (
    (r"\b(?:maybe|perhaps|possibly),?\s*", ""),
    (r"\b(?:you (?:may|might) want(?: to)?|try to|i would suggest(?: that)?)\s+", ""),
    (r"^consider(?:ing)?\s+", ""),
    (r"\bconsidering\b", "weighing"),
    (r"\bconsider\b", "weigh"),
    (r"\bcould(?:n't| not)\b", "cannot"),
    (r"\bcould\b", "can"),
    (r"\bmight\b", "may"),
    (r"\bit may help\b", "it helps"),
    (r"\bit would be worth\b", "it is worth"),
    (r"\byou need to\b", "you should"),
    (r"\b(?:needs|have) to\b", "should"),
    (r"\bmust\b", "should"),
    (r"\s*;\s*", ", "),
    (r",\s+(and|but|so)\b", r" \1"),
    (r"\b(?:because|since)\b", "as"),
    (r"\b(?:even though|although|though)\b", "even if"),
    (r"\bwhereas\b", "and"),
    (r"\bwhich\b", "that"),
    (r"\bunless\b", "except when"),
    (r"\bwhile\b(?!\s+loops?\b)", "as"),
))

HEDGED = "hedged"
DIRECT = "direct"

# Average words per sentence: short < SHORT_LIMIT <= medium < LONG_MIN <= long
SHORT_LIMIT = 13
LONG_MIN = 22
LENGTH_BUCKETS = ("short", "medium", "long")

# Linear decay reaches zero at this distance from a band centre
ZERO_DISTANCE = 0.5


def words(text: str) -> List[str]:
    return WORD.findall(text)


def count_words(text: str) -> int:
    return len(WORD.findall(text))


def split_sentences(text: str) -> List[str]:
    """
    Split prose into sentences.

    Blank lines and list items (``- item``, ``* item``, ``1. item``) are not
    prose and are skipped; every other line is split after terminal
    punctuation followed by whitespace.
    """
    sentences: List[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or LIST_ITEM.match(line):
            continue
        sentences.extend(part.strip() for part in SENTENCE_BOUNDARY.split(line) if part.strip())
    return sentences


def clause_count(sentence: str) -> int:
    return 1 + len(CLAUSE_MARKER.findall(sentence))


def classify_tone(sentence: str) -> Optional[str]:
    """Return HEDGED, DIRECT, or None for a sentence that carries neither marker."""
    if HEDGE_MARKER.search(sentence):
        return HEDGED
    tokens = WORD.findall(sentence)
    if tokens and tokens[0].lower() in IMPERATIVE_VERBS:
        return DIRECT
    if DIRECT_MARKER.search(sentence):
        return DIRECT
    return None


def softening_ratio(sentences: Iterable[str]) -> float:
    """Share of hedged sentences among those classified as hedged or direct."""
    hedged = direct = 0
    for sentence in sentences:
        tone = classify_tone(sentence)
        if tone == HEDGED:
            hedged += 1
        elif tone == DIRECT:
            direct += 1
    if hedged + direct == 0:
        return 0.5
    return hedged / (hedged + direct)


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def complexity_index(sentences: Sequence[str]) -> float:
    """
    Complexity proxy in [0, 1].

    Combines the average clause count per sentence (weight 0.7, saturating at
    three clauses) with the average word length (weight 0.3, saturating at
    seven characters).
    """
    if not sentences:
        return 0.0
    avg_clauses = sum(clause_count(s) for s in sentences) / len(sentences)
    all_words = [w for s in sentences for w in WORD.findall(s)]
    avg_word_len = sum(len(w) for w in all_words) / len(all_words) if all_words else 0.0
    clause_part = _clamp((avg_clauses - 1.0) / 2.0)
    word_part = _clamp((avg_word_len - 4.0) / 3.0)
    return 0.7 * clause_part + 0.3 * word_part


def average_sentence_length(sentences: Sequence[str]) -> float:
    if not sentences:
        return 0.0
    return sum(count_words(s) for s in sentences) / len(sentences)


def length_bucket(avg_words: float) -> str:
    if avg_words < SHORT_LIMIT:
        return "short"
    if avg_words < LONG_MIN:
        return "medium"
    return "long"


def band_score(value: float, low: float, high: float, zero_distance: float = ZERO_DISTANCE) -> float:
    """100 inside [low, high], decaying linearly to 0 at zero_distance from the band centre."""
    if low <= value <= high:
        return 100.0
    center = (low + high) / 2
    half_width = (high - low) / 2
    distance = abs(value - center)
    if distance >= zero_distance or zero_distance <= half_width:
        return 0.0
    return 100.0 * (zero_distance - distance) / (zero_distance - half_width)


def bucket_score(actual: str, expected: str) -> float:
    """Exact bucket 100, adjacent bucket 60, opposite bucket 20."""
    gap = abs(LENGTH_BUCKETS.index(actual) - LENGTH_BUCKETS.index(expected))
    return {0: 100.0, 1: 60.0}.get(gap, 20.0)


def render_template(template: str, values: Dict[str, str]) -> str:
    """Fill ``{name}`` placeholders; unknown placeholders are left as written."""
    return PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def template_pattern(template: str) -> str:
    """Regex matching any rendering of a template (placeholders match one line of text)."""
    pieces = []
    last = 0
    for match in PLACEHOLDER.finditer(template):
        pieces.append(re.escape(template[last:match.start()]))
        pieces.append(r'[^\n]+?')
        last = match.end()
    pieces.append(re.escape(template[last:]))
    return ''.join(pieces)


def lower_first(text: str) -> str:
    """Lowercase a capitalised first word; acronyms and camelCase identifiers are kept."""
    text = text.strip()
    tokens = text.split(maxsplit=1)
    if not tokens:
        return text
    first = tokens[0]
    if len(first) > 1 and first[0].isupper() and first[1:].islower():
        return text[0].lower() + text[1:]
    return text


def neutral_phrase(text: str) -> str:
    """
    Fold finding text into one phrase that carries no tone of its own.

    Line and sentence breaks become commas, hedges and imperatives are
    restated plainly and clause-opening conjunctions are replaced, so quoting
    the phrase never changes how the surrounding sentence is measured.
    """
    pieces = [strip_terminal(p) for p in SENTENCE_BOUNDARY.split(" ".join(text.split()))]
    phrase = ", ".join(lower_first(p) if i else p for i, p in enumerate(p for p in pieces if p))
    for pattern, replacement in MARKER_REWRITES:
        phrase = pattern.sub(replacement, phrase)
    return phrase.strip(" ,")


def strip_terminal(text: str) -> str:
    return text.strip().rstrip('.!? ').strip()


def ensure_terminal(text: str, mark: str = '.') -> str:
    text = text.strip()
    if not text or text[-1] in '.!?':
        return text
    return text + mark
