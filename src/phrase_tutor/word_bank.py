"""Word bank mode: tokenization and word pool generation."""
import logging
import random
from collections import Counter

from phrase_tutor.models import Direction, Phrase
from phrase_tutor.normalize import strip_markup, strip_trailing_punctuation

logger = logging.getLogger(__name__)

DEFAULT_AVG_TOKEN_LENGTH = 5

# Each entry lists the substitutions offered for a correct token.
SUBSTITUTIONS = {
    "the": ("a", "an"),
    "a": ("the", "an"),
    "an": ("a", "the"),
    "at": ("in", "on"),
    "in": ("at", "on"),
    "on": ("in", "at"),
    "is": ("are", "was"),
    "are": ("is", "were"),
    "was": ("is", "were"),
    "were": ("are", "was"),
    "do": ("does", "did"),
    "does": ("do", "did"),
    "did": ("do", "does"),
    "some": ("any",),
    "any": ("some",),
}


def tokenize_phrase(text) -> list[str]:
    """Split a phrase into display tokens.

    Markup and trailing sentence punctuation are removed but case is kept.
    Contractions such as "don't" or "I'm" stay whole since only whitespace splits.
    """
    if not text or not isinstance(text, str):
        return []
    cleaned = strip_trailing_punctuation(strip_markup(text).strip())
    return [word for word in cleaned.split() if word]


def distractor_target(correct_token_count: int) -> int:
    if correct_token_count <= 2:
        return max(4 - correct_token_count, 2)
    return 3


def heuristic_distractors(correct_tokens: list[str]) -> list[str]:
    correct_lower = {t.lower() for t in correct_tokens}
    distractors = []
    seen = set()
    for token in correct_tokens:
        lower = token.lower()
        if lower in seen:
            continue
        seen.add(lower)
        for alternative in SUBSTITUTIONS.get(lower, ()):
            if alternative in correct_lower or alternative in distractors:
                continue
            distractors.append(alternative)
    return distractors


def sibling_tokens(phrases, exclude_phrase_id: str, direction: Direction) -> list[str]:
    """Answer-side tokens of every phrase except the current one."""
    tokens = []
    for phrase in phrases:
        if phrase.id == exclude_phrase_id:
            continue
        tokens.extend(tokenize_phrase(phrase.answer_for(direction)))
    return tokens


def fisher_yates_shuffle(items, rng: random.Random | None = None) -> list:
    rng = rng or random
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def generate_word_pool(
    correct_answer: str,
    phrases: list[Phrase],
    current_phrase_id: str,
    direction: Direction,
    rng: random.Random | None = None,
) -> list[str]:
    """Build the shuffled token pool for one card: every correct token plus distractors."""
    correct_tokens = tokenize_phrase(correct_answer)
    pool = list(correct_tokens)
    target = distractor_target(len(correct_tokens))

    distractors = heuristic_distractors(correct_tokens)
    pool.extend(distractors)

    if len(distractors) < target and len(phrases) > 1:
        taken = {t.lower() for t in pool}
        candidates = []
        for token in sibling_tokens(phrases, current_phrase_id, direction):
            if token.lower() in taken:
                continue
            taken.add(token.lower())
            candidates.append(token)
        if correct_tokens:
            avg_length = sum(len(t) for t in correct_tokens) / len(correct_tokens)
        else:
            avg_length = DEFAULT_AVG_TOKEN_LENGTH
        candidates.sort(key=lambda t: abs(len(t) - avg_length))
        needed = target - len(distractors)
        pool.extend(candidates[:needed])
        if len(candidates) < needed:
            logger.debug("Word pool for %s short by %d distractors", current_phrase_id, needed - len(candidates))

    return fisher_yates_shuffle(pool, rng)


def available_tokens(pool: list[str], selected_tokens) -> list[str]:
    """Pool entries still selectable, tracked by count per distinct token."""
    remaining = Counter(pool)
    remaining.subtract(selected_tokens)
    available = []
    for token in pool:
        if remaining[token] > 0:
            available.append(token)
            remaining[token] -= 1
    return available


def can_select(pool: list[str], selected_tokens, token: str) -> bool:
    return Counter(selected_tokens)[token] < Counter(pool)[token]
