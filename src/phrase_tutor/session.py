"""Learn session state machine.

A session is a frozen value and every transition returns a new one, so any
host (CLI, web service, tests) can drive it. Transitions that are not allowed
in the current state return the session unchanged.
"""
import logging
import random
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Optional

from phrase_tutor.compare import compare_for_mode, compare_word_bank_answer, effective_mode
from phrase_tutor.models import (
    AnswerMode, CardResult, ComparisonResult, Direction, Phrase, RoundSummary, SessionPhase,
)
from phrase_tutor.word_bank import can_select, fisher_yates_shuffle, generate_word_pool, tokenize_phrase

logger = logging.getLogger(__name__)

NO_PHRASES_NOTICE = "No phrases to learn. Add phrases before starting a session."


@dataclass(frozen=True)
class Session:
    phase: SessionPhase = SessionPhase.IDLE
    direction: Direction = Direction.SOURCE_TO_TARGET
    shuffle: bool = True
    answer_mode: AnswerMode = AnswerMode.EXACT
    phrases: tuple = ()
    current_round: tuple = ()
    current_index: int = 0
    round_number: int = 1
    correct_count: int = 0
    incorrect_count: int = 0
    answers: MappingProxyType = field(default_factory=lambda: MappingProxyType({}), hash=False)
    incorrect_phrases: tuple = ()
    pools: MappingProxyType = field(default_factory=lambda: MappingProxyType({}), hash=False)
    notice: Optional[str] = None


def new_session(
    direction: Direction = Direction.SOURCE_TO_TARGET,
    shuffle: bool = True,
    answer_mode: AnswerMode = AnswerMode.EXACT,
) -> Session:
    return Session(direction=direction, shuffle=shuffle, answer_mode=answer_mode)


def configure(
    session: Session,
    direction: Direction | None = None,
    shuffle: bool | None = None,
    answer_mode: AnswerMode | None = None,
) -> Session:
    """Change session settings. Only possible before the session starts."""
    if session.phase != SessionPhase.IDLE:
        logger.debug("Settings are fixed once a session has started")
        return session
    return replace(
        session,
        direction=session.direction if direction is None else direction,
        shuffle=session.shuffle if shuffle is None else shuffle,
        answer_mode=session.answer_mode if answer_mode is None else answer_mode,
    )


# --- Accessors ---


def current_phrase(session: Session) -> Phrase | None:
    if session.phase != SessionPhase.IN_PROGRESS:
        return None
    if session.current_index >= len(session.current_round):
        return None
    return session.current_round[session.current_index]


def prompt_text(session: Session, phrase: Phrase | None = None) -> str:
    phrase = phrase or current_phrase(session)
    return phrase.prompt_for(session.direction) if phrase else ""


def correct_answer(session: Session, phrase: Phrase | None = None) -> str:
    phrase = phrase or current_phrase(session)
    return phrase.answer_for(session.direction) if phrase else ""


def card_mode(session: Session, phrase: Phrase | None = None) -> AnswerMode:
    """Answer mode for one card, with hybrid resolved by answer length."""
    token_count = len(tokenize_phrase(correct_answer(session, phrase)))
    return effective_mode(session.answer_mode, token_count)


def current_result(session: Session) -> CardResult | None:
    phrase = current_phrase(session)
    if phrase is None:
        return None
    return session.answers.get(phrase.id)


def is_current_checked(session: Session) -> bool:
    result = current_result(session)
    return bool(result and result.is_checked)


def current_pool(session: Session) -> list[str]:
    phrase = current_phrase(session)
    if phrase is None:
        return []
    return list(session.pools.get(phrase.id, ()))


def round_summary(session: Session) -> RoundSummary:
    return RoundSummary(
        round_number=session.round_number,
        correct_count=session.correct_count,
        incorrect_count=session.incorrect_count,
        total=len(session.current_round),
    )


# --- Internal helpers ---


def _prepare_card(session: Session, rng: random.Random | None = None) -> Session:
    """Generate the word pool for the current card when it is answered from the word bank."""
    phrase = current_phrase(session)
    if phrase is None or phrase.id in session.pools:
        return session
    if card_mode(session, phrase) != AnswerMode.WORD_BANK:
        return session
    pool = generate_word_pool(
        correct_answer(session, phrase), list(session.phrases), phrase.id, session.direction, rng,
    )
    return replace(session, pools=MappingProxyType({**session.pools, phrase.id: tuple(pool)}))


def _draft(session: Session, phrase: Phrase) -> CardResult:
    existing = session.answers.get(phrase.id)
    if existing is not None:
        return existing
    return CardResult(correct_answer=correct_answer(session, phrase))


def _with_card(session: Session, phrase_id: str, card: CardResult) -> Session:
    return replace(session, answers=MappingProxyType({**session.answers, phrase_id: card}))


def _begin_round(
    session: Session, phrases, round_number: int, shuffle: bool, rng: random.Random | None,
) -> Session:
    if shuffle:
        ordered = fisher_yates_shuffle(phrases, rng)
    else:
        ordered = sorted(phrases, key=lambda p: p.position)
    started = replace(
        session,
        phase=SessionPhase.IN_PROGRESS,
        current_round=tuple(ordered),
        current_index=0,
        round_number=round_number,
        correct_count=0,
        incorrect_count=0,
        answers=MappingProxyType({}),
        incorrect_phrases=(),
        pools=MappingProxyType({}),
        notice=None,
    )
    logger.debug("Round %d started with %d phrases", round_number, len(ordered))
    return _prepare_card(started, rng)


def _advance(session: Session, rng: random.Random | None) -> Session:
    if session.current_index >= len(session.current_round) - 1:
        logger.debug("Round %d finished", session.round_number)
        return replace(session, phase=SessionPhase.ROUND_SUMMARY)
    return _prepare_card(replace(session, current_index=session.current_index + 1), rng)


# --- Transitions ---


def start(session: Session, phrases, rng: random.Random | None = None) -> Session:
    """Start round 1 over the given phrases.

    An empty phrase set is a blocking condition rather than an error: the
    session stays idle and carries a notice for the learner.
    """
    if session.phase != SessionPhase.IDLE:
        logger.debug("start() ignored in phase %s", session.phase.value)
        return session
    phrases = tuple(phrases)
    if not phrases:
        logger.warning("Cannot start a learn session without phrases")
        return replace(session, notice=NO_PHRASES_NOTICE)
    return _begin_round(replace(session, phrases=phrases), phrases, 1, session.shuffle, rng)


def set_answer(session: Session, phrase_id: str, value: str) -> Session:
    """Store the typed answer for a card that has not been checked yet."""
    if session.phase != SessionPhase.IN_PROGRESS:
        return session
    phrase = next((p for p in session.current_round if p.id == phrase_id), None)
    if phrase is None:
        return session
    draft = _draft(session, phrase)
    if draft.is_checked:
        logger.debug("Answer for %s is frozen after check", phrase_id)
        return session
    return _with_card(session, phrase_id, replace(draft, user_answer=value or ""))


def select_token(session: Session, token: str) -> Session:
    """Append a token from the word pool to the answer.

    Once the answer holds as many tokens as the correct answer, the card is
    checked right away.
    """
    phrase = current_phrase(session)
    if phrase is None or card_mode(session, phrase) != AnswerMode.WORD_BANK:
        return session
    draft = _draft(session, phrase)
    if draft.is_checked:
        return session
    pool = session.pools.get(phrase.id, ())
    if not can_select(pool, draft.selected_tokens, token):
        logger.debug("Token %r is not available for %s", token, phrase.id)
        return session
    selected = draft.selected_tokens + (token,)
    updated = _with_card(
        session, phrase.id, replace(draft, selected_tokens=selected, user_answer=" ".join(selected)),
    )
    if len(selected) == len(tokenize_phrase(correct_answer(session, phrase))):
        return check(updated)
    return updated


def remove_token(session: Session, index: int) -> Session:
    """Put the selected token at `index` back into the pool."""
    phrase = current_phrase(session)
    if phrase is None:
        return session
    draft = _draft(session, phrase)
    if draft.is_checked or not 0 <= index < len(draft.selected_tokens):
        return session
    selected = draft.selected_tokens[:index] + draft.selected_tokens[index + 1:]
    return _with_card(session, phrase.id, replace(draft, selected_tokens=selected, user_answer=" ".join(selected)))


def evaluate_card(session: Session, phrase: Phrase | None = None) -> ComparisonResult:
    """Compare the stored answer for a card without changing the session."""
    phrase = phrase or current_phrase(session)
    draft = _draft(session, phrase)
    expected = correct_answer(session, phrase)
    mode = card_mode(session, phrase)
    if mode == AnswerMode.WORD_BANK:
        return compare_word_bank_answer(draft.selected_tokens, expected)
    return compare_for_mode(draft.user_answer, expected, mode)


def check(session: Session) -> Session:
    """Check the current card locally. A card that is already checked stays as it is."""
    phrase = current_phrase(session)
    if phrase is None:
        return session
    if is_current_checked(session):
        logger.debug("Re-check of %s rejected", phrase.id)
        return session
    return record_check(session, phrase.id, evaluate_card(session, phrase))


def record_check(session: Session, phrase_id: str, result: ComparisonResult) -> Session:
    """Apply a comparison result to the current card and update the round statistics.

    The first result for a card counts it as correct or incorrect. A later
    result with a different outcome moves the card from one count to the
    other. Results for any card other than the current one are stale and
    ignored.
    """
    phrase = current_phrase(session)
    if phrase is None or phrase.id != phrase_id:
        logger.debug("Stale result for %s ignored", phrase_id)
        return session

    previous = session.answers.get(phrase_id)
    correct_count = session.correct_count
    incorrect_count = session.incorrect_count
    if previous is None or not previous.is_checked:
        if result.is_correct:
            correct_count += 1
        else:
            incorrect_count += 1
    elif previous.is_correct is not None and previous.is_correct != result.is_correct:
        if previous.is_correct:
            correct_count -= 1
            incorrect_count += 1
        else:
            incorrect_count -= 1
            correct_count += 1

    card = replace(
        _draft(session, phrase),
        is_checked=True,
        is_correct=result.is_correct,
        normalized_user=result.normalized_user,
        normalized_correct=result.normalized_correct,
        correct_answer=correct_answer(session, phrase),
    )
    answers = MappingProxyType({**session.answers, phrase_id: card})
    incorrect_phrases = tuple(
        p for p in session.current_round
        if p.id in answers and answers[p.id].is_checked and answers[p.id].is_correct is False
    )
    logger.debug("Checked %s: %s", phrase_id, "correct" if result.is_correct else "incorrect")
    return replace(
        session,
        answers=answers,
        correct_count=correct_count,
        incorrect_count=incorrect_count,
        incorrect_phrases=incorrect_phrases,
    )


def skip(session: Session, rng: random.Random | None = None) -> Session:
    """Move past an unchecked card without counting it either way."""
    if current_phrase(session) is None or is_current_checked(session):
        return session
    return _advance(session, rng)


def next_card(session: Session, rng: random.Random | None = None) -> Session:
    """Advance after a check; the last card of a round leads to the round summary."""
    if current_phrase(session) is None:
        return session
    if not is_current_checked(session):
        logger.debug("next_card() on an unchecked card rejected; use skip()")
        return session
    return _advance(session, rng)


def confirm(session: Session, rng: random.Random | None = None) -> Session:
    """The single confirm action: check an unchecked card, otherwise move on."""
    if is_current_checked(session):
        return next_card(session, rng)
    return check(session)


def continue_with_incorrect(session: Session, rng: random.Random | None = None) -> Session:
    """Start the next round with the phrases missed in this one, always shuffled."""
    if session.phase != SessionPhase.ROUND_SUMMARY:
        return session
    if not session.incorrect_phrases:
        return restart(session)
    return _begin_round(session, session.incorrect_phrases, session.round_number + 1, True, rng)


def restart(session: Session) -> Session:
    """Return to the idle configuration state, keeping the chosen settings."""
    return new_session(session.direction, session.shuffle, session.answer_mode)


def finish(session: Session) -> Session:
    logger.debug("Session finished after round %d", session.round_number)
    return restart(session)
