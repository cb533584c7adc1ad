"""Answer comparison under the exact, contains and word-bank policies."""
from phrase_tutor.models import AnswerMode, ComparisonResult
from phrase_tutor.normalize import normalize_answer_text

# Hybrid mode types short answers and builds longer ones from the word bank.
HYBRID_TEXT_MAX_TOKENS = 2


def compare_answers(user_answer: str, correct_answer: str, use_contains_mode: bool = False) -> ComparisonResult:
    """Compare a typed answer with the expected one.

    In contains mode the answer is correct when any of its words equals any
    word of the correct answer, so "sińce" is accepted for "siniak stłuczenie sińce".
    """
    normalized_user = normalize_answer_text(user_answer)
    normalized_correct = normalize_answer_text(correct_answer)
    if use_contains_mode:
        user_words = set(normalized_user.split())
        correct_words = set(normalized_correct.split())
        is_correct = bool(user_words & correct_words)
    else:
        is_correct = normalized_user == normalized_correct
    return ComparisonResult(
        is_correct=is_correct,
        normalized_user=normalized_user,
        normalized_correct=normalized_correct,
    )


def compare_word_bank_answer(selected_tokens, correct_answer: str) -> ComparisonResult:
    """Word bank answers are joined with single spaces and always compared exactly."""
    return compare_answers(" ".join(selected_tokens), correct_answer)


def effective_mode(answer_mode: AnswerMode, correct_token_count: int) -> AnswerMode:
    if answer_mode != AnswerMode.HYBRID:
        return answer_mode
    if correct_token_count <= HYBRID_TEXT_MAX_TOKENS:
        return AnswerMode.EXACT
    return AnswerMode.WORD_BANK


def compare_for_mode(user_answer: str, correct_answer: str, mode: AnswerMode) -> ComparisonResult:
    if mode == AnswerMode.HYBRID:
        raise ValueError("resolve hybrid mode with effective_mode() before comparing")
    return compare_answers(user_answer, correct_answer, use_contains_mode=mode == AnswerMode.CONTAINS)
