"""Word-level diff between a learner's answer and the correct answer."""
import re

from phrase_tutor.models import CardResult, DiffSegment
from phrase_tutor.normalize import strip_markup_for_display

SPLIT_RE = re.compile(r"(\s+)")

EQUAL = "equal"
DIFFERENT = "different"


def _split_words(text: str) -> list[str]:
    return [part for part in SPLIT_RE.split(text or "") if part]


def _is_space(part: str) -> bool:
    return part.isspace()


def diff_answers(
    user_answer: str,
    correct_answer: str,
    normalized_user: str,
    normalized_correct: str,
) -> tuple[list[DiffSegment], list[DiffSegment]]:
    """Align both answers word by word and mark matching words as equal.

    The walk is greedy: whitespace is always equal, a word is equal while the
    next normalized words on both sides match, and on a mismatch each side
    moves on by one word marked different. Joining the segment texts of
    either side gives back that side's input.
    """
    if normalized_user == normalized_correct:
        return (
            [DiffSegment(EQUAL, user_answer or "")],
            [DiffSegment(EQUAL, correct_answer or "")],
        )

    user_parts = _split_words(user_answer)
    correct_parts = _split_words(correct_answer)
    user_norm = normalized_user.split()
    correct_norm = normalized_correct.split()

    user_segments: list[DiffSegment] = []
    correct_segments: list[DiffSegment] = []
    ui = ci = nui = nci = 0

    while ui < len(user_parts) or ci < len(correct_parts):
        if ui < len(user_parts) and _is_space(user_parts[ui]):
            user_segments.append(DiffSegment(EQUAL, user_parts[ui]))
            ui += 1
            continue
        if ci < len(correct_parts) and _is_space(correct_parts[ci]):
            correct_segments.append(DiffSegment(EQUAL, correct_parts[ci]))
            ci += 1
            continue

        user_word = user_norm[nui] if nui < len(user_norm) else None
        correct_word = correct_norm[nci] if nci < len(correct_norm) else None

        if user_word is not None and user_word == correct_word:
            if ui < len(user_parts):
                user_segments.append(DiffSegment(EQUAL, user_parts[ui]))
                ui += 1
            if ci < len(correct_parts):
                correct_segments.append(DiffSegment(EQUAL, correct_parts[ci]))
                ci += 1
            nui += 1
            nci += 1
            continue

        if ui < len(user_parts):
            user_segments.append(DiffSegment(DIFFERENT, user_parts[ui]))
            ui += 1
            if user_word is not None:
                nui += 1
        if ci < len(correct_parts):
            correct_segments.append(DiffSegment(DIFFERENT, correct_parts[ci]))
            ci += 1
            if correct_word is not None:
                nci += 1

    return user_segments, correct_segments


def diff_card(card: CardResult) -> tuple[list[DiffSegment], list[DiffSegment]]:
    """Diff a checked card using display text with markup removed."""
    return diff_answers(
        strip_markup_for_display(card.user_answer),
        strip_markup_for_display(card.correct_answer),
        card.normalized_user,
        card.normalized_correct,
    )
