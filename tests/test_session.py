# tests/test_session.py
import random

import pytest

from phrase_tutor import session as learn
from phrase_tutor.models import AnswerMode, ComparisonResult, Direction, Phrase, SessionPhase
from phrase_tutor.word_bank import tokenize_phrase


def _answer(session, text):
    phrase = learn.current_phrase(session)
    return learn.check(learn.set_answer(session, phrase.id, text))


def _answer_correctly(session):
    return _answer(session, learn.correct_answer(session))


def _assert_invariants(session):
    assert session.correct_count + session.incorrect_count <= len(session.current_round)
    if session.phase == SessionPhase.IN_PROGRESS:
        assert session.correct_count + session.incorrect_count <= session.current_index + 1
    expected = [
        p for p in session.current_round
        if p.id in session.answers and session.answers[p.id].is_checked and session.answers[p.id].is_correct is False
    ]
    assert list(session.incorrect_phrases) == expected


def test_new_session_is_idle():
    session = learn.new_session()
    assert session.phase == SessionPhase.IDLE
    assert learn.current_phrase(session) is None


def test_start_in_order(phrases):
    session = learn.start(learn.new_session(shuffle=False), list(reversed(phrases)))
    assert session.phase == SessionPhase.IN_PROGRESS
    assert [p.id for p in session.current_round] == ["p1", "p2", "p3", "p4", "p5"]
    assert session.round_number == 1
    assert learn.prompt_text(session) == "Accident"
    assert learn.correct_answer(session) == "Wypadek"


def test_start_shuffled_keeps_all_phrases(phrases, rng):
    session = learn.start(learn.new_session(shuffle=True), phrases, rng)
    assert {p.id for p in session.current_round} == {p.id for p in phrases}


def test_start_with_no_phrases_stays_idle():
    session = learn.start(learn.new_session(), [])
    assert session.phase == SessionPhase.IDLE
    assert session.notice == learn.NO_PHRASES_NOTICE


def test_configure_only_while_idle(phrases):
    session = learn.configure(learn.new_session(), direction=Direction.TARGET_TO_SOURCE, shuffle=False)
    assert session.direction == Direction.TARGET_TO_SOURCE
    assert session.shuffle is False
    started = learn.start(session, phrases)
    assert learn.prompt_text(started) == "Wypadek"
    assert learn.configure(started, answer_mode=AnswerMode.CONTAINS) is started


def test_scenario_case_and_punctuation_tolerant(phrases):
    session = learn.start(learn.new_session(shuffle=False), phrases)
    session = _answer(session, "wypadek!")
    result = learn.current_result(session)
    assert result.is_checked is True
    assert result.is_correct is True
    assert result.normalized_user == "wypadek"
    assert session.correct_count == 1


def test_check_freezes_card(phrases):
    session = learn.start(learn.new_session(shuffle=False), phrases)
    session = _answer(session, "zle")
    assert learn.set_answer(session, "p1", "Wypadek") is session
    assert learn.check(session) is session
    assert session.incorrect_count == 1


def test_next_requires_check(phrases):
    session = learn.start(learn.new_session(shuffle=False), phrases)
    assert learn.next_card(session) is session
    session = _answer_correctly(session)
    session = learn.next_card(session)
    assert session.current_index == 1


def test_skip_does_not_count(phrases):
    session = learn.start(learn.new_session(shuffle=False), phrases)
    session = learn.skip(session)
    assert session.current_index == 1
    assert session.correct_count == 0
    assert session.incorrect_count == 0
    assert session.incorrect_phrases == ()


def test_skip_not_available_after_check(phrases):
    session = learn.start(learn.new_session(shuffle=False), phrases)
    session = _answer_correctly(session)
    assert learn.skip(session) is session


def test_confirm_checks_then_advances(phrases):
    session = learn.start(learn.new_session(shuffle=False), phrases)
    session = learn.set_answer(session, "p1", "Wypadek")
    session = learn.confirm(session)
    assert learn.is_current_checked(session)
    assert session.current_index == 0
    session = learn.confirm(session)
    assert session.current_index == 1
    assert not learn.is_current_checked(session)


def test_round_of_five_three_correct_two_incorrect(phrases, rng):
    """Answers 3 correctly and 2 incorrectly: 3/5 in the summary, 2 carried over."""
    session = learn.start(learn.new_session(shuffle=False), phrases)
    wrong_ids = {"p2", "p4"}
    while session.phase == SessionPhase.IN_PROGRESS:
        phrase = learn.current_phrase(session)
        session = _answer(session, "nope" if phrase.id in wrong_ids else learn.correct_answer(session))
        _assert_invariants(session)
        session = learn.next_card(session)

    assert session.phase == SessionPhase.ROUND_SUMMARY
    summary = learn.round_summary(session)
    assert (summary.round_number, summary.correct_count, summary.incorrect_count, summary.total) == (1, 3, 2, 5)
    assert summary.skipped_count == 0
    assert {p.id for p in session.incorrect_phrases} == wrong_ids

    session = learn.continue_with_incorrect(session, rng)
    assert session.phase == SessionPhase.IN_PROGRESS
    assert session.round_number == 2
    assert {p.id for p in session.current_round} == wrong_ids
    assert session.correct_count == 0
    assert session.answers == {}


def test_repeat_round_is_shuffled_even_when_shuffle_off():
    phrases = [Phrase(id=f"p{i}", source_text=f"s{i}", target_text=f"t{i}", position=i) for i in range(1, 13)]
    session = learn.start(learn.new_session(shuffle=False), phrases)
    while session.phase == SessionPhase.IN_PROGRESS:
        session = learn.next_card(_answer(session, "wrong"))
    session = learn.continue_with_incorrect(session, random.Random(5))
    assert [p.id for p in session.current_round] != [p.id for p in phrases]
    assert sorted(p.id for p in session.current_round) == sorted(p.id for p in phrases)


def test_all_correct_round_returns_to_idle(phrases):
    session = learn.start(learn.new_session(shuffle=False, answer_mode=AnswerMode.CONTAINS), phrases)
    while session.phase == SessionPhase.IN_PROGRESS:
        session = learn.next_card(_answer_correctly(session))
    assert session.incorrect_phrases == ()
    session = learn.continue_with_incorrect(session)
    assert session.phase == SessionPhase.IDLE
    assert session.answer_mode == AnswerMode.CONTAINS
    assert session.shuffle is False


def test_skipped_cards_not_carried_over(phrases):
    session = learn.start(learn.new_session(shuffle=False), phrases)
    session = learn.next_card(_answer(session, "wrong"))
    while session.phase == SessionPhase.IN_PROGRESS:
        session = learn.skip(session)
    summary = learn.round_summary(session)
    assert summary.incorrect_count == 1
    assert summary.skipped_count == 4
    assert [p.id for p in session.incorrect_phrases] == ["p1"]


def test_finish_and_restart_keep_settings(phrases):
    session = learn.start(learn.new_session(Direction.TARGET_TO_SOURCE, False, AnswerMode.HYBRID), phrases)
    for reset in (learn.finish, learn.restart):
        idle = reset(session)
        assert idle.phase == SessionPhase.IDLE
        assert idle.direction == Direction.TARGET_TO_SOURCE
        assert idle.shuffle is False
        assert idle.answer_mode == AnswerMode.HYBRID
        assert idle.current_round == ()


def test_record_check_flips_counts_on_different_outcome(phrases):
    session = learn.start(learn.new_session(shuffle=False), phrases)
    session = _answer(session, "wrong")
    assert (session.correct_count, session.incorrect_count) == (0, 1)
    flipped = learn.record_check(session, "p1", ComparisonResult(True, "wypadek", "wypadek"))
    assert (flipped.correct_count, flipped.incorrect_count) == (1, 0)
    assert flipped.incorrect_phrases == ()
    same = learn.record_check(flipped, "p1", ComparisonResult(True, "wypadek", "wypadek"))
    assert (same.correct_count, same.incorrect_count) == (1, 0)
    _assert_invariants(same)


def test_record_check_ignores_stale_phrase(phrases):
    session = learn.start(learn.new_session(shuffle=False), phrases)
    assert learn.record_check(session, "p3", ComparisonResult(True, "kot", "kot")) is session


def test_contains_mode_session():
    phrase = Phrase(id="b1", source_text="Bruise", target_text="siniak stłuczenie sińce", position=1)
    session = learn.start(learn.new_session(answer_mode=AnswerMode.CONTAINS), [phrase])
    session = _answer(session, "sińce")
    assert learn.current_result(session).is_correct is True


# --- Word bank ---


def _word_bank_session(rng, mode=AnswerMode.WORD_BANK):
    phrases = [
        Phrase(id="w1", source_text="Kot siedział na macie", target_text="the cat sat on the mat", position=1),
        Phrase(id="w2", source_text="Pies", target_text="a dog", position=2),
    ]
    return learn.start(learn.new_session(shuffle=False, answer_mode=mode), phrases, rng)


def test_word_bank_pool_prepared_for_current_card(rng):
    session = _word_bank_session(rng)
    pool = learn.current_pool(session)
    assert pool.count("the") == 2
    assert set(tokenize_phrase("the cat sat on the mat")) <= set(pool)


def test_word_bank_auto_check_on_complete_answer(rng):
    session = _word_bank_session(rng)
    tokens = tokenize_phrase("the cat sat on the mat")
    for token in tokens[:-1]:
        session = learn.select_token(session, token)
        assert not learn.is_current_checked(session)
    session = learn.select_token(session, tokens[-1])
    result = learn.current_result(session)
    assert result.is_checked is True
    assert result.is_correct is True
    assert result.user_answer == "the cat sat on the mat"
    assert session.correct_count == 1


def test_word_bank_wrong_order_is_incorrect(rng):
    session = _word_bank_session(rng)
    for token in ["cat", "the", "sat", "on", "the", "mat"]:
        session = learn.select_token(session, token)
    assert learn.current_result(session).is_correct is False
    assert [p.id for p in session.incorrect_phrases] == ["w1"]


def test_word_bank_selection_limited_by_pool_counts(rng):
    session = _word_bank_session(rng)
    session = learn.select_token(session, "the")
    session = learn.select_token(session, "the")
    after_two = session
    session = learn.select_token(session, "the")
    assert session is after_two
    assert learn.current_result(session).selected_tokens == ("the", "the")
    assert learn.select_token(session, "zebra") is session


def test_word_bank_remove_token(rng):
    session = _word_bank_session(rng)
    session = learn.select_token(session, "the")
    session = learn.select_token(session, "cat")
    session = learn.remove_token(session, 0)
    result = learn.current_result(session)
    assert result.selected_tokens == ("cat",)
    assert result.user_answer == "cat"
    assert learn.remove_token(session, 5) is session


def test_word_bank_pool_generated_on_next_card(rng):
    session = _word_bank_session(rng)
    session = learn.skip(session)
    assert learn.current_phrase(session).id == "w2"
    pool = learn.current_pool(session)
    assert "a" in pool and "dog" in pool


def test_hybrid_mode_types_short_answers(rng):
    session = _word_bank_session(rng, AnswerMode.HYBRID)
    assert learn.card_mode(session) == AnswerMode.WORD_BANK
    session = learn.skip(session)
    assert learn.card_mode(session) == AnswerMode.EXACT
    assert learn.current_pool(session) == []
    session = _answer(session, "A dog.")
    assert learn.current_result(session).is_correct is True


def test_select_token_ignored_outside_word_bank(phrases):
    session = learn.start(learn.new_session(shuffle=False), phrases)
    assert learn.select_token(session, "Wypadek") is session


def test_sessions_do_not_share_card_state(phrases):
    """Earlier sessions keep their answers and cannot be edited in place."""
    started = learn.start(learn.new_session(shuffle=False), phrases)
    answered = learn.set_answer(started, "p1", "wypadek")
    assert "p1" not in started.answers
    assert answered.answers["p1"].user_answer == "wypadek"
    with pytest.raises(TypeError):
        answered.answers["p2"] = answered.answers["p1"]
    with pytest.raises(TypeError):
        answered.pools["p1"] = ("x",)


def test_session_is_hashable(phrases):
    session = learn.check(learn.set_answer(learn.start(learn.new_session(shuffle=False), phrases), "p1", "wypadek"))
    assert hash(session) == hash(session)
    assert session in {session}


# --- Edge case tests ---


def test_empty_answer_is_incorrect_not_error(phrases):
    session = learn.start(learn.new_session(shuffle=False), phrases)
    session = learn.check(session)
    result = learn.current_result(session)
    assert result.is_correct is False
    assert result.user_answer == ""


def test_transitions_in_idle_are_noops():
    session = learn.new_session()
    for transition in (learn.check, learn.skip, learn.next_card, learn.confirm, learn.continue_with_incorrect):
        assert transition(session) is session


def test_invariants_under_random_actions(phrases):
    rng = random.Random(42)
    session = learn.start(learn.new_session(), phrases, rng)
    for _ in range(200):
        if session.phase == SessionPhase.ROUND_SUMMARY:
            session = learn.continue_with_incorrect(session, rng)
            if session.phase == SessionPhase.IDLE:
                session = learn.start(session, phrases, rng)
            continue
        action = rng.choice(["right", "wrong", "skip", "next", "check"])
        if action == "right":
            session = _answer_correctly(session)
        elif action == "wrong":
            session = _answer(session, "???")
        elif action == "skip":
            session = learn.skip(session)
        elif action == "next":
            session = learn.next_card(session)
        else:
            session = learn.check(session)
        _assert_invariants(session)
