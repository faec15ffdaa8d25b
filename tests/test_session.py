import pytest

from geodesafio.services.challenges import ChallengeRecord
from geodesafio.services.session import (
    ATTEMPTING,
    EXHAUSTED,
    SOLVED,
    ChallengeExhausted,
    GameRules,
    GuessAccepted,
    GuessRejected,
    HintUnlocked,
    InsufficientScore,
    InvalidSelection,
    InvalidTransition,
    MultipleChoiceActivated,
    SelectionRequired,
    SessionComplete,
    SessionState,
    advance,
    request_hint,
    start,
    submit_guess,
)


def _types(events):
    return [type(e) for e in events]


def test_start_resets_everything():
    s = start(2, now=100.0, score=12)
    assert s.challenge_index == 2
    assert s.attempt_count == 0
    assert not s.answered and not s.exhausted and not s.hint_used
    assert s.phase == ATTEMPTING
    assert s.start_timestamp == 100.0
    assert s.score == 12
    assert s.options == ()


def test_correct_guess_different_case_at_three_seconds(catedral, rules):
    s = start(0, now=100.0)
    s2, events = submit_guess(s, catedral, "catedral", rules, now=103.4)

    assert _types(events) == [GuessAccepted]
    ev = events[0]
    assert (ev.base, ev.bonus, ev.total, ev.elapsed) == (20, 17, 37, 3)
    assert s2.phase == SOLVED
    assert s2.score == 37
    assert s2.blur_px(rules) == 0
    # input state untouched
    assert s.phase == ATTEMPTING and s.score == 0


def test_slow_answer_gets_base_points_only(catedral, rules):
    s = start(0, now=0.0)
    _, events = submit_guess(s, catedral, "Catedral", rules, now=60.0)
    assert events[0].total == 20


def test_three_wrong_guesses_exhaust_with_single_penalty(catedral, rules):
    s = start(0, now=0.0, score=10)

    s, ev1 = submit_guess(s, catedral, "Igreja", rules, now=1.0)
    assert _types(ev1) == [GuessRejected]
    assert ev1[0].message == "Incorrect, attempt 1/3"

    s, ev2 = submit_guess(s, catedral, "Mosteiro", rules, now=2.0)
    assert _types(ev2) == [GuessRejected, MultipleChoiceActivated]
    assert ev2[1].options == ("Museu", "Catedral", "Teatro")
    assert s.multiple_choice

    s, ev3 = submit_guess(s, catedral, "Museu", rules, now=3.0)
    assert _types(ev3) == [GuessRejected, ChallengeExhausted]
    assert ev3[1].penalty == -5
    assert ev3[1].title == "Catedral"
    assert s.phase == EXHAUSTED
    assert s.score == 5

    # further submissions are rejected: no events, no second penalty
    s4, ev4 = submit_guess(s, catedral, "Catedral", rules, now=4.0)
    assert ev4 == []
    assert s4 == s

    penalties = [e for e in ev1 + ev2 + ev3 + ev4 if isinstance(e, ChallengeExhausted)]
    assert len(penalties) == 1


def test_penalty_never_takes_score_below_zero(catedral):
    rules = GameRules(max_attempts=1)
    s, events = submit_guess(start(0, now=0.0, score=2), catedral, "x", rules, now=1.0)
    assert isinstance(events[-1], ChallengeExhausted)
    assert s.score == 0


def test_two_attempt_revision_exhausts_without_choices(catedral):
    rules = GameRules(max_attempts=2, multiple_choice_threshold=2)
    s = start(0, now=0.0)
    s, _ = submit_guess(s, catedral, "a", rules, now=1.0)
    s, events = submit_guess(s, catedral, "b", rules, now=2.0)
    assert _types(events) == [GuessRejected, ChallengeExhausted]
    assert s.phase == EXHAUSTED


def test_blur_steps_down_with_attempts(catedral):
    rules = GameRules(max_attempts=5, multiple_choice_threshold=10)
    s = start(0, now=0.0)
    blurs = [s.blur_px(rules)]
    levels = [s.reveal_level(rules)]
    for _ in range(4):
        s, events = submit_guess(s, catedral, "nope", rules, now=1.0)
        blurs.append(s.blur_px(rules))
        levels.append(s.reveal_level(rules))
        assert events[0].blur_px == s.blur_px(rules)
    assert blurs == [30, 20, 10, 0, 0]
    assert levels == [0, 1, 2, 3, 3]


def test_multiple_choice_requires_selection(catedral, rules):
    s = SessionState(attempt_count=2, options=("Museu", "Catedral", "Teatro"))
    with pytest.raises(SelectionRequired):
        submit_guess(s, catedral, None, rules, now=1.0)
    with pytest.raises(SelectionRequired):
        submit_guess(s, catedral, "   ", rules, now=1.0)
    with pytest.raises(InvalidSelection):
        submit_guess(s, catedral, "Igreja", rules, now=1.0)


def test_multiple_choice_correct_option(catedral, rules):
    s = SessionState(attempt_count=2, start_timestamp=0.0, options=("Museu", "Catedral", "Teatro"))
    s2, events = submit_guess(s, catedral, "Catedral", rules, now=30.0)
    assert _types(events) == [GuessAccepted]
    assert events[0].total == 20
    assert s2.answered


def test_hint_denied_without_enough_score(catedral):
    s = start(0, now=0.0, score=4)
    with pytest.raises(InsufficientScore):
        request_hint(s, catedral)
    assert not s.hint_used and s.score == 4


def test_hint_charged_once(catedral):
    s = start(0, now=0.0, score=5)
    s, events = request_hint(s, catedral)
    assert _types(events) == [HintUnlocked]
    assert events[0].description == "Fica na praça central."
    assert events[0].delta == -5
    assert s.hint_used and s.score == 0

    s2, again = request_hint(s, catedral)
    assert again == []
    assert s2.score == 0


def test_hint_only_while_attempting(catedral, rules):
    s, _ = submit_guess(start(0, now=0.0, score=50), catedral, "Catedral", rules, now=1.0)
    with pytest.raises(InvalidTransition):
        request_hint(s, catedral)


def test_advance_requires_finished_challenge():
    with pytest.raises(InvalidTransition):
        advance(start(0, now=0.0), total_challenges=3, now=1.0)


def test_advance_to_next_challenge_keeps_score():
    s = SessionState(challenge_index=0, attempt_count=2, answered=True, hint_used=True, score=37)
    nxt, events = advance(s, total_challenges=2, now=50.0)
    assert events == []
    assert nxt.challenge_index == 1
    assert nxt.attempt_count == 0 and not nxt.answered and not nxt.hint_used
    assert nxt.start_timestamp == 50.0
    assert nxt.score == 37


def test_advance_past_last_challenge_completes_session():
    s = SessionState(challenge_index=1, exhausted=True, score=12)
    nxt, events = advance(s, total_challenges=2, now=50.0)
    assert nxt is None
    assert events == [SessionComplete(final_score=12, challenges_played=2)]


def test_state_survives_session_storage(catedral, rules):
    s, _ = submit_guess(start(0, now=10.0, score=3), catedral, "a", rules, now=11.0)
    s, _ = submit_guess(s, catedral, "b", rules, now=12.0)
    assert SessionState.from_dict(s.to_dict()) == s


def test_rules_from_config():
    rules = GameRules.from_config({"MAX_ATTEMPTS": "2", "BLUR_STEP": 15})
    assert rules.max_attempts == 2
    assert rules.multiple_choice_threshold == 2
    assert rules.blur_for(1) == 15


def test_rules_reject_zero_attempts():
    with pytest.raises(ValueError):
        GameRules(max_attempts=0)


@pytest.mark.parametrize("blur", [{"blur_step": -10}, {"initial_blur": -1}])
def test_rules_reject_negative_blur(blur):
    with pytest.raises(ValueError):
        GameRules(**blur)


def test_zero_blur_step_keeps_blur_flat():
    rules = GameRules(initial_blur=30, blur_step=0)
    assert SessionState(attempt_count=2).blur_px(rules) == 30
    assert SessionState(attempt_count=2).reveal_level(rules) == 0


def test_unknown_difficulty_uses_record_override(rules):
    record = ChallengeRecord(id="x", title="Cristo Redentor", points=15)
    s, events = submit_guess(start(0, now=0.0), record, "cristo redentor", rules, now=25.0)
    assert events[0].total == 15
