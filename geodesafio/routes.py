import random
import time
from dataclasses import asdict

from flask import Blueprint, current_app, jsonify, request, session

from .services.address import address_text
from .services.challenges import (
    ChallengeLoadError,
    UnknownTopic,
    get_topic,
    index_by_id,
    load_challenges,
    load_topics,
    shuffled_order,
)
from .services.scoring import hint_cost
from .services.session import (
    ChallengeExhausted,
    GuessAccepted,
    GuessRejected,
    HintUnlocked,
    InsufficientScore,
    InvalidSelection,
    InvalidTransition,
    MultipleChoiceActivated,
    QuizError,
    SelectionRequired,
    SessionComplete,
    SessionState,
    advance,
    request_hint,
    start,
    submit_guess,
)

bp = Blueprint("main", __name__)

GAME_KEYS = ("topic", "order", "game")

# Player-facing text per event type
_MESSAGES = {
    GuessAccepted: lambda e: f"Correct! (+{e.total} points)",
    GuessRejected: lambda e: e.message,
    MultipleChoiceActivated: lambda e: "Tip: check the details and pick one of the options.",
    ChallengeExhausted: lambda e: f"Out of attempts ({e.penalty} points). The answer was {e.title}.",
    HintUnlocked: lambda e: f"Hint unlocked (-{e.cost} points).",
    SessionComplete: lambda e: f"Congratulations! You finished all {e.challenges_played} challenges.",
}

_STATUS = {
    InsufficientScore: 402,
    SelectionRequired: 400,
    InvalidSelection: 400,
    InvalidTransition: 409,
}


def _now() -> float:
    return time.time()


def _rules():
    return current_app.extensions["game_rules"]


def _leaderboard():
    return current_app.extensions["leaderboard"]


def _data_dir() -> str:
    return current_app.config["DATA_DIR"]


def _topic_records(slug: str, reload: bool = False):
    """(topic, records) for `slug`, read from disk once and reused by later requests."""
    cache = current_app.extensions["challenge_cache"]
    if reload or slug not in cache:
        topic = get_topic(slug, _data_dir())
        cache[slug] = (topic, load_challenges(topic, _data_dir()))
    return cache[slug]


def _clear_game() -> None:
    for k in GAME_KEYS:
        session.pop(k, None)


def _event_payload(ev) -> dict:
    out = {"type": type(ev).__name__, "message": _MESSAGES[type(ev)](ev)}
    out.update(asdict(ev))
    return out


def _apply_events(events: list) -> list[dict]:
    """Push score deltas into the leaderboard; return the events as JSON-ready dicts."""
    board = _leaderboard()
    for ev in events:
        delta = getattr(ev, "delta", None)
        if delta:
            board.apply_delta(delta)
    return [_event_payload(ev) for ev in events]


def _leaderboard_rows() -> list[dict]:
    return [
        {"rank": i, "name": e.name, "score": e.score}
        for i, e in enumerate(_leaderboard().load(), start=1)
    ]


def _current_game():
    """(topic, order, records_by_id, state) for the active game, or None."""
    slug = session.get("topic")
    order = session.get("order") or []
    raw_state = session.get("game")
    if not slug or not order or not raw_state:
        return None

    topic, loaded = _topic_records(slug)
    records = index_by_id(loaded)
    state = SessionState.from_dict(raw_state)
    if state.challenge_index >= len(order) or order[state.challenge_index] not in records:
        # Data file changed under a running game
        current_app.logger.warning("Stale game for topic %s; resetting", slug)
        _clear_game()
        return None
    return topic, order, records, state


def _challenge_view(topic, order, records, state: SessionState) -> dict:
    rules = _rules()
    record = records[order[state.challenge_index]]
    view = {
        "topic": {"slug": topic.slug, "name": topic.name},
        "index": state.challenge_index,
        "total": len(order),
        "challenge": {
            "id": record.id,
            "image": current_app.config["IMAGES_FOLDER"] + record.image_path,
            "difficulty": record.difficulty,
        },
        "phase": state.phase,
        "attempts": state.attempt_count,
        "max_attempts": rules.max_attempts,
        "blur_px": state.blur_px(rules),
        "reveal_level": state.reveal_level(rules),
        "multiple_choice": state.multiple_choice,
        "options": list(state.options),
        "accepts_input": not state.finished,
        "hint": {
            "available": not state.finished and not state.hint_used,
            "cost": hint_cost(),
            "text": record.description if state.hint_used else None,
        },
        "score": state.score,
        "answer": record.title if state.finished else None,
    }
    if state.answered:
        view["educational"] = record.educational_content
        view["address"] = address_text(record.address_code, topic.name)
    return view


def _response(game, state: SessionState, events: list, status: int = 200):
    topic, order, records, _ = game
    session["game"] = state.to_dict()
    payload = {
        "events": _apply_events(events),
        "ignored": not events,
        "view": _challenge_view(topic, order, records, state),
    }
    return jsonify(payload), status


# --- Errors -----------------------------------------------------------------------

@bp.errorhandler(QuizError)
def quiz_error(err: QuizError):
    return jsonify(error=str(err), type=type(err).__name__), _STATUS.get(type(err), 400)


@bp.errorhandler(ChallengeLoadError)
def load_error(err: ChallengeLoadError):
    if isinstance(err, UnknownTopic):
        return jsonify(error=str(err), type="UnknownTopic"), 404
    current_app.logger.exception("Challenge data failed to load")
    _clear_game()
    return jsonify(error="Could not load the game data. Check the data files.", type="ChallengeLoadError"), 503


# --- Routes -----------------------------------------------------------------------

@bp.route("/")
def landing():
    return {
        "app": current_app.config["APP_NAME"],
        "topics": [{"slug": t.slug, "name": t.name} for t in load_topics(_data_dir())],
        "active_game": bool(session.get("game")),
    }


@bp.route("/topics")
def topics():
    return jsonify([{"slug": t.slug, "name": t.name} for t in load_topics(_data_dir())])


@bp.post("/start")
def start_game():
    slug = (request.form.get("topic") or "").strip()
    if not slug:
        return jsonify(error="Choose a topic first.", type="TopicRequired"), 400

    topic, records = _topic_records(slug, reload=True)
    if current_app.config.get("SHUFFLE_CHALLENGES", True):
        order = shuffled_order(records, random.Random())
    else:
        order = [r.id for r in records]

    state = start(0, _now())
    session["topic"] = topic.slug
    session["order"] = order
    session["game"] = state.to_dict()
    current_app.logger.info("Game started: topic=%s challenges=%d", topic.slug, len(order))

    view = _challenge_view(topic, order, index_by_id(records), state)
    return jsonify(view=view, leaderboard=_leaderboard_rows())


@bp.get("/challenge")
def challenge():
    game = _current_game()
    if game is None:
        return jsonify(error="No active challenge.", type="NoActiveGame"), 404
    return jsonify(view=_challenge_view(*game))


@bp.post("/guess")
def guess():
    game = _current_game()
    if game is None:
        # Nothing to guess at; not an error for the player
        return jsonify(events=[], ignored=True, view=None)

    topic, order, records, state = game
    record = records[order[state.challenge_index]]

    # Once the options are on screen the free-text field is gone
    if state.multiple_choice:
        answer = request.form.get("option")
    else:
        answer = request.form.get("guess") or ""

    new_state, events = submit_guess(state, record, answer, _rules(), _now())
    for ev in events:
        if isinstance(ev, GuessAccepted):
            current_app.logger.info("Solved %s in %ss (+%d)", record.id, ev.elapsed, ev.total)
        elif isinstance(ev, ChallengeExhausted):
            current_app.logger.info("Exhausted %s after %d attempts", record.id, new_state.attempt_count)
    return _response(game, new_state, events)


@bp.post("/hint")
def hint():
    game = _current_game()
    if game is None:
        raise InvalidTransition("No active challenge.")

    topic, order, records, state = game
    new_state, events = request_hint(state, records[order[state.challenge_index]])
    return _response(game, new_state, events)


@bp.post("/next")
def next_challenge():
    game = _current_game()
    if game is None:
        raise InvalidTransition("No active challenge.")

    topic, order, records, state = game
    new_state, events = advance(state, len(order), _now())

    if new_state is None:
        _clear_game()
        current_app.logger.info("Game complete: topic=%s score=%d", topic.slug, state.score)
        return jsonify(
            events=_apply_events(events),
            complete=True,
            view=None,
            leaderboard=_leaderboard_rows(),
        )
    return _response(game, new_state, events)


@bp.get("/leaderboard")
def leaderboard():
    return jsonify(rows=_leaderboard_rows(), persisted=_leaderboard().persisted)


@bp.route("/health")
def health():
    return {"ok": True}
