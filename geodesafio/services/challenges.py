# geodesafio/services/challenges.py
import json
import os
import random
from dataclasses import dataclass, field
from typing import Any, Optional

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")
TOPICS_FILE = "topics.json"
MAX_OPTIONS = 4


class ChallengeLoadError(Exception):
    """Raised when a topic's challenge data cannot be read or is invalid."""


class UnknownTopic(ChallengeLoadError):
    """Raised when a topic slug is not listed in the topics index."""


@dataclass(frozen=True)
class Topic:
    slug: str
    name: str
    data_file: str


@dataclass(frozen=True)
class ChallengeRecord:
    id: str
    title: str
    description: str = ""
    image_path: str = ""
    educational_content: str = ""
    difficulty: Optional[str] = None
    points: Optional[int] = None
    address_code: Optional[str] = None
    multiple_choice_options: tuple[str, ...] = field(default_factory=tuple)


def load_topics(data_dir: str = DATA_DIR) -> list[Topic]:
    path = os.path.join(data_dir, TOPICS_FILE)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        raise ChallengeLoadError(f"Could not read topics index {path}: {e}") from e

    topics = []
    for item in raw if isinstance(raw, list) else []:
        slug = str(item.get("slug") or "").strip()
        if not slug:
            continue
        topics.append(Topic(
            slug=slug,
            name=str(item.get("name") or slug).strip(),
            data_file=str(item.get("file") or f"{slug}.json"),
        ))
    return topics


def get_topic(slug: str, data_dir: str = DATA_DIR) -> Topic:
    slug = (slug or "").strip()
    for t in load_topics(data_dir):
        if t.slug == slug:
            return t
    raise UnknownTopic(f"Unknown topic: {slug!r}")


def load_challenges(topic: Topic, data_dir: str = DATA_DIR) -> list[ChallengeRecord]:
    """Read and validate every record of a topic, in file order."""
    path = os.path.join(data_dir, topic.data_file)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        raise ChallengeLoadError(f"Could not read challenges for {topic.name}: {e}") from e

    if not isinstance(raw, list):
        raise ChallengeLoadError(f"Challenge data for {topic.name} must be a JSON array")
    if not raw:
        raise ChallengeLoadError(f"No challenges available for {topic.name}")
    records = [_normalize_record(item, idx) for idx, item in enumerate(raw)]
    if len({r.id for r in records}) != len(records):
        raise ChallengeLoadError(f"Duplicate challenge ids in {topic.data_file}")
    return records


def shuffled_order(records: list[ChallengeRecord], rng: Optional[random.Random] = None) -> list[str]:
    """Ids of `records` in a fresh random order (the caller's list is untouched)."""
    ids = [r.id for r in records]
    (rng or random.Random()).shuffle(ids)
    return ids


def index_by_id(records: list[ChallengeRecord]) -> dict[str, ChallengeRecord]:
    return {r.id: r for r in records}


# --- helpers -----------------------------------------------------------------

def _pick(item: dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if item.get(k) is not None:
            return item[k]
    return None


def _clean(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _normalize_record(item: Any, idx: int) -> ChallengeRecord:
    """
    Build a ChallengeRecord from one JSON object.
    - accepts snake_case and camelCase keys ('cep' and 'options' are aliases too)
    - the record id falls back to its position in the file
    - blank titles or more than MAX_OPTIONS options are rejected
    """
    if not isinstance(item, dict):
        raise ChallengeLoadError(f"Challenge #{idx} is not an object")

    title = _clean(item.get("title"))
    if not title:
        raise ChallengeLoadError(f"Challenge #{idx} has no title")

    options = _pick(item, "multiple_choice_options", "multipleChoiceOptions", "options") or []
    if not isinstance(options, list):
        raise ChallengeLoadError(f"Challenge {title!r}: options must be a list")
    options = [_clean(o) for o in options if _clean(o)]
    if len(options) > MAX_OPTIONS:
        raise ChallengeLoadError(f"Challenge {title!r}: at most {MAX_OPTIONS} options allowed")

    points = item.get("points")
    try:
        points = int(points) if points is not None else None
    except (TypeError, ValueError) as e:
        raise ChallengeLoadError(f"Challenge {title!r}: invalid points value {points!r}") from e

    address_code = _clean(_pick(item, "address_code", "addressCode", "cep")) or None

    return ChallengeRecord(
        id=_clean(item.get("id")) or str(idx),
        title=title,
        description=_clean(item.get("description")),
        image_path=_clean(_pick(item, "image_path", "imagePath")),
        educational_content=_clean(_pick(item, "educational_content", "educationalContent")),
        difficulty=_clean(item.get("difficulty")) or None,
        points=points,
        address_code=address_code,
        multiple_choice_options=tuple(options),
    )
