import json

import pytest

from geodesafio import create_app
from geodesafio.config import TestConfig
from geodesafio.services.challenges import ChallengeRecord
from geodesafio.services.session import GameRules

CIDADE = [
    {
        "id": "catedral",
        "title": "Catedral",
        "description": "Fica na praça central.",
        "image_path": "cidade/catedral.jpg",
        "educational_content": "Construída no século XX.",
        "difficulty": "Médio",
        "cep": "01001000",
        "options": ["Museu", "Catedral", "Teatro"],
    },
    {
        "id": "museu",
        "title": "Museu",
        "description": "Vão livre na avenida.",
        "image_path": "cidade/museu.jpg",
        "educational_content": "Inaugurado em 1968.",
        "difficulty": "Fácil",
        "options": ["Museu", "Biblioteca"],
    },
]


@pytest.fixture
def data_dir(tmp_path):
    topics = [
        {"slug": "cidade", "name": "Cidade Teste", "file": "cidade.json"},
        {"slug": "quebrado", "name": "Quebrado", "file": "quebrado.json"},
    ]
    (tmp_path / "topics.json").write_text(json.dumps(topics), encoding="utf-8")
    (tmp_path / "cidade.json").write_text(json.dumps(CIDADE), encoding="utf-8")
    (tmp_path / "quebrado.json").write_text("{not json", encoding="utf-8")
    return tmp_path


@pytest.fixture
def app(data_dir):
    class Cfg(TestConfig):
        DATA_DIR = str(data_dir)

    return create_app(Cfg)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def rules():
    return GameRules(max_attempts=3, multiple_choice_threshold=2)


@pytest.fixture
def catedral():
    return ChallengeRecord(
        id="catedral",
        title="Catedral",
        description="Fica na praça central.",
        difficulty="Médio",
        multiple_choice_options=("Museu", "Catedral", "Teatro"),
    )
