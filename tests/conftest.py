import os
import tempfile
from pathlib import Path
from typing import Callable, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

# Bind the engine and upload area to throwaway paths before the app is imported.
_TMP_ROOT = Path(tempfile.mkdtemp(prefix="early_pulse_tests_"))
os.environ.setdefault("DB_PATH", str(_TMP_ROOT / "bootstrap.db"))
os.environ.setdefault("UPLOAD_DIR", str(_TMP_ROOT / "uploads"))

from app.core.prompts import Part, TextPart  # noqa: E402
from app.db.session import SessionLocal, configure_database, create_tables  # noqa: E402
from app.services.llm import get_llm_client  # noqa: E402
from app.services.uploads import configure_uploads  # noqa: E402

HEALTH_REPLY = (
    "## Overview\n"
    "- **Triggers** include stress\n"
    "* Dehydration and skipped meals can both bring on an attack.\n"
    "---\n"
    "Short.\n"
    "Regular sleep   and hydration reduce how often migraines occur.\n"
)


class FakeLLMClient:
    """Scripted stand-in for the Gemini client that records every call."""

    def __init__(
        self,
        classification: str = "true",
        reply: str = HEALTH_REPLY,
        classification_error: Optional[Exception] = None,
        generation_error: Optional[Exception] = None,
    ) -> None:
        self.classification = classification
        self.reply = reply
        self.classification_error = classification_error
        self.generation_error = generation_error
        self.calls: list[tuple[str, list[Part]]] = []

    def generate_text(self, parts: Sequence[Part], task_type: str = "reasoning") -> str:
        self.calls.append((task_type, list(parts)))
        if task_type == "classification":
            if self.classification_error:
                raise self.classification_error
            return self.classification
        if self.generation_error:
            raise self.generation_error
        return self.reply

    @property
    def generation_calls(self) -> list[list[Part]]:
        return [parts for task_type, parts in self.calls if task_type != "classification"]

    @property
    def classification_calls(self) -> list[list[Part]]:
        return [parts for task_type, parts in self.calls if task_type == "classification"]

    def generation_text(self) -> str:
        parts = self.generation_calls[-1]
        return "".join(part.text for part in parts if isinstance(part, TextPart))


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    db_path = tmp_path_factory.mktemp("db") / "early_pulse_test.db"
    configure_database(str(db_path))
    create_tables()
    return db_path


@pytest.fixture(scope="session")
def app(test_db_path: Path):
    from app.main import app as fastapi_app

    return fastapi_app


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    target = tmp_path / "uploads"
    configure_uploads(str(target))
    return target


@pytest.fixture
def client(app, upload_dir: Path):
    app.dependency_overrides = {}
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides = {}


@pytest.fixture
def db_session(test_db_path: Path):
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def fake_llm_factory() -> Callable[..., FakeLLMClient]:
    def _factory(**kwargs) -> FakeLLMClient:
        return FakeLLMClient(**kwargs)

    return _factory


@pytest.fixture
def override_llm(app, fake_llm_factory):
    def _override(**kwargs) -> FakeLLMClient:
        fake = fake_llm_factory(**kwargs)
        app.dependency_overrides[get_llm_client] = lambda: fake
        return fake

    return _override


def staged_files(upload_dir: Path) -> list[Path]:
    if not upload_dir.exists():
        return []
    return list(upload_dir.iterdir())
