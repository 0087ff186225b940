import uuid

import pytest
import httpx

from refsearch.config import loaders
from refsearch.core import settings as settings_module
from refsearch.db.base import Base
from refsearch.db.models import Character, CharacterGalleryImage
from refsearch.db.session import get_engine, init_engine, session_scope
from refsearch.main import app


@pytest.fixture(autouse=True)
def _use_test_db(tmp_path, monkeypatch):
    db_path = tmp_path / "test.db"
    database_url = f"sqlite+pysqlite:///{db_path}"

    monkeypatch.setattr(settings_module.settings, "database_url", database_url)
    monkeypatch.setattr(settings_module.settings, "db_auto_create", True)
    monkeypatch.setattr(settings_module.settings, "log_file", None)

    init_engine(database_url)
    Base.metadata.create_all(bind=get_engine())

    yield


@pytest.fixture(autouse=True)
def _fresh_config():
    loaders.clear_config_cache()
    yield
    loaders.clear_config_cache()


@pytest.fixture()
async def client():
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture()
def seed_character():
    """Insert a character with an optional master image and gallery; return its id as str."""

    def _seed(gallery: list[dict] | None = None, master: dict | None = None, name: str = "Mira") -> str:
        with session_scope() as db:
            character = Character(name=name)
            if master is not None:
                character.master_media_id = master.get("media_id", "master-1")
                character.master_image_url = master.get("image_url", "https://cdn.test/master.png")
                character.master_quality_score = master.get("quality_score")
                character.master_consistency_score = master.get("consistency_score")
                character.master_metadata = master.get("metadata", {})
            db.add(character)
            db.flush()
            for position, entry in enumerate(gallery or []):
                db.add(
                    CharacterGalleryImage(
                        character_id=character.character_id,
                        position=entry.pop("position", position),
                        media_id=entry.pop("media_id", f"media-{position}"),
                        image_url=entry.pop("image_url", f"https://cdn.test/{position}.png"),
                        **entry,
                    )
                )
            db.flush()
            return str(character.character_id)

    return _seed


@pytest.fixture()
def unknown_character_id() -> str:
    return str(uuid.uuid4())
