from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from refsearch.db.session import get_db
from refsearch.services.candidates import SqlCharacterImageSource


def db_session() -> Generator[Session, None, None]:
    yield from get_db()


DbSessionDep = Depends(db_session)


def character_image_source(db: Session = DbSessionDep) -> SqlCharacterImageSource:
    return SqlCharacterImageSource(db)


ImageSourceDep = Depends(character_image_source)
