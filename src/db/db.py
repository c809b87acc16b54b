from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base


def init_db(database_url: str, echo: bool = False) -> Session:
    if database_url.startswith("sqlite:///") and database_url != "sqlite:///:memory:":
        Path(database_url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)

    engine: Engine = create_engine(database_url, echo=echo)

    Base.metadata.create_all(engine)
    return sessionmaker(engine)()
