from .database import Base, engine


def init_schoolhub() -> None:
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


__all__ = ["init_schoolhub"]
