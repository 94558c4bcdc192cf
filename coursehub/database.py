from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from coursehub.config import settings

SQLALCHEMY_DATABASE_URL = settings.sqlalchemy_url

if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    # one shared connection so an in-memory database survives across threads
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(SQLALCHEMY_DATABASE_URL, echo=settings.DEBUG)

# Create a session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base model
Base = declarative_base()
