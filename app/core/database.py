from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Generator
import redis
from .config import settings

database_url = settings.get_database_url

if database_url.startswith("sqlite"):
    # SQLite is only used for tests and local runs; sessions cross threads in TestClient
    engine = create_engine(database_url, connect_args={"check_same_thread": False})
else:
    engine = create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,  # Recycle connections after 30 minutes
        pool_pre_ping=True,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Redis setup - mock for testing
if settings.TESTING:
    # Use a simple dict-based mock for Redis in tests
    class RedisMock:
        def __init__(self):
            self.data = {}
            self.lists = {}

        def setex(self, key, time, value):
            self.data[key] = value
            return True

        def get(self, key):
            return self.data.get(key)

        def delete(self, key):
            removed = 0
            if key in self.data:
                del self.data[key]
                removed = 1
            if key in self.lists:
                del self.lists[key]
                removed = 1
            return removed

        def incr(self, key):
            try:
                self.data[key] = str(int(self.data.get(key, 0)) + 1)
            except (TypeError, ValueError):
                self.data[key] = "1"
            return int(self.data[key])

        def rpush(self, key, *values):
            queue = self.lists.setdefault(key, [])
            queue.extend(values)
            return len(queue)

        def lpop(self, key):
            queue = self.lists.get(key)
            if not queue:
                return None
            return queue.pop(0)

        def blpop(self, keys, timeout=0):
            if isinstance(keys, str):
                keys = [keys]
            for key in keys:
                value = self.lpop(key)
                if value is not None:
                    return key, value
            return None

        def llen(self, key):
            return len(self.lists.get(key, []))

        def flushall(self):
            self.data.clear()
            self.lists.clear()
            return True

    redis_client = RedisMock()
else:
    # Real Redis client for production
    redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)

# Database dependency
def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Redis dependency
def get_redis():
    """Get Redis client."""
    return redis_client

# Database initialization
def init_db():
    """Initialize database tables."""
    from .. import models  # noqa: F401  registers every table on Base.metadata

    Base.metadata.create_all(bind=engine)
