from datetime import datetime, timezone
import uuid

from sqlalchemy import Column
from sqlalchemy.ext.declarative import as_declarative
from sqlalchemy.dialects.postgresql import UUID as PG_UUID


def utcnow() -> datetime:
    """Naive UTC timestamp; stored values compare cleanly on every backend."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@as_declarative()
class Base:
    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
