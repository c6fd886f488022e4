"""
Named counters (invoice numbers)
"""
from sqlalchemy import Column, String, Integer

from shopdesk.db.base import Base


class Sequence(Base):
    """A monotonically increasing counter identified by name"""
    __tablename__ = "sequences"

    name = Column(String(50), primary_key=True)
    value = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<Sequence {self.name}={self.value}>"
