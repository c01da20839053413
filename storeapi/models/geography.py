"""
Geographic hierarchy models

State > City > Locality. A locality carries the pincode used in delivery
addresses. Parents are referenced by id only.
"""

from sqlalchemy import Column, String, DateTime, Uuid, ForeignKey, UniqueConstraint
import uuid

from .base import Base, utcnow


class State(Base):
    """State model"""

    __tablename__ = "states"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    code = Column(String(2), nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<State(id={self.id}, name={self.name}, code={self.code})>"


class City(Base):
    """City model"""

    __tablename__ = "cities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    state_id = Column(
        Uuid, ForeignKey("states.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (UniqueConstraint("name", "state_id", name="uq_cities_name_state"),)

    def __repr__(self):
        return f"<City(id={self.id}, name={self.name}, state_id={self.state_id})>"


class Locality(Base):
    """Locality model (smallest geographic unit)"""

    __tablename__ = "localities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(150), nullable=False)
    pincode = Column(String(10), nullable=False, index=True)
    city_id = Column(
        Uuid, ForeignKey("cities.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("name", "city_id", name="uq_localities_name_city"),
    )

    def __repr__(self):
        return f"<Locality(id={self.id}, name={self.name}, pincode={self.pincode})>"
