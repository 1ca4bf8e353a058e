"""SQLAlchemy models: the store document and the user profile collection."""
from datetime import datetime
from sqlalchemy import Column, String, Boolean, JSON, DateTime

from database import Base


class AppDocument(Base):
    """One JSON document per key; the schedule store lives under a single id as {"data": store}."""
    __tablename__ = "app_data"
    id = Column(String(100), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class UserProfile(Base):
    __tablename__ = "user_profiles"
    id = Column(String(128), primary_key=True)  # auth uid
    email = Column(String(200), index=True)
    username = Column(String(100), nullable=True)
    name = Column(String(200), index=True)
    role = Column(String(20), default="Medico")  # ADM, Coordenador, Medico, Assistente
    linked_doctor_id = Column(String(64), nullable=True)
    custom_claims = Column(JSON, default=dict)  # {"admin": true}
    is_bootstrap_admin = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    updated_by = Column(String(128), nullable=True)
