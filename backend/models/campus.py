"""
Campus model (one kindergarten site in the group)
"""
from sqlalchemy import Column, Integer, String, DateTime, func
from backend.database import Base


class Campus(Base):
    __tablename__ = "campuses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)  # "金星幼儿园总园"
    code = Column(String, unique=True, nullable=False)  # "JX001"
    address = Column(String, nullable=True)
    capacity = Column(Integer, default=100)  # informational only, not used by generation
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
