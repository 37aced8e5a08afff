from sqlalchemy import Boolean, Column, String, DateTime, func
from core.db import Base

class User(Base):
    __tablename__ = "users"
    email = Column(String, primary_key=True, index=True)
    fullname = Column(String, nullable=False)
    password = Column(String, nullable=False)  # bcrypt hash
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
