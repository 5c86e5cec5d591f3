from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship
from carenotify.core.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String)
    email = Column(String, unique=True, index=True, nullable=True)
    role = Column(String, default="patient") # patient | doctor | pharmacist | admin
    is_active = Column(Boolean, default=True)

    notifications = relationship("Notification", back_populates="owner", cascade="all, delete-orphan")
    patient = relationship("Patient", back_populates="user", uselist=False)
    doctor = relationship("Doctor", back_populates="user", uselist=False)
