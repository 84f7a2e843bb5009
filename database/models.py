# Database Models for the Gig Marketplace
# Core identity model shared by every marketplace table

from sqlalchemy import Column, String, Integer, DateTime, Text, JSON, Enum, Boolean, Numeric
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.sql import func
import random
import string
import time
import uuid
import enum

Base = declarative_base()

def generate_uuid():
    return str(uuid.uuid4())

def generate_reference(prefix: str) -> str:
    """Human-readable record number like ORD482913075216."""
    timestamp = str(int(time.time() * 1000))[-6:]
    random_part = ''.join(random.choices(string.digits, k=6))
    return f"{prefix}{timestamp}{random_part}"

# Enums
class UserRole(str, enum.Enum):
    CLIENT = "client"
    FREELANCER = "freelancer"
    ADMIN = "admin"


class ExperienceLevel(str, enum.Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    EXPERT = "Expert"


# Models
class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(Enum(UserRole, values_callable=lambda x: [e.value for e in x], name="userrole"), nullable=False)

    # Profile
    profile_picture = Column(String(500))
    bio = Column(Text)
    phone = Column(String(20))
    location = Column(String(100))
    timezone = Column(String(50))

    # Freelancer-specific
    professional_title = Column(String(200))
    skills = Column(JSON)  # ["python", "design"]
    languages = Column(JSON)
    hourly_rate = Column(Numeric(12, 2))
    experience = Column(Enum(ExperienceLevel, values_callable=lambda x: [e.value for e in x], name="experiencelevel"))

    # Account status
    is_verified = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)

    # Statistics (derived)
    total_earnings = Column(Numeric(12, 2), nullable=False, default=0)
    total_orders = Column(Integer, nullable=False, default=0)
    average_rating = Column(Numeric(3, 1), nullable=False, default=0)
    total_reviews = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def is_freelancer(self):
        return self.role == UserRole.FREELANCER

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN
