from sqlalchemy import (
    Column, Integer, String, DateTime, JSON, ForeignKey, Enum as SQLEnum, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
from enum import Enum

Base = declarative_base()

class CompetitionStatus(Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"

class Competition(Base):
    __tablename__ = 'competitions'
    
    id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=True)
    status = Column(SQLEnum(CompetitionStatus), default=CompetitionStatus.PENDING, nullable=False, index=True)
    
    # Timing (stored as naive UTC)
    end_date = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    
    # Final standings as written by the completion job, e.g.
    # [{"userId": "abc", "position": 1, "points": 120}, ...]
    final_rankings = Column(JSON, nullable=True)
    
    # Metadata
    created_at = Column(DateTime, default=func.now())
    
    # Relationships
    participants = relationship(
        "CompetitionParticipant", back_populates="competition",
        cascade="all, delete-orphan", order_by="CompetitionParticipant.id"
    )
    
    def __repr__(self):
        return f"<Competition(id='{self.id}', name='{self.name}', status='{self.status}')>"

class CompetitionParticipant(Base):
    __tablename__ = 'competition_participants'
    
    id = Column(Integer, primary_key=True)
    competition_id = Column(String(64), ForeignKey('competitions.id'), nullable=False)
    user_id = Column(String(128), nullable=False, index=True)
    
    # Relationships
    competition = relationship("Competition", back_populates="participants")
    
    __table_args__ = (UniqueConstraint('competition_id', 'user_id'),)
    
    def __repr__(self):
        return f"<CompetitionParticipant(competition='{self.competition_id}', user='{self.user_id}')>"

class Friendship(Base):
    __tablename__ = 'friendships'
    
    id = Column(Integer, primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    friend_id = Column(String(128), nullable=False)
    created_at = Column(DateTime, default=func.now())
    
    __table_args__ = (UniqueConstraint('user_id', 'friend_id'),)
    
    def __repr__(self):
        return f"<Friendship(user='{self.user_id}', friend='{self.friend_id}')>"
