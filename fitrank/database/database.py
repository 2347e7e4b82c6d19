from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Iterable
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload
from sqlalchemy import select, func
from contextlib import asynccontextmanager

from fitrank.config import Config
from fitrank.constants import BPRConstants
from fitrank.database.models import (
    Base, Competition, CompetitionParticipant, CompetitionStatus, Friendship
)
from fitrank.utils.logger import setup_logger


def _to_storage_time(moment: Optional[datetime]) -> Optional[datetime]:
    """Store datetimes as naive UTC"""
    if moment is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def _from_storage_time(moment: Optional[datetime]) -> Optional[datetime]:
    if moment is None:
        return None
    return moment.replace(tzinfo=timezone.utc)


class Database:
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url
        self.engine = None
        self.async_session = None

    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing competition store...")
        Config.validate()

        database_url = self.database_url or Config.get_async_database_url()
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')

        self.engine = create_async_engine(
            database_url,
            echo=Config.DEBUG,
            future=True
        )

        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Competition store initialized successfully")

    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")

    # Competition operations
    async def add_competition(self, competition_id: str, final_rankings: List[Dict[str, Any]],
                              participants: Optional[Iterable[str]] = None,
                              status: CompetitionStatus = CompetitionStatus.COMPLETED,
                              end_date: Optional[datetime] = None,
                              completed_at: Optional[datetime] = None,
                              name: Optional[str] = None) -> Competition:
        """Store a competition with its final rankings and participants"""
        async with self.get_session() as session:
            competition = Competition(
                id=competition_id,
                name=name,
                status=status,
                end_date=_to_storage_time(end_date),
                completed_at=_to_storage_time(completed_at),
                final_rankings=final_rankings
            )
            for user_id in dict.fromkeys(participants or ()):
                competition.participants.append(CompetitionParticipant(user_id=str(user_id)))
            session.add(competition)
            await session.commit()
            self.logger.debug(f"Stored competition {competition_id} with {len(competition.participants)} participants")
            return competition

    async def get_completed_competitions(self, user_id: str,
                                         limit: int = BPRConstants.MAX_HISTORY) -> List[Dict[str, Any]]:
        """
        Get a user's completed competitions as raw records, most recent first

        Records use the stored field names (id, name, status, endDate,
        completedAt, finalRankings, participants) so they can be passed
        straight to CompetitionTransformer.
        """
        ended = func.coalesce(Competition.completed_at, Competition.end_date)
        async with self.get_session() as session:
            result = await session.execute(
                select(Competition)
                .options(selectinload(Competition.participants))
                .join(CompetitionParticipant, CompetitionParticipant.competition_id == Competition.id)
                .where(
                    (CompetitionParticipant.user_id == str(user_id)) &
                    (Competition.status == CompetitionStatus.COMPLETED)
                )
                .order_by(ended.desc(), Competition.id)
                .limit(limit)
            )
            return [self.to_record(competition) for competition in result.scalars().all()]

    @staticmethod
    def to_record(competition: Competition) -> Dict[str, Any]:
        """Convert a Competition row to its raw record shape"""
        return {
            'id': competition.id,
            'name': competition.name,
            'status': competition.status.value,
            'endDate': _from_storage_time(competition.end_date),
            'completedAt': _from_storage_time(competition.completed_at),
            'finalRankings': list(competition.final_rankings or []),
            'participants': [participant.user_id for participant in competition.participants],
        }

    # Friendship operations
    async def add_friendship(self, user_id: str, friend_id: str):
        """Store a friendship in both directions"""
        async with self.get_session() as session:
            for owner, friend in ((user_id, friend_id), (friend_id, user_id)):
                existing = await session.execute(
                    select(Friendship).where(
                        (Friendship.user_id == str(owner)) & (Friendship.friend_id == str(friend))
                    )
                )
                if existing.scalar_one_or_none() is None:
                    session.add(Friendship(user_id=str(owner), friend_id=str(friend)))
            await session.commit()

    async def get_friend_ids(self, user_id: str) -> List[str]:
        """Get a user's friend ids in id order"""
        async with self.get_session() as session:
            result = await session.execute(
                select(Friendship.friend_id)
                .where(Friendship.user_id == str(user_id))
                .order_by(Friendship.friend_id)
            )
            return list(result.scalars().all())
