"""
Normalization of raw competition records into CompetitionResult objects.

Stored competitions have drifted over time: ranking entries identify users as
userId, uid or id, positions appear as position, rank or place, and the end
time may be completedAt, endDate or endedAt. Each field is resolved through a
fixed precedence list so the same record always yields the same result.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from fitrank.constants import TransformConstants
from fitrank.data_models.competition import CompetitionResult
from fitrank.utils.exceptions import InvalidRecordError

logger = logging.getLogger(__name__)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Convert a stored timestamp into an aware datetime.

    Supported values:
    - datetime (naive values are treated as UTC)
    - ISO-8601 strings (e.g., 2024-05-01T18:30:00Z)
    - epoch milliseconds as int or float
    - mappings with seconds/_seconds and optional nanoseconds (exported Firestore timestamps)
    - objects with a to_datetime() or toDate() method

    Returns:
        Aware datetime, or None if the value can't be interpreted
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        if isinstance(value, datetime):
            moment = value
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            if text.endswith('Z'):
                text = text[:-1] + '+00:00'
            moment = datetime.fromisoformat(text)
        elif isinstance(value, (int, float)):
            moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        elif isinstance(value, Mapping):
            seconds = value.get('seconds', value.get('_seconds'))
            if seconds is None:
                return None
            nanoseconds = value.get('nanoseconds', value.get('_nanoseconds', 0)) or 0
            moment = datetime.fromtimestamp(seconds + nanoseconds / 1e9, tz=timezone.utc)
        else:
            moment = _convert_timestamp_object(value)
            if moment is None:
                return None
    except (ValueError, TypeError, OverflowError, OSError):
        return None

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _convert_timestamp_object(value: Any) -> Optional[datetime]:
    """Call a timestamp object's own conversion method; a failing one means unresolvable."""
    for method_name in TransformConstants.TIMESTAMP_METHODS:
        convert = getattr(value, method_name, None)
        if not callable(convert):
            continue
        try:
            moment = convert()
        except Exception as e:
            logger.debug(f"{type(value).__name__}.{method_name}() failed: {e}")
            return None
        return moment if isinstance(moment, datetime) else None
    return None


def parse_position(value: Any) -> Optional[int]:
    """Positive integer position, or None (0, negatives and junk don't resolve)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    elif isinstance(value, str):
        if not value.strip().isdecimal():
            return None
        value = int(value.strip())
    elif not isinstance(value, int):
        return None
    return value if value >= 1 else None


def _first_present(record: Mapping, fields: Sequence[str]) -> Any:
    for field in fields:
        value = record.get(field)
        if value is not None and value != '':
            return value
    return None


class CompetitionTransformer:
    """Adapter from stored competition records to engine input."""

    @staticmethod
    def get_rankings(record: Mapping) -> List[Any]:
        """Raw ranking list of a record, from finalRankings or rankings."""
        rankings = _first_present(record, TransformConstants.RANKINGS_FIELDS)
        if not isinstance(rankings, (list, tuple)):
            return []
        return list(rankings)

    @staticmethod
    def find_user_entry(rankings: Iterable[Any], user_id: str) -> Optional[Mapping]:
        """First ranking entry whose userId, uid or id matches the user."""
        target = str(user_id)
        for entry in rankings:
            if not isinstance(entry, Mapping):
                continue
            for field in TransformConstants.USER_ID_FIELDS:
                value = entry.get(field)
                if value is not None and str(value) == target:
                    return entry
        return None

    @staticmethod
    def resolve_position(entry: Mapping) -> Optional[int]:
        """First usable value of position, rank, place."""
        for field in TransformConstants.POSITION_FIELDS:
            position = parse_position(entry.get(field))
            if position is not None:
                return position
        return None

    @staticmethod
    def resolve_ended_at(record: Mapping) -> Optional[datetime]:
        """First parseable value of completedAt, endDate, endedAt."""
        for field in TransformConstants.ENDED_AT_FIELDS:
            moment = parse_timestamp(record.get(field))
            if moment is not None:
                return moment
        return None

    @staticmethod
    def resolve_field_size(record: Mapping, rankings: Sequence[Any]) -> int:
        """Raw rankings length, else participants length, else the fallback size."""
        if rankings:
            return len(rankings)
        participants = record.get('participants')
        if isinstance(participants, (list, tuple)) and participants:
            return len(participants)
        return TransformConstants.FALLBACK_FIELD_SIZE

    @staticmethod
    def resolve_points(entry: Mapping) -> float:
        """Points from points or score, 0 when absent."""
        for field in TransformConstants.POINTS_FIELDS:
            value = entry.get(field)
            if isinstance(value, (int, float)) and not isinstance(value, bool) and value:
                return value
        return 0

    @staticmethod
    def transform_record(record: Any, user_id: str, now: datetime,
                         strict: bool = False) -> Optional[CompetitionResult]:
        """
        Convert one stored record for one user.

        Args:
            record: Raw competition record
            user_id: User whose result should be extracted
            now: Fallback end time when the record has none
            strict: Raise InvalidRecordError instead of dropping unusable results

        Returns:
            CompetitionResult, or None when the record is dropped
        """
        if not isinstance(record, Mapping):
            logger.debug(f"Skipping non-mapping competition record: {type(record).__name__}")
            return None

        competition_id = str(
            _first_present(record, TransformConstants.COMPETITION_ID_FIELDS)
            or TransformConstants.UNKNOWN_COMPETITION_ID
        )

        rankings = CompetitionTransformer.get_rankings(record)
        entry = CompetitionTransformer.find_user_entry(rankings, user_id)
        if entry is None:
            # User didn't finish this competition or isn't in its rankings
            logger.debug(f"No ranking entry for user {user_id} in competition {competition_id}")
            return None

        position = CompetitionTransformer.resolve_position(entry)
        if position is None:
            if strict:
                raise InvalidRecordError(competition_id, "no resolvable position")
            logger.debug(f"No position found for user {user_id} in competition {competition_id}")
            return None

        ended_at = CompetitionTransformer.resolve_ended_at(record)
        if ended_at is None:
            logger.warning(f"Competition {competition_id} has no end time, using current time")
            ended_at = now

        result = CompetitionResult(
            competition_id=competition_id,
            finish_rank=position,
            field_size=CompetitionTransformer.resolve_field_size(record, rankings),
            ended_at=ended_at,
            points=CompetitionTransformer.resolve_points(entry)
        )
        if strict and not result.is_valid():
            raise InvalidRecordError(
                competition_id,
                f"finish rank {result.finish_rank} outside field of {result.field_size}"
            )
        return result

    @staticmethod
    def transform_competition_data(raw_records: Optional[Iterable[Any]], user_id: str,
                                   now: Optional[datetime] = None,
                                   strict: bool = False) -> List[CompetitionResult]:
        """
        Convert stored competition records into one user's results.

        Records without an entry for the user, or without a usable position,
        are dropped. Nothing is raised unless strict is set.

        Args:
            raw_records: Stored competition records (mappings)
            user_id: User whose results should be extracted
            now: Fallback end time (defaults to current UTC time)
            strict: Raise InvalidRecordError for the user's unusable results

        Returns:
            New list of CompetitionResult in input order
        """
        if now is None:
            now = datetime.now(timezone.utc)

        results = []
        for record in raw_records or ():
            result = CompetitionTransformer.transform_record(record, user_id, now, strict)
            if result is not None:
                results.append(result)

        logger.debug(f"Transformed {len(results)} competitions for user {user_id}")
        return results
