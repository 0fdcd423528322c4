"""
Provides access to the profile document store.

Each profile section lives in its own table. Every function in this module
takes the id of the owning user as its first argument, and every query it
issues is filtered on that id; there is no way to read, update or delete
a record without naming its owner.

Single-valued sections (about, portfolio, skills) and the personal details
are upserted by user id. Multi-record sections (education, experience,
projects, certifications) are appended to, and deleted from, by record id.
"""

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.session import Session

from .. import domain
from . import util
from .exceptions import OperationFailed
from .models import DBAboutMe, DBCertification, DBEducation, DBExperience, \
    DBPortfolio, DBProfile, DBProject, DBSkills

logger = logging.getLogger(__name__)

T = TypeVar('T')

_INTERNAL = ('record_id', 'created_at', 'updated_at')


def _to_domain(domain_type: Type[T]) -> Callable[[Any], T]:
    """Generate a converter from a database row to ``domain_type``."""
    def convert(row: Any) -> T:
        values = {}
        for field in domain_type._fields:   # type: ignore
            value = getattr(row, field)
            if isinstance(value, list):
                value = tuple(value)
            values[field] = value
        return domain_type(**values)  # type: ignore
    return convert


def _to_values(obj: Any) -> dict:
    """Get the column values for a domain object."""
    values = {}
    for field, value in obj._asdict().items():
        if field in _INTERNAL:
            continue
        if isinstance(value, tuple):
            value = list(value)
        values[field] = value
    return values


def _find(session: Session, model: Any, user_id: str) -> Optional[Any]:
    return session.query(model).filter(model.user_id == user_id).first()


def _load_one(model: Any, user_id: str,
              convert: Callable[[Any], T]) -> Optional[T]:
    with util.transaction() as session:
        row = _find(session, model, user_id)
        return convert(row) if row is not None else None


def _apply(row: Any, values: dict, timestamp: datetime) -> None:
    for field, value in values.items():
        setattr(row, field, value)
    row.updated_at = timestamp


def _upsert(model: Any, user_id: str, values: dict) -> None:
    """
    Insert or replace the single row that ``user_id`` has in ``model``.

    If another request inserts the row between our read and our insert, the
    insert violates the unique user id; the values are then written over the
    row that the other request created, so the last save wins.
    """
    timestamp = util.now()
    try:
        with util.transaction() as session:
            row = _find(session, model, user_id)
            if row is None:
                row = model(user_id=user_id, created_at=timestamp)
                session.add(row)
            _apply(row, values, timestamp)
    except OperationFailed as e:
        if not isinstance(e.__cause__, IntegrityError):
            raise
        logger.debug('Lost race to create %s for %s; updating',
                     model.__tablename__, user_id)
        with util.transaction() as session:
            row = _find(session, model, user_id)
            if row is None:
                raise OperationFailed('Row disappeared during upsert') from e
            _apply(row, values, timestamp)


def _list(model: Any, user_id: str, convert: Callable[[Any], T]) -> List[T]:
    with util.transaction() as session:
        rows = (
            session.query(model)
            .filter(model.user_id == user_id)
            .order_by(model.created_at.desc(), model.id.desc())
            .all()
        )
        return [convert(row) for row in rows]


def _insert(model: Any, user_id: str, values: dict) -> str:
    record_id = util.record_id()
    timestamp = util.now()
    with util.transaction() as session:
        session.add(model(record_id=record_id, user_id=user_id,
                          created_at=timestamp, updated_at=timestamp,
                          **values))
    logger.debug('Added %s record %s', model.__tablename__, record_id)
    return record_id


def _delete(model: Any, user_id: str, record_id: str) -> bool:
    with util.transaction() as session:
        count = (
            session.query(model)
            .filter(model.record_id == record_id, model.user_id == user_id)
            .delete(synchronize_session=False)
        )
    logger.debug('Deleted %i %s record(s)', count, model.__tablename__)
    return bool(count)


# Personal details.

def create_placeholder(user_id: str) -> None:
    """Create empty personal details for a newly registered user."""
    timestamp = util.now()
    with util.transaction() as session:
        session.add(DBProfile(user_id=user_id, created_at=timestamp,
                              updated_at=timestamp,
                              **_to_values(domain.ProfileCore())))


def get_profile(user_id: str) -> Optional[domain.ProfileCore]:
    """Get a user's personal details, if any have been stored."""
    return _load_one(DBProfile, user_id, _to_domain(domain.ProfileCore))


def save_profile(user_id: str, profile: domain.ProfileCore) -> None:
    """Replace a user's personal details, creating them if necessary."""
    _upsert(DBProfile, user_id, _to_values(profile))


# Single-valued sections.

def get_about(user_id: str) -> Optional[domain.AboutMe]:
    """Get a user's About Me section."""
    return _load_one(DBAboutMe, user_id, _to_domain(domain.AboutMe))


def save_about(user_id: str, about: domain.AboutMe) -> None:
    """Replace a user's About Me section."""
    _upsert(DBAboutMe, user_id, _to_values(about))


def get_portfolio(user_id: str) -> Optional[domain.Portfolio]:
    """Get a user's portfolio links."""
    return _load_one(DBPortfolio, user_id, _to_domain(domain.Portfolio))


def save_portfolio(user_id: str, portfolio: domain.Portfolio) -> None:
    """Replace a user's portfolio links."""
    _upsert(DBPortfolio, user_id, _to_values(portfolio))


def get_skills(user_id: str) -> Optional[domain.Skills]:
    """Get a user's skills and interests."""
    return _load_one(DBSkills, user_id, _to_domain(domain.Skills))


def save_skills(user_id: str, skills: domain.Skills) -> None:
    """Replace a user's skills and interests."""
    _upsert(DBSkills, user_id, _to_values(skills))


# Multi-record sections. Lists are ordered newest first.

def list_education(user_id: str) -> List[domain.Education]:
    """Get a user's education records."""
    return _list(DBEducation, user_id, _to_domain(domain.Education))


def add_education(user_id: str, education: domain.Education) -> str:
    """Add an education record; returns its record id."""
    return _insert(DBEducation, user_id, _to_values(education))


def delete_education(user_id: str, record_id: str) -> bool:
    """Delete an education record. Returns ``False`` if none matched."""
    return _delete(DBEducation, user_id, record_id)


def list_experience(user_id: str) -> List[domain.Experience]:
    """Get a user's work history."""
    return _list(DBExperience, user_id, _to_domain(domain.Experience))


def add_experience(user_id: str, experience: domain.Experience) -> str:
    """Add a position to a user's work history; returns its record id."""
    return _insert(DBExperience, user_id, _to_values(experience))


def delete_experience(user_id: str, record_id: str) -> bool:
    """Delete a position. Returns ``False`` if none matched."""
    return _delete(DBExperience, user_id, record_id)


def list_projects(user_id: str) -> List[domain.Project]:
    """Get a user's projects."""
    return _list(DBProject, user_id, _to_domain(domain.Project))


def add_project(user_id: str, project: domain.Project) -> str:
    """Add a project; returns its record id."""
    return _insert(DBProject, user_id, _to_values(project))


def delete_project(user_id: str, record_id: str) -> bool:
    """Delete a project. Returns ``False`` if none matched."""
    return _delete(DBProject, user_id, record_id)


def list_certifications(user_id: str) -> List[domain.Certification]:
    """Get a user's certifications."""
    return _list(DBCertification, user_id, _to_domain(domain.Certification))


def add_certification(user_id: str,
                      certification: domain.Certification) -> str:
    """Add a certification; returns its record id."""
    return _insert(DBCertification, user_id, _to_values(certification))


def delete_certification(user_id: str, record_id: str) -> bool:
    """Delete a certification. Returns ``False`` if none matched."""
    return _delete(DBCertification, user_id, record_id)
