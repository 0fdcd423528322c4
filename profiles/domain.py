"""Defines the core data structures for the profile service."""

from typing import Any, Optional, NamedTuple, Tuple
from datetime import datetime


class User(NamedTuple):
    """A registered account, as held by the credential store."""

    user_id: str
    """Time-ordered unique identifier (UUID version 7, canonical form)."""

    full_name: str
    email: str
    """E-mail address as entered at registration."""

    created_at: Optional[datetime] = None

    @property
    def name_parts(self) -> Tuple[str, str]:
        """Split :attr:`full_name` into a first name and the rest."""
        parts = self.full_name.split(' ', 1)
        return parts[0], parts[1] if len(parts) > 1 else ''


class ProfileCore(NamedTuple):
    """Personal details kept one-to-one with a :class:`.User`."""

    first_name: str = ''
    last_name: str = ''
    phone: str = ''
    dob: str = ''
    """Date of birth, as provided by the client."""

    designation: str = ''
    gender: str = ''
    country: str = ''
    state: str = ''
    city: str = ''


class AboutMe(NamedTuple):
    """Free-text introduction. At most one per user."""

    content: str = ''
    updated_at: Optional[datetime] = None


class Portfolio(NamedTuple):
    """External links. At most one per user."""

    website_url: str = ''
    linkedin_url: str = ''
    github_url: str = ''
    twitter_url: str = ''


class Skills(NamedTuple):
    """Skill and interest keywords. At most one per user."""

    hard_skills: Tuple[str, ...] = ()
    soft_skills: Tuple[str, ...] = ()
    interests: Tuple[str, ...] = ()


class Education(NamedTuple):
    """One entry in a user's education history."""

    level: str
    school_name: str
    board: str
    grade: str
    start_year: int
    end_year: int
    summary: str
    start_month: str = ''
    end_month: str = ''

    record_id: Optional[str] = None
    """Assigned by the document store when the record is added."""

    created_at: Optional[datetime] = None


class Experience(NamedTuple):
    """One position in a user's work history."""

    job_title: str
    company: str
    employment_type: str
    location: str
    start_year: int
    summary: str
    start_month: str = ''
    end_month: str = ''
    end_year: Optional[int] = None
    currently_working: bool = False
    record_id: Optional[str] = None
    created_at: Optional[datetime] = None


class Project(NamedTuple):
    """A project the user has worked on."""

    project_name: str
    role: str
    project_link: str
    summary: str
    record_id: Optional[str] = None
    created_at: Optional[datetime] = None


class Certification(NamedTuple):
    """A professional certification."""

    name: str
    issuing_org: str
    credential_id: str
    credential_link: str
    issue_year: int
    expiry_year: Optional[int] = None
    """``None`` when the certification does not expire."""

    no_expiry: bool = False
    record_id: Optional[str] = None
    created_at: Optional[datetime] = None


def to_dict(obj: Any) -> dict:
    """
    Generate a JSON-friendly dict from a domain object.

    Record identifiers are exposed as ``_id``, datetimes in ISO 8601 format
    and tuples as lists. Creation timestamps are internal and are dropped.
    """
    data = {}
    for key, value in obj._asdict().items():
        if key == 'created_at':
            continue
        if key == 'record_id':
            key = '_id'
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, tuple):
            value = list(value)
        data[key] = value
    return data
