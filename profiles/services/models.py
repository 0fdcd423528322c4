"""
Database models for the credential store and the profile document store.

The credential store holds a single table, ``users``. The profile document
store holds one table per profile section, plus ``profiles`` for the
personal details shown at the top of a profile. The document store tables
are attached to the ``profiles`` bind, so that they can live in a separate
database.

Every document store table carries the owning ``user_id``. There are no
foreign keys between the two stores.
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text
from flask_sqlalchemy import SQLAlchemy

db: SQLAlchemy = SQLAlchemy()

PROFILES_BIND = 'profiles'


class DBUser(db.Model):  # type: ignore
    """
    Registered account.

    +------------------+--------------+------+-----+
    | Field            | Type         | Null | Key |
    +------------------+--------------+------+-----+
    | id               | varchar(36)  | NO   | PRI |
    | full_name        | varchar(255) | NO   |     |
    | email            | varchar(255) | NO   |     |
    | email_normalized | varchar(255) | NO   | UNI |
    | password_hash    | varchar(255) | NO   |     |
    | created_at       | datetime     | NO   |     |
    +------------------+--------------+------+-----+
    """

    __tablename__ = 'users'

    id = Column(String(36), primary_key=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    email_normalized = Column(String(255), nullable=False, unique=True,
                              index=True)
    """Lower-cased address, used for lookups and the uniqueness check."""
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False)


class _SingleRecord:
    """Columns shared by tables with at most one row per user."""

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)


class _MultiRecord:
    """Columns shared by tables with any number of rows per user."""

    id = Column(Integer, primary_key=True, autoincrement=True)
    record_id = Column(String(32), nullable=False, unique=True)
    """Public identifier of the record, used for targeted deletes."""
    user_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, nullable=False)


class DBProfile(_SingleRecord, db.Model):  # type: ignore
    """Personal details. Created empty at registration."""

    __bind_key__ = PROFILES_BIND
    __tablename__ = 'profiles'

    first_name = Column(String(255), nullable=False, default='')
    last_name = Column(String(255), nullable=False, default='')
    phone = Column(String(50), nullable=False, default='')
    dob = Column(String(50), nullable=False, default='')
    designation = Column(String(255), nullable=False, default='')
    gender = Column(String(50), nullable=False, default='')
    country = Column(String(255), nullable=False, default='')
    state = Column(String(255), nullable=False, default='')
    city = Column(String(255), nullable=False, default='')


class DBAboutMe(_SingleRecord, db.Model):  # type: ignore
    """About Me section."""

    __bind_key__ = PROFILES_BIND
    __tablename__ = 'about_me'

    content = Column(Text, nullable=False, default='')


class DBPortfolio(_SingleRecord, db.Model):  # type: ignore
    """Portfolio section."""

    __bind_key__ = PROFILES_BIND
    __tablename__ = 'portfolio'

    website_url = Column(String(1024), nullable=False, default='')
    linkedin_url = Column(String(1024), nullable=False, default='')
    github_url = Column(String(1024), nullable=False, default='')
    twitter_url = Column(String(1024), nullable=False, default='')


class DBSkills(_SingleRecord, db.Model):  # type: ignore
    """Skills section. Each column holds a JSON list of strings."""

    __bind_key__ = PROFILES_BIND
    __tablename__ = 'skills'

    hard_skills = Column(JSON, nullable=False, default=list)
    soft_skills = Column(JSON, nullable=False, default=list)
    interests = Column(JSON, nullable=False, default=list)


class DBEducation(_MultiRecord, db.Model):  # type: ignore
    """Education section."""

    __bind_key__ = PROFILES_BIND
    __tablename__ = 'education'

    level = Column(String(255), nullable=False)
    school_name = Column(String(255), nullable=False)
    board = Column(String(255), nullable=False)
    grade = Column(String(50), nullable=False)
    start_month = Column(String(20), nullable=False, default='')
    start_year = Column(Integer, nullable=False)
    end_month = Column(String(20), nullable=False, default='')
    end_year = Column(Integer, nullable=False)
    summary = Column(Text, nullable=False)


class DBExperience(_MultiRecord, db.Model):  # type: ignore
    """Experience section."""

    __bind_key__ = PROFILES_BIND
    __tablename__ = 'experience'

    job_title = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    employment_type = Column(String(100), nullable=False)
    location = Column(String(255), nullable=False)
    start_month = Column(String(20), nullable=False, default='')
    start_year = Column(Integer, nullable=False)
    end_month = Column(String(20), nullable=False, default='')
    end_year = Column(Integer, nullable=True)
    currently_working = Column(Boolean, nullable=False, default=False)
    summary = Column(Text, nullable=False)


class DBProject(_MultiRecord, db.Model):  # type: ignore
    """Projects section."""

    __bind_key__ = PROFILES_BIND
    __tablename__ = 'projects'

    project_name = Column(String(255), nullable=False)
    role = Column(String(255), nullable=False)
    project_link = Column(String(1024), nullable=False)
    summary = Column(Text, nullable=False)


class DBCertification(_MultiRecord, db.Model):  # type: ignore
    """Certifications section."""

    __bind_key__ = PROFILES_BIND
    __tablename__ = 'certifications'

    name = Column(String(255), nullable=False)
    issuing_org = Column(String(255), nullable=False)
    credential_id = Column(String(255), nullable=False)
    credential_link = Column(String(1024), nullable=False)
    issue_year = Column(Integer, nullable=False)
    expiry_year = Column(Integer, nullable=True)
    no_expiry = Column(Boolean, nullable=False, default=False)
