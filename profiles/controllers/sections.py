"""
Controllers for the profile sections.

A section request names a ``section``, an ``action`` (``fetch`` or
``update``) and, for updates, an ``operation``. The request is parsed once
into a :class:`SectionRequest`; the named section is looked up in
:data:`SECTIONS`, where each entry is either a :class:`SingleSection`
(about, portfolio, skills: fetched and saved whole) or a
:class:`MultiSection` (education, experience, projects, certifications:
listed, added to and deleted from).

When an update does not name an operation, multi-record sections add and
single-valued sections save.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, \
    Optional, Tuple, Union

from werkzeug.exceptions import BadRequest, MethodNotAllowed

from .. import domain, status
from ..services import sections as store
from .util import ResponseData, envelope, store_errors

logger = logging.getLogger(__name__)

MIN_YEAR = 1
MAX_YEAR = 9999


class Section(Enum):
    """The profile sections."""

    ABOUT = 'about'
    EDUCATION = 'education'
    EXPERIENCE = 'experience'
    PORTFOLIO = 'portfolio'
    PROJECTS = 'projects'
    SKILLS = 'skills'
    CERTIFICATIONS = 'certifications'


class Action(Enum):
    FETCH = 'fetch'
    UPDATE = 'update'


class Operation(Enum):
    ADD = 'add'
    DELETE = 'delete'
    SAVE = 'save'


class MissingField(ValueError):
    """A required field is absent from the request."""

    def __init__(self, name: str) -> None:
        super(MissingField, self).__init__(name)
        self.name = name


class InvalidField(ValueError):
    """A field could not be interpreted."""

    def __init__(self, name: str) -> None:
        super(InvalidField, self).__init__(name)
        self.name = name


class SingleSection(NamedTuple):
    """A section holding at most one value per user."""

    label: str
    """Used in response messages."""

    default: Any
    """Returned when the user has not saved this section yet."""

    parse: Callable[[Mapping[str, Any]], Any]
    get: Callable[[str], Any]
    save: Callable[[str, Any], None]
    format: Callable[[Any], dict]


class MultiSection(NamedTuple):
    """A section holding any number of records per user."""

    label: str
    noun: str
    """Used in the message for a delete without a record id."""

    parse: Callable[[Mapping[str, Any]], Any]
    list: Callable[[str], List[Any]]
    add: Callable[[str, Any], str]
    delete: Callable[[str, str], bool]
    format: Callable[[Any], dict]


SectionVariant = Union[SingleSection, MultiSection]


class SectionRequest(NamedTuple):
    """A parsed section request."""

    section: Section
    action: Action
    operation: Optional[Operation] = None
    """``None`` for fetches."""


# Field parsing.

def _text(payload: Mapping[str, Any], name: str) -> str:
    value = payload.get(name)
    if value is None:
        return ''
    return str(value).strip()


def _required(payload: Mapping[str, Any], *names: str) -> None:
    """Raise :class:`MissingField` for the first absent or blank field."""
    for name in names:
        if _text(payload, name) == '':
            raise MissingField(name)


def _year(payload: Mapping[str, Any], name: str) -> Optional[int]:
    """Get a calendar year. Whole-number floats such as ``2020.0`` pass."""
    value = _text(payload, name)
    if not value:
        return None
    try:
        year = int(value)
    except ValueError:
        try:
            number = float(value)
        except ValueError as e:
            raise InvalidField(name) from e
        if not number.is_integer():
            raise InvalidField(name)
        year = int(number)
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidField(name)
    return year


def _flag(payload: Mapping[str, Any], name: str) -> bool:
    value = payload.get(name)
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _keywords(payload: Mapping[str, Any], name: str) -> Tuple[str, ...]:
    """
    Get a list of keywords.

    Accepts a JSON array or a comma-separated string. Entries are trimmed,
    blanks dropped and repeats removed, keeping the first occurrence.
    """
    value = payload.get(name)
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(',')
    elif not isinstance(value, (list, tuple)):
        raise InvalidField(name)
    seen: Dict[str, None] = {}
    for entry in value:
        if entry is None:
            continue
        keyword = str(entry).strip()
        if keyword:
            seen.setdefault(keyword, None)
    return tuple(seen)


def _parse_about(payload: Mapping[str, Any]) -> domain.AboutMe:
    if payload.get('content') is None:
        raise MissingField('content')
    return domain.AboutMe(content=str(payload['content']))


def _parse_portfolio(payload: Mapping[str, Any]) -> domain.Portfolio:
    """Links are stored as given."""
    return domain.Portfolio(**{
        name: '' if payload.get(name) is None else str(payload[name])
        for name in domain.Portfolio._fields
    })


def _parse_skills(payload: Mapping[str, Any]) -> domain.Skills:
    return domain.Skills(**{
        name: _keywords(payload, name) for name in domain.Skills._fields
    })


def _parse_education(payload: Mapping[str, Any]) -> domain.Education:
    _required(payload, 'level', 'school_name', 'board', 'grade',
              'start_year', 'end_year', 'summary')
    return domain.Education(
        level=_text(payload, 'level'),
        school_name=_text(payload, 'school_name'),
        board=_text(payload, 'board'),
        grade=_text(payload, 'grade'),
        start_month=_text(payload, 'start_month'),
        start_year=_year(payload, 'start_year'),
        end_month=_text(payload, 'end_month'),
        end_year=_year(payload, 'end_year'),
        summary=_text(payload, 'summary')
    )


def _parse_experience(payload: Mapping[str, Any]) -> domain.Experience:
    _required(payload, 'job_title', 'company', 'employment_type',
              'location', 'start_year', 'summary')
    currently_working = _flag(payload, 'currently_working')
    return domain.Experience(
        job_title=_text(payload, 'job_title'),
        company=_text(payload, 'company'),
        employment_type=_text(payload, 'employment_type'),
        location=_text(payload, 'location'),
        start_month=_text(payload, 'start_month'),
        start_year=_year(payload, 'start_year'),
        end_month='' if currently_working else _text(payload, 'end_month'),
        end_year=None if currently_working else _year(payload, 'end_year'),
        currently_working=currently_working,
        summary=_text(payload, 'summary')
    )


def _parse_project(payload: Mapping[str, Any]) -> domain.Project:
    _required(payload, 'project_name', 'role', 'project_link', 'summary')
    return domain.Project(
        project_name=_text(payload, 'project_name'),
        role=_text(payload, 'role'),
        project_link=_text(payload, 'project_link'),
        summary=_text(payload, 'summary')
    )


def _parse_certification(payload: Mapping[str, Any]) \
        -> domain.Certification:
    _required(payload, 'name', 'issuing_org', 'credential_id',
              'credential_link', 'issue_year')
    no_expiry = _flag(payload, 'no_expiry')
    return domain.Certification(
        name=_text(payload, 'name'),
        issuing_org=_text(payload, 'issuing_org'),
        credential_id=_text(payload, 'credential_id'),
        credential_link=_text(payload, 'credential_link'),
        issue_year=_year(payload, 'issue_year'),
        expiry_year=None if no_expiry else _year(payload, 'expiry_year'),
        no_expiry=no_expiry
    )


# Formatting.

def _date(month: str, year: Optional[int]) -> str:
    return f'{month}/{year if year is not None else ""}'


def _format_about(about: domain.AboutMe) -> dict:
    updated_at = about.updated_at.isoformat() if about.updated_at else ''
    return {'content': about.content, 'updated_at': updated_at}


def _format_education(education: domain.Education) -> dict:
    data = domain.to_dict(education)
    data['start_date'] = _date(education.start_month, education.start_year)
    data['end_date'] = _date(education.end_month, education.end_year)
    return data


def _format_experience(experience: domain.Experience) -> dict:
    data = domain.to_dict(experience)
    data['start_date'] = _date(experience.start_month, experience.start_year)
    if experience.currently_working:
        data['end_date'] = 'Present'
    else:
        data['end_date'] = _date(experience.end_month, experience.end_year)
    return data


SECTIONS: Dict[Section, SectionVariant] = {
    Section.ABOUT: SingleSection(
        label='About Me',
        default=domain.AboutMe(),
        parse=_parse_about,
        get=store.get_about,
        save=store.save_about,
        format=_format_about
    ),
    Section.EDUCATION: MultiSection(
        label='Education',
        noun='education',
        parse=_parse_education,
        list=store.list_education,
        add=store.add_education,
        delete=store.delete_education,
        format=_format_education
    ),
    Section.EXPERIENCE: MultiSection(
        label='Experience',
        noun='experience',
        parse=_parse_experience,
        list=store.list_experience,
        add=store.add_experience,
        delete=store.delete_experience,
        format=_format_experience
    ),
    Section.PORTFOLIO: SingleSection(
        label='Portfolio',
        default=domain.Portfolio(),
        parse=_parse_portfolio,
        get=store.get_portfolio,
        save=store.save_portfolio,
        format=domain.to_dict
    ),
    Section.PROJECTS: MultiSection(
        label='Project',
        noun='project',
        parse=_parse_project,
        list=store.list_projects,
        add=store.add_project,
        delete=store.delete_project,
        format=domain.to_dict
    ),
    Section.SKILLS: SingleSection(
        label='Skills',
        default=domain.Skills(),
        parse=_parse_skills,
        get=store.get_skills,
        save=store.save_skills,
        format=domain.to_dict
    ),
    Section.CERTIFICATIONS: MultiSection(
        label='Certification',
        noun='certification',
        parse=_parse_certification,
        list=store.list_certifications,
        add=store.add_certification,
        delete=store.delete_certification,
        format=domain.to_dict
    ),
}


def parse_section_request(payload: Mapping[str, Any]) -> SectionRequest:
    """
    Parse the section, action and operation of a request.

    Raises
    ------
    :class:`werkzeug.exceptions.MethodNotAllowed`
        If the action is neither ``fetch`` nor ``update``.
    :class:`werkzeug.exceptions.BadRequest`
        If the section is unknown, or the operation does not apply to it.

    """
    try:
        action = Action(payload.get('action'))
    except ValueError as e:
        raise MethodNotAllowed(description='Method not allowed') from e
    try:
        section = Section(payload.get('section'))
    except ValueError as e:
        raise BadRequest('Invalid section') from e
    if action is Action.FETCH:
        return SectionRequest(section, action)

    variant = SECTIONS[section]
    raw = payload.get('operation')
    if raw is None or raw == '':
        if isinstance(variant, MultiSection):
            return SectionRequest(section, action, Operation.ADD)
        return SectionRequest(section, action, Operation.SAVE)
    try:
        operation = Operation(raw)
    except ValueError as e:
        raise BadRequest('Invalid operation') from e
    if (isinstance(variant, MultiSection) and operation is Operation.SAVE) \
            or (isinstance(variant, SingleSection)
                and operation is not Operation.SAVE):
        raise BadRequest(f'Invalid operation for {section.value}')
    return SectionRequest(section, action, operation)


def fetch_section(user_id: str, variant: SectionVariant) -> Any:
    """Get the formatted value(s) of a section for a user."""
    if isinstance(variant, SingleSection):
        value = variant.get(user_id)
        return variant.format(value if value is not None else variant.default)
    return [variant.format(record) for record in variant.list(user_id)]


def fetch_all_sections(user_id: str) -> Dict[str, Any]:
    """Get every section for a user. Empty sections have default values."""
    return {section.value: fetch_section(user_id, variant)
            for section, variant in SECTIONS.items()}


def _parse(variant: SectionVariant, payload: Mapping[str, Any]) -> Any:
    try:
        return variant.parse(payload)
    except MissingField as e:
        raise BadRequest(f'Missing field: {e.name}') from e
    except InvalidField as e:
        raise BadRequest(f'Invalid field: {e.name}') from e


def handle_section(user_id: str, payload: Mapping[str, Any]) -> ResponseData:
    """
    Handle a section request on behalf of an authenticated user.

    Parameters
    ----------
    user_id : str
        The user who owns the session. Any owner named in ``payload`` is
        ignored.
    payload : dict
        The request body.

    Returns
    -------
    dict
        Response body.
    int
        Status code.
    dict
        Headers to add to the response.

    """
    request = parse_section_request(payload)
    variant = SECTIONS[request.section]
    logger.debug('%s %s for user %s', request.action.value,
                 request.section.value, user_id)

    if request.action is Action.FETCH:
        with store_errors('Profile service unavailable'):
            data = fetch_section(user_id, variant)
        return envelope(data=data), status.HTTP_200_OK, {}

    if isinstance(variant, SingleSection):
        value = _parse(variant, payload)
        with store_errors(f'{variant.label} update failed'):
            variant.save(user_id, value)
        return envelope(f'{variant.label} saved successfully'), \
            status.HTTP_200_OK, {}

    if request.operation is Operation.DELETE:
        record_id = payload.get('id')
        if record_id is None or str(record_id).strip() == '':
            raise BadRequest(f'Missing {variant.noun} ID')
        record_id = str(record_id).strip()
        with store_errors(f'{variant.label} delete failed'):
            deleted = variant.delete(user_id, record_id)
        if deleted:
            message = f'{variant.label} deleted successfully'
        else:
            message = f'{variant.label} not found'
        return envelope(message, {'_id': record_id, 'deleted': deleted}), \
            status.HTTP_200_OK, {}

    record = _parse(variant, payload)
    with store_errors(f'{variant.label} update failed'):
        record_id = variant.add(user_id, record)
    return envelope(f'{variant.label} added successfully',
                    {'_id': record_id}), status.HTTP_200_OK, {}
