"""
Input contracts for every write endpoint and for the work-log search.

Each ``validate_*`` function takes a plain mapping (JSON body, form data or
query args, see ``utils.helpers.request_payload``) and returns a typed
object, or raises ``ValidationError`` whose ``details`` maps the offending
input field (camelCase, as the client sent it) to a message.

Nothing here touches the database: referential checks (project exists,
user exists) happen in the services.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation

from email_validator import EmailNotValidError, validate_email

from workhours.core.exceptions import ValidationError
from workhours.models.team import TEAM_ROLES
from workhours.models.user import ROLES, USER_STATUSES
from workhours.utils.helpers import is_uuid, parse_csv, parse_iso_date

HOURS_PATTERN = re.compile(r"^\d+(\.\d{1,2})?$")
MAX_HOURS = Decimal("168")
MAX_DETAILS_LENGTH = 1000
MAX_NAME_LENGTH = 255
MAX_SEARCH_TEXT_LENGTH = 500
MAX_PAGE_LIMIT = 100
DEFAULT_PAGE_LIMIT = 20
MAX_BATCH_SIZE = 100
MAX_EXPORT_DAYS = 31
MIN_PASSWORD_LENGTH = 8

SCOPES = ("own", "team", "all")
EXPORT_FORMATS = ("csv", "xlsx")

_WORK_LOG_FIELDS = {
    "date": "date",
    "hours": "hours",
    "projectId": "project_id",
    "categoryId": "category_id",
    "details": "details",
}


# ── Field parsers ─────────────────────────────────────────────────────────────
# Each returns the cleaned value or records a message in ``errors``.


def _hours(value, errors: dict, key: str = "hours"):
    if isinstance(value, bool) or value is None or value == "":
        errors[key] = "Hours is required"
        return None
    if isinstance(value, (int, float)):
        value = format(Decimal(str(value)).normalize(), "f")
    value = str(value).strip()
    if not HOURS_PATTERN.match(value):
        errors[key] = "Hours must be a number with at most 2 decimal places"
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        errors[key] = "Hours must be a number with at most 2 decimal places"
        return None
    if amount <= 0:
        errors[key] = "Hours must be greater than 0"
        return None
    if amount > MAX_HOURS:
        errors[key] = f"Hours cannot exceed {MAX_HOURS}"
        return None
    # "007.50" -> "7.50"; fits the hours column
    return format(amount, "f")


def _date(value, errors: dict, key: str, required: bool = True):
    if value in (None, ""):
        if required:
            errors[key] = "Date is required"
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        errors[key] = "Date must be a valid YYYY-MM-DD date"
        return None


def _uuid(value, errors: dict, key: str, required: bool = True):
    if value in (None, ""):
        if required:
            errors[key] = f"{key} is required"
        return None
    if not is_uuid(value):
        errors[key] = f"{key} must be a valid UUID"
        return None
    return value


def _uuid_list(value, errors: dict, key: str) -> list[str]:
    if isinstance(value, (list, tuple)):
        ids = [str(v).strip() for v in value if str(v).strip()]
    else:
        ids = parse_csv(value)
    bad = [v for v in ids if not is_uuid(v)]
    if bad:
        errors[key] = f"{key} must contain valid UUIDs"
        return []
    # Preserve order, drop duplicates
    return list(dict.fromkeys(ids))


def _text(value, errors: dict, key: str, max_length: int, required: bool = False):
    if value is None:
        if required:
            errors[key] = f"{key} is required"
        return None
    if not isinstance(value, str):
        errors[key] = f"{key} must be a string"
        return None
    value = value.strip()
    if required and not value:
        errors[key] = f"{key} is required"
        return None
    if len(value) > max_length:
        errors[key] = f"{key} must be at most {max_length} characters"
        return None
    return value


def _bool(value, errors: dict, key: str):
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "1", "on", "yes"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "0", "off", "no"):
        return False
    errors[key] = f"{key} must be a boolean"
    return None


def _int(value, errors: dict, key: str, minimum: int | None = None, maximum: int | None = None):
    if isinstance(value, bool):
        errors[key] = f"{key} must be an integer"
        return None
    try:
        number = int(str(value).strip()) if not isinstance(value, int) else value
    except (TypeError, ValueError):
        errors[key] = f"{key} must be an integer"
        return None
    if minimum is not None and number < minimum:
        errors[key] = f"{key} must be at least {minimum}"
        return None
    if maximum is not None and number > maximum:
        errors[key] = f"{key} must be at most {maximum}"
        return None
    return number


def _choice(value, errors: dict, key: str, choices, default=None):
    if value in (None, ""):
        return default
    if value not in choices:
        errors[key] = f"{key} must be one of: {', '.join(choices)}"
        return None
    return value


def _raise_if(errors: dict, message: str = "Validation failed"):
    if errors:
        raise ValidationError(message, details=errors)


def _require_mapping(data) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


# ── Work logs ─────────────────────────────────────────────────────────────────


@dataclass
class WorkLogInput:
    date: date
    hours: str
    project_id: str
    category_id: str
    details: str | None = None


@dataclass
class WorkLogUpdate:
    """Partial update; only the keys present in ``changes`` are applied."""

    changes: dict = field(default_factory=dict)

    @property
    def project_id(self):
        return self.changes.get("project_id")

    @property
    def category_id(self):
        return self.changes.get("category_id")


def validate_work_log(data) -> WorkLogInput:
    data = _require_mapping(data)
    errors: dict[str, str] = {}
    parsed = WorkLogInput(
        date=_date(data.get("date"), errors, "date"),
        hours=_hours(data.get("hours"), errors),
        project_id=_uuid(data.get("projectId"), errors, "projectId"),
        category_id=_uuid(data.get("categoryId"), errors, "categoryId"),
        details=_text(data.get("details"), errors, "details", MAX_DETAILS_LENGTH),
    )
    _raise_if(errors)
    return parsed


def validate_work_log_update(data, prefix: str = "") -> WorkLogUpdate:
    data = _require_mapping(data)
    errors: dict[str, str] = {}
    changes: dict = {}

    for key, attr in _WORK_LOG_FIELDS.items():
        if key not in data:
            continue
        value = data[key]
        if key == "date":
            changes[attr] = _date(value, errors, prefix + key)
        elif key == "hours":
            changes[attr] = _hours(value, errors, prefix + key)
        elif key in ("projectId", "categoryId"):
            changes[attr] = _uuid(value, errors, prefix + key)
        else:
            changes[attr] = _text(value, errors, prefix + key, MAX_DETAILS_LENGTH) or None

    if not changes and not errors:
        errors[prefix + "data" if prefix else "body"] = "At least one field must be provided"
    _raise_if(errors)
    return WorkLogUpdate(changes=changes)


@dataclass
class BatchEntry:
    id: str
    update: WorkLogUpdate


def validate_batch_update(data) -> list[BatchEntry]:
    """Validate every entry; one bad entry rejects the whole batch.

    Accepts either a bare list of ``{id, data}`` or ``{"updates": [...]}``.
    """
    if isinstance(data, dict) and "updates" in data:
        data = data["updates"]
    if not isinstance(data, list) or not data:
        raise ValidationError("Request body must be a non-empty array of {id, data}")
    if len(data) > MAX_BATCH_SIZE:
        raise ValidationError(f"A batch may contain at most {MAX_BATCH_SIZE} updates")

    errors: dict[str, str] = {}
    entries: list[BatchEntry] = []
    seen: set[str] = set()
    for i, item in enumerate(data):
        prefix = f"[{i}]."
        if not isinstance(item, dict):
            errors[f"[{i}]"] = "Each update must be an object with id and data"
            continue
        entry_id = _uuid(item.get("id"), errors, prefix + "id")
        if entry_id in seen:
            errors[prefix + "id"] = "Duplicate id in batch"
        elif entry_id:
            seen.add(entry_id)
        payload = item.get("data")
        if not isinstance(payload, dict):
            errors[prefix + "data"] = "data must be an object"
            continue
        try:
            update = validate_work_log_update(payload, prefix=prefix)
        except ValidationError as exc:
            errors.update(exc.details or {})
            continue
        if entry_id:
            entries.append(BatchEntry(id=entry_id, update=update))

    _raise_if(errors, "Invalid request data")
    return entries


@dataclass
class WorkLogSearch:
    page: int = 1
    limit: int = DEFAULT_PAGE_LIMIT
    start_date: date | None = None
    end_date: date | None = None
    project_ids: list[str] = field(default_factory=list)
    category_ids: list[str] = field(default_factory=list)
    user_id: str | None = None
    search_text: str | None = None
    scope: str = "own"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _date_range(start, end, errors: dict, start_key: str, end_key: str):
    if start and end and start > end:
        errors[start_key] = f"{start_key} must be on or before {end_key}"


def validate_work_log_search(args) -> WorkLogSearch:
    """Parse list query params. Multi-value ids take precedence over single ids."""
    errors: dict[str, str] = {}
    search = WorkLogSearch()

    if args.get("page") not in (None, ""):
        search.page = _int(args.get("page"), errors, "page", minimum=1)
    if args.get("limit") not in (None, ""):
        search.limit = _int(args.get("limit"), errors, "limit", minimum=1, maximum=MAX_PAGE_LIMIT)

    search.start_date = _date(args.get("startDate"), errors, "startDate", required=False)
    search.end_date = _date(args.get("endDate"), errors, "endDate", required=False)
    _date_range(search.start_date, search.end_date, errors, "startDate", "endDate")

    if args.get("projectIds"):
        search.project_ids = _uuid_list(args.get("projectIds"), errors, "projectIds")
    elif args.get("projectId"):
        single = _uuid(args.get("projectId"), errors, "projectId")
        search.project_ids = [single] if single else []

    if args.get("categoryIds"):
        search.category_ids = _uuid_list(args.get("categoryIds"), errors, "categoryIds")
    elif args.get("categoryId"):
        single = _uuid(args.get("categoryId"), errors, "categoryId")
        search.category_ids = [single] if single else []

    search.user_id = _uuid(args.get("userId"), errors, "userId", required=False)
    text = _text(args.get("searchText"), errors, "searchText", MAX_SEARCH_TEXT_LENGTH)
    search.search_text = text or None
    search.scope = _choice(args.get("scope"), errors, "scope", SCOPES, default="own")

    _raise_if(errors, "Invalid query parameters")
    return search


# ── Projects / categories / teams ─────────────────────────────────────────────


@dataclass
class CatalogInput:
    """Shared shape for projects, work categories and teams.

    On updates only the attributes listed in ``fields_set`` are applied.
    """

    name: str | None = None
    description: str | None = None
    is_active: bool | None = None
    display_order: int | None = None
    fields_set: frozenset = frozenset()

    def changes(self) -> dict:
        return {attr: getattr(self, attr) for attr in self.fields_set}


def validate_catalog(data, *, partial: bool = False, with_display_order: bool = False) -> CatalogInput:
    data = _require_mapping(data)
    errors: dict[str, str] = {}
    parsed = CatalogInput()
    fields_set = set()

    if "name" in data or not partial:
        parsed.name = _text(data.get("name"), errors, "name", MAX_NAME_LENGTH, required=True)
        fields_set.add("name")
    if "description" in data:
        parsed.description = _text(data.get("description"), errors, "description", 10000) or None
        fields_set.add("description")
    if "isActive" in data:
        parsed.is_active = _bool(data.get("isActive"), errors, "isActive")
        fields_set.add("is_active")
    elif not partial:
        parsed.is_active = True
        fields_set.add("is_active")
    if with_display_order:
        if "displayOrder" in data:
            parsed.display_order = _int(data.get("displayOrder"), errors, "displayOrder", minimum=0)
            fields_set.add("display_order")
        elif not partial:
            parsed.display_order = 0
            fields_set.add("display_order")

    if partial and not fields_set and not errors:
        errors["body"] = "At least one field must be provided"
    _raise_if(errors)
    parsed.fields_set = frozenset(fields_set)
    return parsed


@dataclass
class TeamMemberInput:
    user_id: str
    role: str = "member"


def validate_team_member(data) -> TeamMemberInput:
    data = _require_mapping(data)
    errors: dict[str, str] = {}
    user_id = _uuid(data.get("userId"), errors, "userId")
    role = _choice(data.get("role"), errors, "role", TEAM_ROLES, default="member")
    _raise_if(errors)
    return TeamMemberInput(user_id=user_id, role=role)


# ── Users / passwords ─────────────────────────────────────────────────────────


def normalize_email(value, errors: dict, key: str = "email"):
    if not isinstance(value, str) or not value.strip():
        errors[key] = "Email is required"
        return None
    try:
        return validate_email(value.strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError as exc:
        errors[key] = str(exc)
        return None


@dataclass
class UserInput:
    name: str
    email: str
    role: str = "user"
    send_email: bool = True


def validate_user(data) -> UserInput:
    data = _require_mapping(data)
    errors: dict[str, str] = {}
    name = _text(data.get("name"), errors, "name", MAX_NAME_LENGTH, required=True)
    email = normalize_email(data.get("email"), errors)
    role = _choice(data.get("role"), errors, "role", ROLES, default="user")
    send_email = True
    if "sendEmail" in data:
        send_email = _bool(data.get("sendEmail"), errors, "sendEmail")
    _raise_if(errors)
    return UserInput(name=name, email=email, role=role, send_email=send_email)


def validate_user_update(data) -> dict:
    """Admin-side user update: name, role, status. Returns model attr -> value."""
    data = _require_mapping(data)
    errors: dict[str, str] = {}
    changes: dict = {}
    if "name" in data:
        changes["name"] = _text(data.get("name"), errors, "name", MAX_NAME_LENGTH, required=True)
    if "role" in data:
        changes["role"] = _choice(data.get("role"), errors, "role", ROLES)
    if "status" in data:
        changes["status"] = _choice(data.get("status"), errors, "status", USER_STATUSES)
    if not changes and not errors:
        errors["body"] = "At least one field must be provided"
    _raise_if(errors)
    return changes


@dataclass
class ChangePasswordInput:
    current_password: str
    new_password: str


def validate_change_password(data) -> ChangePasswordInput:
    data = _require_mapping(data)
    errors: dict[str, str] = {}
    current = data.get("currentPassword")
    new = data.get("newPassword")
    if not isinstance(current, str) or not current:
        errors["currentPassword"] = "Current password is required"
    if not isinstance(new, str) or len(new) < MIN_PASSWORD_LENGTH:
        errors["newPassword"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    _raise_if(errors)
    return ChangePasswordInput(current_password=current, new_password=new)


# ── Export ────────────────────────────────────────────────────────────────────


@dataclass
class ExportParams:
    start_date: date
    end_date: date
    scope: str = "own"
    project_ids: list[str] = field(default_factory=list)
    category_ids: list[str] = field(default_factory=list)
    user_id: str | None = None
    format: str = "csv"


def validate_export_params(args) -> ExportParams:
    errors: dict[str, str] = {}
    start = _date(args.get("from"), errors, "from")
    end = _date(args.get("to"), errors, "to")
    _date_range(start, end, errors, "from", "to")
    if start and end and start <= end and (end - start).days > MAX_EXPORT_DAYS:
        errors["to"] = f"Date range cannot exceed {MAX_EXPORT_DAYS} days"
    params = ExportParams(
        start_date=start,
        end_date=end,
        scope=_choice(args.get("scope"), errors, "scope", SCOPES, default="own"),
        project_ids=_uuid_list(args.get("projects"), errors, "projects"),
        category_ids=_uuid_list(args.get("categories"), errors, "categories"),
        user_id=_uuid(args.get("userId"), errors, "userId", required=False),
        format=_choice(args.get("format"), errors, "format", EXPORT_FORMATS, default="csv"),
    )
    _raise_if(errors, "Invalid export parameters")
    return params
