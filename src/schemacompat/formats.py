"""
schemacompat - string format validation

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Final
from urllib.parse import urlsplit

import datetime
import ipaddress
import isodate
import re
import uuid

FormatValidator = Callable[[str], bool]

TIME_REGEX: Final = re.compile(r"^\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})?$")
DATE_REGEX: Final = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DATE_TIME_REGEX: Final = re.compile(r"^\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}(:\d{2}(\.\d+)?)?([Zz]|[+-]\d{2}(:?\d{2})?)?$")
JSON_POINTER_REGEX: Final = re.compile(r"^(/([^~/]|~[01])*)*$")
RELATIVE_JSON_POINTER_REGEX: Final = re.compile(r"^\d+(#|(/([^~/]|~[01])*)*)$")
EMAIL_REGEX: Final = re.compile(
    r"^[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+(\.[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@([A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?\.)+[A-Za-z]{2,63}$"
)
IDN_EMAIL_REGEX: Final = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]{2,}$")
HOSTNAME_LABEL_REGEX: Final = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
IDN_HOSTNAME_LABEL_REGEX: Final = re.compile(r"^(?!-)[^\s.\x00-\x1f]{1,63}(?<!-)$", re.UNICODE)
URI_SCHEME_REGEX: Final = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")
UUID_REGEX: Final = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")

# A format listed here accepts every string its key accepts.
FORMAT_SUPERSETS: Final[dict[str, tuple[str, ...]]] = {
    "email": ("idn-email",),
    "hostname": ("idn-hostname",),
    "uri": ("iri",),
    "uri-reference": ("iri-reference",),
}

FORMAT_VALIDATORS: dict[str, FormatValidator] = {}


def checks(*formats: str) -> Callable[[FormatValidator], FormatValidator]:
    def _register(func: FormatValidator) -> FormatValidator:
        for name in formats:
            FORMAT_VALIDATORS[name] = func
        return func

    return _register


@checks("date-time")
def is_date_time(value: str) -> bool:
    if not DATE_TIME_REGEX.match(value):
        return False
    try:
        isodate.parse_datetime(value.replace("t", "T").replace("z", "Z"))
    except (isodate.ISO8601Error, ValueError):
        return False
    return True


@checks("date")
def is_date(value: str) -> bool:
    if not DATE_REGEX.match(value):
        return False
    try:
        parsed = datetime.date.fromisoformat(value)
    except ValueError:
        return False
    return parsed.isoformat() == value


@checks("time")
def is_time(value: str) -> bool:
    return TIME_REGEX.match(value) is not None


@checks("email")
def is_email(value: str) -> bool:
    local, _, _ = value.rpartition("@")
    return len(local) <= 64 and EMAIL_REGEX.match(value) is not None


@checks("idn-email")
def is_idn_email(value: str) -> bool:
    return is_email(value) or IDN_EMAIL_REGEX.match(value) is not None


def _is_hostname(value: str, label_regex: re.Pattern[str]) -> bool:
    hostname = value[:-1] if value.endswith(".") else value
    if not hostname or len(hostname) > 253:
        return False
    return all(label_regex.match(label) for label in hostname.split("."))


@checks("hostname")
def is_hostname(value: str) -> bool:
    return _is_hostname(value, HOSTNAME_LABEL_REGEX)


@checks("idn-hostname")
def is_idn_hostname(value: str) -> bool:
    return _is_hostname(value, IDN_HOSTNAME_LABEL_REGEX)


@checks("ipv4")
def is_ipv4(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


@checks("ipv6")
def is_ipv6(value: str) -> bool:
    try:
        ipaddress.IPv6Address(value)
    except ValueError:
        return False
    return True


def _is_reference(value: str, *, require_scheme: bool) -> bool:
    if not value or any(ch.isspace() for ch in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if not parts.scheme:
        return not require_scheme
    return URI_SCHEME_REGEX.match(parts.scheme) is not None and bool(parts.netloc or parts.path)


@checks("uri", "iri")
def is_uri(value: str) -> bool:
    return _is_reference(value, require_scheme=True)


@checks("uri-reference", "iri-reference")
def is_uri_reference(value: str) -> bool:
    return _is_reference(value, require_scheme=False)


@checks("uri-template")
def is_uri_template(value: str) -> bool:
    in_brace = False
    for ch in value:
        if ch == "{":
            if in_brace:
                return False
            in_brace = True
        elif ch == "}":
            if not in_brace:
                return False
            in_brace = False
    return not in_brace


@checks("uuid")
def is_uuid(value: str) -> bool:
    if not UUID_REGEX.match(value):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


@checks("json-pointer")
def is_json_pointer(value: str) -> bool:
    if value == "":
        return True
    return JSON_POINTER_REGEX.match(value) is not None


@checks("relative-json-pointer")
def is_relative_json_pointer(value: str) -> bool:
    return RELATIVE_JSON_POINTER_REGEX.match(value) is not None


@checks("regex")
def is_regex(value: str) -> bool:
    try:
        re.compile(value)
    except re.error:
        return False
    return True


KNOWN_FORMATS: Final = frozenset(FORMAT_VALIDATORS)


def is_known_format(format_name: str) -> bool:
    return format_name in KNOWN_FORMATS


def validate_format(value: Any, format_name: str) -> bool | None:
    """Validate `value` against a format.

    Returns `None` for unknown formats: callers skip the constraint instead of
    treating it as a failure. Non-string values always pass.
    """
    if not isinstance(value, str):
        return True
    validator = FORMAT_VALIDATORS.get(format_name)
    if validator is None:
        return None
    return validator(value)


def is_format_subset(sub_format: str, sup_format: str) -> bool | None:
    """Whether every string valid for `sub_format` is valid for `sup_format`.

    Never answers `False`, any pair without a known inclusion is `None`.

    >>> is_format_subset("email", "idn-email"), is_format_subset("idn-email", "email")
    (True, None)
    """
    if sub_format == sup_format:
        return True
    if sup_format in FORMAT_SUPERSETS.get(sub_format, ()):
        return True
    return None
