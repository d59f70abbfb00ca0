"""
Validation of sender and recipient addresses.

Accepts either a bare ``local@domain`` or the RFC 5322 display form
``Name <local@domain>``. Syntax checks are delegated to
``email-validator`` with its deliverability rules switched off, so
addresses on internal relays (``alerts@mailhost``, ``root@localhost``,
``ops@corp.local``) are accepted.
"""

from typing import NamedTuple

from email_validator import (
    SPECIAL_USE_DOMAIN_NAMES,
    EmailNotValidError,
    validate_email,
)

from .errors import AddressFormatError

# Neutral label swapped in for special-use suffixes while validating
_STANDIN_LABEL = "example"


class Address(NamedTuple):
    """A parsed email address."""

    name: str
    address: str


def _standin_domain(domain: str) -> str:
    """Replace a special-use suffix (localhost, .local, .test...) with a neutral label."""
    lowered = domain.lower()
    for special in SPECIAL_USE_DOMAIN_NAMES:
        if lowered == special or lowered.endswith("." + special):
            return lowered[: len(lowered) - len(special)] + _STANDIN_LABEL
    return domain


def parse_address(value: str) -> Address:
    """
    Parse and validate a single email address.

    Args:
        value: The raw address string.

    Returns:
        Address: The display name (possibly empty) and the bare address.

    Raises:
        AddressFormatError: If `value` is not a valid address.
    """
    if not isinstance(value, str) or not value.strip():
        raise AddressFormatError(f"Invalid email address: {value!r}")

    raw = value.strip()
    local, at, domain = raw.rpartition("@")
    closing = ""
    if domain.endswith(">"):
        domain, closing = domain[:-1].rstrip(), ">"
    standin = _standin_domain(domain) if at else domain

    try:
        info = validate_email(
            f"{local}{at}{standin}{closing}",
            check_deliverability=False,
            globally_deliverable=False,
            allow_display_name=True,
        )
    except EmailNotValidError as e:
        raise AddressFormatError(f"Invalid email address {value!r}: {e}") from e

    if standin == domain:
        address = info.normalized
    else:
        address = f"{info.local_part}@{domain.lower()}"
    return Address(name=info.display_name or "", address=address)
