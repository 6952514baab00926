from __future__ import annotations

import re
from typing import Any

from token_gateway.app.domain.errors import InvalidInputError
from token_gateway.app.domain.models import Address

_ADDRESS_RE = re.compile(r"0x[a-fA-F0-9]{40}")


def is_valid_address(value: Any) -> bool:
    return isinstance(value, str) and _ADDRESS_RE.fullmatch(value) is not None


def validate_address(value: Any, *, field: str = "address") -> Address:
    """
    Syntactic check only: `0x` followed by exactly 40 hex characters.

    No EIP-55 checksum validation is performed, mixed case is accepted as-is.
    """
    if not is_valid_address(value):
        raise InvalidInputError(f"Invalid {field}")
    return Address(value)


def same_address(a: str, b: str) -> bool:
    return a.lower() == b.lower()
