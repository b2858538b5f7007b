"""Account and asset identifier validation.

Identifiers are opaque to the core; only the character set and length are
checked so malformed input fails before any value moves.
"""

import re

from src.ds_common.errors import InvalidIdentifierError, TextTooLongError

NATIVE_ASSET = "NATIVE"

_IDENTIFIER_RE = re.compile(r"[A-Za-z0-9_.:\-]{1,64}")


def validate_account(account: str) -> str:
    if not isinstance(account, str) or not _IDENTIFIER_RE.fullmatch(account):
        raise InvalidIdentifierError("account", account)
    return account


def validate_asset(asset: str) -> str:
    if not isinstance(asset, str) or not _IDENTIFIER_RE.fullmatch(asset):
        raise InvalidIdentifierError("asset", asset)
    return asset


def validate_text(field: str, value: str, max_length: int) -> str:
    if len(value) > max_length:
        raise TextTooLongError(field, max_length)
    return value
