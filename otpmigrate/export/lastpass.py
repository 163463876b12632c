"""
Export TOTP accounts into the LastPass Authenticator migration envelope.

The envelope is a compact JSON document, base64 encoded into
``{scheme}://offline?data=...``. It is never batched; oversized selections
are rejected.

Deutsch:
    Export in das Migrationsformat von LastPass Authenticator (nur TOTP).
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import parse_qs, quote, urlsplit

from ..errors import IncompatibleAccountType, MalformedPayload, SelectionTooLarge
from ..models import Account, OtpKind
from ..settings import LastPassSettings
from .selection import require_selection

log = logging.getLogger(__name__)


class LastPassExporter:
    name = "lastpass"

    def __init__(self, settings: Optional[LastPassSettings] = None) -> None:
        self.settings = settings or LastPassSettings()

    def incompatible(self, selection: Sequence[Account]) -> List[Account]:
        return [account for account in selection if account.kind != OtpKind.TOTP]

    def check(self, selection: Sequence[Account]) -> None:
        require_selection(selection)
        offending = self.incompatible(selection)
        if offending:
            raise IncompatibleAccountType(offending, "LastPass only supports TOTP accounts")
        if len(selection) > self.settings.max_accounts:
            raise SelectionTooLarge(len(selection), self.settings.max_accounts)

    def build_envelope(self, selection: Sequence[Account]) -> Dict[str, Any]:
        return {
            "version": self.settings.version,
            "deviceName": self.settings.device_name,
            "accounts": [self._account_entry(account) for account in selection],
        }

    def export(self, selection: Sequence[Account]) -> str:
        self.check(selection)
        document = json.dumps(self.build_envelope(selection), sort_keys=True, separators=(",", ":"))
        encoded = base64.b64encode(document.encode("utf-8")).decode("ascii")
        log.info("exported %d account(s) into one LastPass code", len(selection))
        return f"{self.settings.scheme}://offline?data={quote(encoded, safe='')}"

    def _account_entry(self, account: Account) -> Dict[str, Any]:
        return {
            "issuerName": account.issuer,
            "userName": account.name,
            "originalIssuerName": account.issuer,
            "originalUserName": account.name,
            "secret": account.secret_base32,
            "timeStep": self.settings.time_step,
            "digits": account.digits,
            "algorithm": account.algorithm_name,
            "isFavorite": False,
        }


def decode_envelope(uri: str) -> Dict[str, Any]:
    """
    Read back the JSON envelope of an exported URI.

    Raises:
        MalformedPayload: when the ``data`` parameter is missing or does not
            hold base64 encoded JSON.
    """

    values = parse_qs(urlsplit(uri.strip()).query).get("data")
    if not values or not values[0]:
        raise MalformedPayload("LastPass URI has no 'data' parameter")
    try:
        return json.loads(base64.b64decode(values[0], validate=True).decode("utf-8"))
    except (binascii.Error, ValueError) as exc:
        raise MalformedPayload(f"LastPass data is not base64 encoded JSON: {exc}") from exc
