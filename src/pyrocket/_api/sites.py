"""Site endpoints.

Endpoints:
  - POST   partner/sites
  - GET    sites
  - GET    sites/{id}
  - PUT    sites/{id}
  - DELETE sites/{id}
  - POST   sites/{id}/access_token
"""

from __future__ import annotations

import logging
import secrets
import string
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, urlencode

from pydantic import ValidationError

from pyrocket._api._authenticated import AuthenticatedClient
from pyrocket._api._envelope import ErrorEnvelope, FlatEnvelope, ProviderEnvelope, SuccessEnvelope, resolve_envelope
from pyrocket._constants import GENERATED_PASSWORD_LENGTH, PARTNER_SITES_ENDPOINT, SITES_ENDPOINT
from pyrocket._redact import redact_for_log
from pyrocket.config import RocketConfig
from pyrocket.failures import Failure, FailureKind, is_failure
from pyrocket.models.site import SiteRecord, SiteSpec

_logger = logging.getLogger(__name__)

_PASSWORD_SYMBOLS = "!@#$%^&*()-_[]{}<>~+=,.;:/?|"
_PASSWORD_ALPHABET = string.ascii_letters + string.digits + _PASSWORD_SYMBOLS


def generate_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    """Random password with at least one lower, upper, digit and symbol."""
    if length < 4:
        raise ValueError("password length must be at least 4")
    while True:
        candidate = "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))
        if (
            any(c.islower() for c in candidate)
            and any(c.isupper() for c in candidate)
            and any(c.isdigit() for c in candidate)
            and any(c in _PASSWORD_SYMBOLS for c in candidate)
        ):
            return candidate


def _site_path(site_id: str | int, *suffix: str) -> str:
    return "/".join((SITES_ENDPOINT, quote(str(site_id), safe=""), *suffix))


def _absint(value: int | str) -> int:
    return abs(int(value))


def build_create_site_body(config: RocketConfig, spec: SiteSpec) -> dict[str, Any]:
    """Build the ``partner/sites`` request body.

    Key order is part of the wire contract and must not change.
    Unlimited ``quota``/``bwlimit`` are omitted rather than sent as zero.
    """
    body: dict[str, Any] = {
        "domain": spec.domain,
        "multisite": spec.multisite,
        "name": spec.name,
        "location": _absint(spec.location or config.default_location),
        "admin_username": spec.admin_username or config.default_admin_username,
        "admin_password": spec.admin_password or generate_password(),
        "admin_email": spec.admin_email,
        "install_plugins": spec.plugins_wire_value(),
        "label": spec.label or spec.name,
    }
    if spec.quota:
        body["quota"] = _absint(spec.quota)
    if spec.bwlimit:
        body["bwlimit"] = _absint(spec.bwlimit)
    return body


def _record_from_envelope(envelope: ProviderEnvelope, *, require_confirmed: bool) -> SiteRecord | None:
    candidate: Any = None
    if isinstance(envelope, SuccessEnvelope):
        if isinstance(envelope.result, dict) and (envelope.confirmed or not require_confirmed):
            candidate = envelope.result
        elif "id" in envelope.raw:
            candidate = envelope.raw
    elif isinstance(envelope, FlatEnvelope) and isinstance(envelope.data, dict):
        candidate = envelope.data

    if not isinstance(candidate, dict) or "id" not in candidate:
        return None
    try:
        return SiteRecord.model_validate(candidate)
    except ValidationError:
        return None


async def create_site(
    api: AuthenticatedClient,
    config: RocketConfig,
    spec: SiteSpec | Mapping[str, Any],
) -> SiteRecord | Failure:
    """Create a site.

    Parameters
    ----------
    api : AuthenticatedClient
        Authenticated API client.
    config : RocketConfig
        Supplies the default location and admin username.
    spec : SiteSpec or Mapping
        Site to create.  ``domain``, ``name`` and ``admin_email`` are
        required; nothing is sent if any is empty.

    Returns
    -------
    SiteRecord or Failure
        The created site, ``INVALID_INPUT`` for a bad spec,
        ``INVALID_RESPONSE`` when the reply has no site, or the request
        failure.
    """
    if not isinstance(spec, SiteSpec):
        try:
            spec = SiteSpec.model_validate(dict(spec))
        except ValidationError as exc:
            return Failure(kind=FailureKind.INVALID_INPUT, message=f"Invalid site data: {exc.error_count()} error(s)")

    if not spec.domain or not spec.name or not spec.admin_email:
        return Failure(kind=FailureKind.INVALID_INPUT, message="Missing required site data")

    body = build_create_site_body(config, spec)
    _logger.info("Creating site %s", spec.name)
    _logger.debug("Create site body=%s", redact_for_log(body))

    decoded = await api.post_json(PARTNER_SITES_ENDPOINT, body)
    if is_failure(decoded):
        message = decoded.message
        if decoded.kind is FailureKind.TRANSPORT_ERROR and decoded.http_code is not None:
            message = f"{message} (HTTP {decoded.http_code})"
        _logger.error("Site creation failed: %s", message)
        return decoded.model_copy(update={"message": message})

    _logger.debug("Create site response=%s", redact_for_log(decoded))
    record = _record_from_envelope(resolve_envelope(decoded), require_confirmed=True)
    if record is None:
        _logger.error("Site creation response missing result: %s", redact_for_log(decoded))
        return Failure(kind=FailureKind.INVALID_RESPONSE, message="Invalid API response: no site in reply")

    _logger.info("Site created: %s", record.id)
    return record


async def get_site(api: AuthenticatedClient, site_id: str | int) -> SiteRecord | Failure:
    """Fetch one site."""
    decoded = await api.get_json(_site_path(site_id))
    if is_failure(decoded):
        return decoded

    envelope = resolve_envelope(decoded)
    record = None
    if isinstance(envelope, SuccessEnvelope):
        record = _record_from_envelope(envelope, require_confirmed=False)
    if record is None:
        return Failure(kind=FailureKind.INVALID_RESPONSE, message="Invalid API response")
    return record


async def list_sites(
    api: AuthenticatedClient,
    *,
    page: int = 1,
    per_page: int = 20,
    **filters: Any,
) -> list[SiteRecord] | Failure:
    """List sites one page at a time; extra keyword args become query filters."""
    query = urlencode({"page": page, "per_page": per_page, **filters})
    decoded = await api.get_json(f"{SITES_ENDPOINT}?{query}")
    if is_failure(decoded):
        return decoded

    envelope = resolve_envelope(decoded)
    items: Any = None
    if isinstance(envelope, SuccessEnvelope):
        items = envelope.result
    elif isinstance(envelope, FlatEnvelope):
        items = envelope.data
    elif isinstance(envelope, ErrorEnvelope):
        return Failure(kind=FailureKind.INVALID_RESPONSE, message=envelope.message)

    if not isinstance(items, list):
        return Failure(kind=FailureKind.INVALID_RESPONSE, message="Invalid API response: expected a list of sites")

    sites: list[SiteRecord] = []
    for item in items:
        if not isinstance(item, dict) or "id" not in item:
            _logger.debug("Skipping site entry without id: %s", redact_for_log(item))
            continue
        try:
            sites.append(SiteRecord.model_validate(item))
        except ValidationError:
            _logger.debug("Skipping site entry with unusable id: %s", redact_for_log(item))
    return sites


def _confirmed(decoded: Any) -> bool:
    envelope = resolve_envelope(decoded)
    return isinstance(envelope, SuccessEnvelope) and envelope.confirmed


async def delete_site(api: AuthenticatedClient, site_id: str | int) -> bool | Failure:
    """Delete a site; succeeds only on an explicit ``success`` flag."""
    _logger.info("Deleting site %s", site_id)
    decoded = await api.delete_json(_site_path(site_id))
    if is_failure(decoded):
        _logger.error("Site deletion failed: %s", decoded.message)
        return decoded

    if not _confirmed(decoded):
        return Failure(kind=FailureKind.INVALID_RESPONSE, message="Failed to delete site")

    _logger.info("Site deleted: %s", site_id)
    return True


async def update_site(
    api: AuthenticatedClient,
    site_id: str | int,
    patch: Mapping[str, Any],
) -> bool | Failure:
    """Update site settings; succeeds only on an explicit ``success`` flag."""
    decoded = await api.put_json(_site_path(site_id), dict(patch))
    if is_failure(decoded):
        return decoded

    if not _confirmed(decoded):
        return Failure(kind=FailureKind.INVALID_RESPONSE, message="Failed to update site")
    return True


async def generate_access_token(
    api: AuthenticatedClient,
    site_id: str | int,
    ttl: int,
) -> str | Failure:
    """Issue a short-lived token for the hosted control panel.

    The token is read from ``result.token`` and, failing that, from a
    top-level ``token``.
    """
    decoded = await api.post_json(_site_path(site_id, "access_token"), {"ttl": _absint(ttl)})
    if is_failure(decoded):
        return decoded

    envelope = resolve_envelope(decoded)
    token: Any = None
    if isinstance(envelope, SuccessEnvelope):
        if isinstance(envelope.result, dict):
            token = envelope.result.get("token")
        if not token:
            token = envelope.raw.get("token")
    elif isinstance(envelope, FlatEnvelope) and isinstance(envelope.data, dict):
        token = envelope.data.get("token")

    if not token or not isinstance(token, str):
        _logger.error("Access token not found in response: %s", redact_for_log(decoded))
        return Failure(kind=FailureKind.INVALID_RESPONSE, message="Access token not found in response")
    return token


def control_panel_url(config: RocketConfig, site_id: str | int, access_token: str) -> str:
    """URL that opens the hosted control panel for *site_id*."""
    base = config.control_panel_url.rstrip("/")
    return f"{base}/manage?{urlencode({'site': site_id, 'token': access_token})}"
