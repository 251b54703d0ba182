"""Client configuration from environment variables and credential sources.

Credentials are given as *source descriptors* so secrets need not sit in
shell history or process listings:

- ``"env:VAR_NAME"`` -- read from another environment variable
- ``"file:/path/to/file"`` -- read from a file, stripped of whitespace
- anything else -- used literally

:func:`load_client_config` reads the following variables:

==========================  ===============================  ==========
Variable                    Meaning                          Default
==========================  ===============================  ==========
``MONCASH_CLIENT_ID``       client id (source descriptor)    required
``MONCASH_CLIENT_SECRET``   client secret (source descr.)    required
``MONCASH_MODE``            ``live`` or ``sandbox``          sandbox
``MONCASH_BASE_URL``        API root override                --
``MONCASH_GATEWAY_URL``     payment-page root override       --
``MONCASH_TIMEOUT``         per-request timeout, seconds     30
``MONCASH_MAX_RETRIES``     401 refresh retries              3
``MONCASH_TOKEN_MIN_TTL``   token lifetime floor, seconds    30
``MONCASH_TOKEN_MARGIN``    token safety margin, seconds     10
==========================  ===============================  ==========
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from moncash.exceptions import ConfigError
from moncash.models import ClientConfig

ENV_PREFIX = "MONCASH_"


def resolve_credential(source: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Resolve a credential from its source descriptor.

    Args:
        source: ``env:VAR``, ``file:/path``, or a literal value.
        environ: Mapping consulted for ``env:`` sources. Defaults to
            :data:`os.environ`.

    Returns:
        The resolved credential string.

    Raises:
        ConfigError: If the variable is unset or the file can't be read.
    """
    env = os.environ if environ is None else environ

    if source.startswith("env:"):
        var_name = source[4:]
        value = env.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    return source


def load_client_config(
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> ClientConfig:
    """Build a :class:`~moncash.models.ClientConfig` from the environment.

    Keyword *overrides* (``mode``, ``timeout``, ``max_retries``,
    ``base_url``, ...) take precedence over the environment; ``None``
    values are ignored so CLI options can be passed straight through.

    Raises:
        ConfigError: If credentials are missing or a value is invalid.
    """
    env = os.environ if environ is None else environ
    overrides = {k: v for k, v in overrides.items() if v is not None}

    def _get(name: str) -> Optional[str]:
        value = env.get(ENV_PREFIX + name)
        return value if value else None

    client_id_source = overrides.pop("client_id", None) or _get("CLIENT_ID")
    client_secret_source = overrides.pop("client_secret", None) or _get("CLIENT_SECRET")
    if not client_id_source:
        raise ConfigError(f"No client id configured (set {ENV_PREFIX}CLIENT_ID)")
    if not client_secret_source:
        raise ConfigError(f"No client secret configured (set {ENV_PREFIX}CLIENT_SECRET)")

    raw: dict[str, Any] = {
        "client_id": resolve_credential(client_id_source, env),
        "client_secret": resolve_credential(client_secret_source, env),
        "request": {},
        "token": {},
    }
    for key, name in (("mode", "MODE"), ("base_url", "BASE_URL"), ("gateway_url", "GATEWAY_URL")):
        value = overrides.pop(key, None) or _get(name)
        if value is not None:
            raw[key] = value.lower() if key == "mode" and isinstance(value, str) else value
    for key, name in (("timeout", "TIMEOUT"), ("max_retries", "MAX_RETRIES")):
        value = overrides.pop(key, None)
        if value is None:
            value = _get(name)
        if value is not None:
            raw["request"][key] = value
    for key, name in (("minimum_ttl", "TOKEN_MIN_TTL"), ("safety_margin", "TOKEN_MARGIN")):
        value = overrides.pop(key, None)
        if value is None:
            value = _get(name)
        if value is not None:
            raw["token"][key] = value

    if overrides:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(overrides))}")

    try:
        return ClientConfig.model_validate(raw)
    except PydanticValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
