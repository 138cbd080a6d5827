"""Gate configuration: explicit schema over plugin-style property keys.

Every option is declared once on :class:`GateSettings` (type, default and
parser). Values come from, lowest to highest precedence:

1. the defaults below,
2. a ``.properties`` file (``key=value``) given explicitly or via
   ``VULNGATE_CONFIG``,
3. environment variables named ``VULNGATE_`` + the property key with ``.``
   and ``-`` replaced by ``_`` (``snyk.api.token`` → ``VULNGATE_SNYK_API_TOKEN``).

Settings are validated eagerly; anything unparsable raises
:class:`ConfigurationError` instead of silently falling back to a default.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from vulngate.core.exceptions import ConfigurationError
from vulngate.engines.gate.models import Ecosystem, Severity

CONFIG_PATH_ENV = "VULNGATE_CONFIG"
ENV_PREFIX = "VULNGATE_"

_ENV_SEPARATORS_RE = re.compile(r"[.\-]")


class GateSettings(BaseModel):
    """All recognised configuration options, keyed by property name."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    # general settings
    api_url: str = Field("https://snyk.io/api/v1/", alias="snyk.api.url")
    api_token: str = Field("", alias="snyk.api.token")
    api_organization: str = Field("", alias="snyk.api.organization")
    api_ssl_certificate_path: str = Field("", alias="snyk.api.sslCertificatePath")
    api_trust_all_certificates: bool = Field(False, alias="snyk.api.trustAllCertificates")
    api_timeout_ms: int = Field(10_000, ge=1, alias="snyk.api.timeout")
    api_http_proxy_host: str = Field("", alias="snyk.api.httpProxyHost")
    api_http_proxy_port: int = Field(8080, ge=1, le=65535, alias="snyk.api.httpProxyPort")
    api_user_agent: str = Field("vulngate", alias="snyk.api.userAgent")
    issue_url: str = Field("https://snyk.io/vuln/", alias="snyk.issue.url")

    # scanner
    block_on_api_failure: bool = Field(True, alias="snyk.scanner.block-on-api-failure")
    vulnerability_threshold: Severity = Field(
        Severity.LOW, alias="snyk.scanner.vulnerability.threshold"
    )
    license_threshold: Severity = Field(Severity.LOW, alias="snyk.scanner.license.threshold")
    maven_enabled: bool = Field(True, alias="snyk.scanner.packageType.maven")
    npm_enabled: bool = Field(True, alias="snyk.scanner.packageType.npm")
    pypi_enabled: bool = Field(True, alias="snyk.scanner.packageType.pypi")

    @field_validator("vulnerability_threshold", "license_threshold", mode="before")
    @classmethod
    def _parse_severity(cls, v: Any) -> Any:
        return Severity.parse(v) if isinstance(v, str) else v

    @field_validator(
        "api_trust_all_certificates",
        "block_on_api_failure",
        "maven_enabled",
        "npm_enabled",
        "pypi_enabled",
        mode="before",
    )
    @classmethod
    def _parse_bool(cls, v: Any) -> Any:
        if isinstance(v, str):
            text = v.strip().lower()
            if text not in ("true", "false"):
                raise ConfigurationError(f"expected true or false, got {v!r}")
            return text == "true"
        return v

    @field_validator("api_url", "issue_url", mode="after")
    @classmethod
    def _trailing_slash(cls, v: str) -> str:
        return v if v.endswith("/") else v + "/"

    def is_enabled(self, ecosystem: Ecosystem) -> bool:
        """Whether scanning is switched on for *ecosystem*."""
        return {
            Ecosystem.MAVEN: self.maven_enabled,
            Ecosystem.NPM: self.npm_enabled,
            Ecosystem.PYPI: self.pypi_enabled,
        }.get(ecosystem, False)


def property_keys() -> list[str]:
    """Return every recognised property key."""
    return [field.alias for field in GateSettings.model_fields.values() if field.alias]


def env_name(key: str) -> str:
    """Map a property key to the environment variable that overrides it."""
    return ENV_PREFIX + _ENV_SEPARATORS_RE.sub("_", key).upper()


def read_properties(path: Path) -> dict[str, str]:
    """Parse a Java-style ``.properties`` file (``key=value`` or ``key: value``).

    Blank lines and lines starting with ``#`` or ``!`` are ignored. Line
    continuations and unicode escapes are not supported.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read configuration file {path}: {exc}") from exc

    props: dict[str, str] = {}
    for lineno, raw in enumerate(content.splitlines(), start=1):
        line = raw.strip()
        if not line or line[0] in "#!":
            continue
        match = re.match(r"([^=:\s]+)\s*[=:]\s*(.*)$", line)
        if match is None:
            raise ConfigurationError(f"{path}:{lineno}: expected 'key=value', got {raw!r}")
        props[match.group(1)] = match.group(2).strip()
    return props


def _describe(exc: ValidationError) -> str:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}")
    return "; ".join(messages)


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> GateSettings:
    """Build :class:`GateSettings` from defaults, a properties file and the environment.

    Raises :class:`ConfigurationError` if the file cannot be read or any
    value fails validation.
    """
    env = os.environ if environ is None else environ
    raw: dict[str, str] = {}

    config_path = path or env.get(CONFIG_PATH_ENV)
    if config_path:
        raw.update(read_properties(Path(config_path)))

    for key in property_keys():
        value = env.get(env_name(key))
        if value is not None:
            raw[key] = value

    try:
        return GateSettings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid configuration: {_describe(exc)}") from exc
