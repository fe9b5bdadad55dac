from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class AmplintError(Exception):
    code = "amplint_error"

    def __init__(self, message: str, *, context: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    def as_log_fields(self) -> Dict[str, Any]:
        return {
            "error_code": self.code,
            "error_message": self.message,
            "error_context": self.context,
        }


class FetchError(AmplintError):
    """An outbound HTTP request failed or returned an unusable response."""

    code = "fetch_error"

    def __init__(
        self,
        message: str,
        *,
        url: str,
        status: Optional[int] = None,
        curl: Optional[str] = None,
    ) -> None:
        super().__init__(message, context={"url": url, "status": status})
        self.url = url
        self.status = status
        self.curl = curl


class FixtureMissError(FetchError):
    code = "fixture_miss"


class ProbeError(AmplintError):
    code = "probe_error"


class ValidatorUnavailable(AmplintError):
    code = "validator_unavailable"


class CatalogError(AmplintError):
    code = "catalog_error"


class ConfigError(AmplintError):
    code = "config_error"
