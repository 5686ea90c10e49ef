"""Client configuration: account mode, credentials, script and polling knobs."""

import os
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from testafy.errors import ConfigurationError


ANONYMOUS_LOGIN = "try_it_now"

DEFAULT_SCRIPT = "For the url http://www.google.com\nthen pass this test"


class AccountMode(str, Enum):
    """Which endpoint family requests are sent to."""

    NORMAL = "normal"
    ANONYMOUS = "anonymous"


def _env_bool(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    return float(raw)


class TestConfig(BaseModel):
    """Immutable inputs for a test.

    The account mode is fixed when the config is built: pass it
    explicitly, use :meth:`anonymous`, or give the reserved login name
    ``"try_it_now"``.
    """

    __test__ = False

    model_config = ConfigDict(frozen=True)

    login_name: str = Field(default="", description="Account login name")
    password: str = Field(default="", repr=False, description="Account password")
    script: str = Field(default=DEFAULT_SCRIPT, description="PBehave test text")
    base_uri: Optional[str] = Field(
        default=None,
        description="Service root, e.g. https://app.testafy.com/api/v0/",
    )
    want_screenshots: bool = Field(default=False)
    results_format: Optional[str] = Field(default=None)
    product: Optional[str] = Field(default=None, description="Product tag sent with runs")
    account_mode: AccountMode = Field(default=AccountMode.NORMAL)
    poll_interval: float = Field(default=1.0, ge=0)
    max_wait: Optional[float] = Field(default=600.0, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)

    @model_validator(mode="before")
    @classmethod
    def _select_account_mode(cls, data: Any) -> Any:
        if isinstance(data, dict) and "account_mode" not in data:
            if data.get("login_name") == ANONYMOUS_LOGIN:
                data = {**data, "account_mode": AccountMode.ANONYMOUS}
        return data

    @classmethod
    def anonymous(cls, **kwargs: Any) -> "TestConfig":
        """Build a config for the credential-less "try it now" tier."""
        kwargs.setdefault("login_name", ANONYMOUS_LOGIN)
        kwargs.setdefault("password", "")
        return cls(account_mode=AccountMode.ANONYMOUS, **kwargs)

    @classmethod
    def from_env(cls, **overrides: Any) -> "TestConfig":
        """Build a config from ``TESTAFY_*`` environment variables.

        Keyword arguments win over the environment; ``None`` overrides are
        ignored so CLI flags can be passed through unconditionally.
        """
        try:
            values: dict[str, Any] = {
                "login_name": os.getenv("TESTAFY_LOGIN_NAME"),
                "password": os.getenv("TESTAFY_PASSWORD"),
                "base_uri": os.getenv("TESTAFY_BASE_URI"),
                "want_screenshots": _env_bool("TESTAFY_SCREENSHOTS"),
                "results_format": os.getenv("TESTAFY_RESULTS_FORMAT"),
                "product": os.getenv("TESTAFY_PRODUCT"),
                "poll_interval": _env_float("TESTAFY_POLL_INTERVAL"),
                "max_wait": _env_float("TESTAFY_MAX_WAIT"),
            }
            values.update({k: v for k, v in overrides.items() if v is not None})
            return cls(**{k: v for k, v in values.items() if v is not None})
        except ValueError as exc:
            raise ConfigurationError(f"Invalid Testafy configuration: {exc}") from exc

    def with_overrides(self, **overrides: Any) -> "TestConfig":
        """Return a validated copy with ``overrides`` applied.

        Changing the login name without naming a mode re-derives the mode,
        so switching to ``"try_it_now"`` selects the anonymous tier.
        """
        base = self.model_dump()
        if "login_name" in overrides and "account_mode" not in overrides:
            base.pop("account_mode")
        try:
            return type(self)(**{**base, **overrides})
        except ValueError as exc:
            raise ConfigurationError(f"Invalid Testafy configuration: {exc}") from exc

    @property
    def is_anonymous(self) -> bool:
        return self.account_mode == AccountMode.ANONYMOUS

    @property
    def is_configured(self) -> bool:
        return bool(self.base_uri)

    def credentials(self) -> Optional[tuple[str, str]]:
        """Basic-auth pair, or ``None`` for the anonymous tier."""
        if self.is_anonymous:
            return None
        return (self.login_name, self.password)
