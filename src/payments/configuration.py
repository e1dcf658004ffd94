"""Payment provider configuration.

A ``PaymentConfiguration`` is created once per process (or per test) and
handed to the gateway adapter, which reads it on every call. The secret key
can be written but never read back: the only consumer is
``authorization_header()``, used by the adapter when it talks to the
provider.
"""

import re
import threading

_COUNTRY_CODE = re.compile(r"^[A-Z]{2}$")

DEFAULT_ALLOWED_COUNTRIES = ("IN", "US", "GB", "CA", "AU")


class InvalidKeyFormat(ValueError):
    """The supplied secret key or country list is malformed."""

    code = "InvalidKeyFormat"


class PaymentConfiguration:
    """Process-wide payment credentials, set by an administrator."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._secret_key: str | None = None
        self._allowed_countries: tuple[str, ...] = DEFAULT_ALLOWED_COUNTRIES

    def configure(self, secret_key: str, allowed_countries: list[str] | None = None) -> None:
        key = (secret_key or "").strip()
        if not key.startswith("sk_") or len(key) <= len("sk_"):
            raise InvalidKeyFormat("Secret key must start with 'sk_'")

        countries = tuple(c.strip().upper() for c in (allowed_countries or []) if c and c.strip())
        for country in countries:
            if not _COUNTRY_CODE.match(country):
                raise InvalidKeyFormat(f"Invalid country code '{country}'")

        with self._lock:
            self._secret_key = key
            self._allowed_countries = countries or DEFAULT_ALLOWED_COUNTRIES

    def clear(self) -> None:
        with self._lock:
            self._secret_key = None
            self._allowed_countries = DEFAULT_ALLOWED_COUNTRIES

    def is_configured(self) -> bool:
        return self._secret_key is not None

    @property
    def allowed_countries(self) -> tuple[str, ...]:
        return self._allowed_countries

    def authorization_header(self) -> dict[str, str]:
        """Bearer header for provider requests. Empty when unconfigured."""
        key = self._secret_key
        if key is None:
            return {}
        return {"Authorization": f"Bearer {key}"}

    def __repr__(self) -> str:
        state = "configured" if self.is_configured() else "unconfigured"
        return f"<PaymentConfiguration {state} countries={','.join(self._allowed_countries)}>"
