"""
Run configuration.

Values come from GitHub Actions style inputs (INPUT_<NAME> environment
variables) with the usual GitHub fallbacks, and may be overridden from the
command line.
"""

import dataclasses
import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from codefreq.auth import AppAuth, Authenticator, TokenAuth
from codefreq.exceptions import ConfigurationError
from codefreq.signers import RsaSigner
from codefreq.transport import DEFAULT_API_URL

DEFAULT_COMMITTER_NAME = "github-actions"
DEFAULT_COMMITTER_EMAIL = "github-actions@github.com"
DEFAULT_CONCURRENCY = 8
SORT_ORDERS = ("asc", "desc")


def _input(environ: Mapping[str, str], name: str) -> str | None:
    """Read an action input; blank values count as unset."""
    value = environ.get(f"INPUT_{name.upper()}", "").strip()
    return value or None


def _org_from_event(event_path: str | None) -> str | None:
    if not event_path:
        return None
    try:
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot read event payload {event_path}: {e}") from e
    organization = payload.get("organization") if isinstance(payload, dict) else None
    if isinstance(organization, dict):
        return organization.get("login") or None
    return None


@dataclass
class ReportConfig:
    """Everything one report run needs to know."""

    org: str | None = None
    token: str | None = None
    app_id: str | None = None
    app_private_key: str | None = None
    app_installation_id: str | None = None
    weeks: str | None = None  # raw; select_window falls back to the default
    from_date: str | None = None
    to_date: str | None = None
    sort: str = "additions"
    sort_order: str = "desc"
    committer_name: str = DEFAULT_COMMITTER_NAME
    committer_email: str = DEFAULT_COMMITTER_EMAIL
    report_repository: str | None = None  # "owner/repo"
    branch: str | None = None
    api_url: str = DEFAULT_API_URL
    max_concurrency: int = DEFAULT_CONCURRENCY
    dry_run: bool = False
    output: Path | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ReportConfig":
        """
        Create a configuration from environment variables.

        Environment variables:
            INPUT_TOKEN / GITHUB_TOKEN: API token
            INPUT_APPID, INPUT_PRIVATEKEY, INPUT_INSTALLATIONID: GitHub App credentials
            INPUT_ORG: Organization (default: organization of the GITHUB_EVENT_PATH payload)
            INPUT_WEEKS, INPUT_FROMDATE, INPUT_TODATE: Reporting window
            INPUT_SORT, INPUT_SORT-ORDER: Sort column and direction
            INPUT_COMMITTER-NAME, INPUT_COMMITTER-EMAIL: Commit identity
            INPUT_REPOSITORY / GITHUB_REPOSITORY: Repository receiving the report
            INPUT_BRANCH: Branch receiving the report (default: default branch)
            INPUT_CONCURRENCY: Parallel repository fetches
            GITHUB_API_URL: API base URL

        Args:
            environ: Mapping to read (default: os.environ)

        Returns:
            ReportConfig (call validate() before use)

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        env = os.environ if environ is None else environ

        concurrency_raw = _input(env, "concurrency")
        try:
            max_concurrency = int(concurrency_raw) if concurrency_raw else DEFAULT_CONCURRENCY
        except ValueError as e:
            raise ConfigurationError(
                f"INPUT_CONCURRENCY must be an integer, got {concurrency_raw!r}"
            ) from e

        return cls(
            org=_input(env, "org") or _org_from_event(env.get("GITHUB_EVENT_PATH")),
            token=_input(env, "token") or env.get("GITHUB_TOKEN") or None,
            app_id=_input(env, "appid"),
            app_private_key=_input(env, "privatekey"),
            app_installation_id=_input(env, "installationid"),
            weeks=_input(env, "weeks"),
            from_date=_input(env, "fromdate"),
            to_date=_input(env, "todate"),
            sort=_input(env, "sort") or "additions",
            sort_order=(_input(env, "sort-order") or "desc").lower(),
            committer_name=_input(env, "committer-name") or DEFAULT_COMMITTER_NAME,
            committer_email=_input(env, "committer-email") or DEFAULT_COMMITTER_EMAIL,
            report_repository=_input(env, "repository") or env.get("GITHUB_REPOSITORY") or None,
            branch=_input(env, "branch"),
            api_url=env.get("GITHUB_API_URL") or DEFAULT_API_URL,
            max_concurrency=max_concurrency,
        )

    def with_overrides(self, **overrides: object) -> "ReportConfig":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return dataclasses.replace(self, **changes)

    @property
    def uses_app_auth(self) -> bool:
        return any((self.app_id, self.app_private_key, self.app_installation_id))

    def validate(self) -> "ReportConfig":
        """
        Check that the configuration is complete and consistent.

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: On the first problem found
        """
        if self.uses_app_auth:
            missing = [
                name
                for name, value in (
                    ("app id", self.app_id),
                    ("private key", self.app_private_key),
                    ("installation id", self.app_installation_id),
                )
                if not value
            ]
            if missing:
                raise ConfigurationError(
                    f"GitHub App authentication is missing: {', '.join(missing)}"
                )
        elif not self.token:
            raise ConfigurationError(
                "A token is required (INPUT_TOKEN or GITHUB_TOKEN) unless GitHub App "
                "credentials are provided"
            )

        if not self.org:
            raise ConfigurationError(
                "No organization given and none found in the event payload"
            )

        if self.sort_order not in SORT_ORDERS:
            raise ConfigurationError(
                f"Sort order must be one of {', '.join(SORT_ORDERS)}, got {self.sort_order!r}"
            )

        if self.max_concurrency < 1:
            raise ConfigurationError("Concurrency must be at least 1")

        if not self.dry_run:
            self.report_owner_and_name()

        return self

    def report_owner_and_name(self) -> tuple[str, str]:
        """Split report_repository into (owner, name)."""
        if not self.report_repository:
            raise ConfigurationError(
                "No repository to commit the report to (INPUT_REPOSITORY or GITHUB_REPOSITORY)"
            )
        owner, sep, name = self.report_repository.partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ConfigurationError(
                f"Report repository must look like owner/repo, got {self.report_repository!r}"
            )
        return owner, name

    def authenticator(self) -> Authenticator:
        """Build the authentication strategy these credentials call for."""
        if self.uses_app_auth:
            key = self.app_private_key or ""
            try:
                if "PRIVATE KEY" in key:
                    signer = RsaSigner.from_pem(key)
                else:
                    signer = RsaSigner.from_pem_file(key)
            except (OSError, ValueError, TypeError) as e:
                raise ConfigurationError(f"Cannot load GitHub App private key: {e}") from e
            return AppAuth(self.app_id or "", signer, self.app_installation_id or "")
        return TokenAuth(self.token or "")

    def __repr__(self) -> str:
        redacted = dataclasses.replace(
            self,
            token="[REDACTED]" if self.token else None,
            app_private_key="[REDACTED]" if self.app_private_key else None,
        )
        fields = ", ".join(
            f"{f.name}={getattr(redacted, f.name)!r}" for f in dataclasses.fields(self)
        )
        return f"ReportConfig({fields})"
