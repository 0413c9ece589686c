"""Accounts: one tracker binding per (repo, secret, provider)."""

from dataclasses import dataclass, field

import structlog

from runtimeerror.providers import (
    PROVIDERS,
    ProviderKind,
    TicketProvider,
    UnknownProviderError,
    parse_provider_kind,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class Account:
    repo: str
    secret: str
    provider: ProviderKind
    label: str | None = field(default=None, compare=False)
    alias: str | None = field(default=None, compare=False, repr=False)
    client: TicketProvider | None = field(default=None, compare=False, repr=False)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.repo, self.secret, self.provider.value)

    @property
    def public_secret(self) -> str:
        """The secret as it was addressed, safe to put in outgoing mail headers."""
        return self.alias or self.secret


class AccountRegistry:
    """Process-wide memo of accounts, keyed by value."""

    def __init__(self, providers: dict[ProviderKind, type[TicketProvider]] | None = None):
        self._providers = providers if providers is not None else PROVIDERS
        self._accounts: dict[tuple[str, str, str], Account] = {}

    def find_or_create(
        self,
        repo: str,
        secret: str,
        provider: "str | ProviderKind",
        *,
        label: str | None = None,
        alias: str | None = None,
    ) -> Account:
        kind = parse_provider_kind(provider)
        key = (repo, secret, kind.value)
        account = self._accounts.get(key)
        if account is not None:
            return account

        provider_class = self._providers.get(kind)
        if provider_class is None:
            raise UnknownProviderError(f"No client registered for provider {kind.value!r}")

        client = provider_class(repo, secret, label=label)
        account = Account(
            repo=repo,
            secret=secret,
            provider=kind,
            label=label,
            alias=alias,
            client=client,
        )
        self._accounts[key] = account
        logger.info("account_created", repo=repo, provider=kind.value)
        return account

    def __len__(self) -> int:
        return len(self._accounts)
