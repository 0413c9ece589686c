from runtimeerror.providers.base import (
    ProviderKind,
    Ticket,
    TicketAttrs,
    TicketProvider,
    UnknownProviderError,
    parse_provider_kind,
)
from runtimeerror.providers.github import GitHubProvider
from runtimeerror.providers.jira import JiraProvider
from runtimeerror.providers.memory import InMemoryProvider

PROVIDERS: dict[ProviderKind, type[TicketProvider]] = {
    ProviderKind.NONE: InMemoryProvider,
    ProviderKind.GITHUB: GitHubProvider,
    ProviderKind.JIRA: JiraProvider,
}

__all__ = [
    "PROVIDERS",
    "GitHubProvider",
    "InMemoryProvider",
    "JiraProvider",
    "ProviderKind",
    "Ticket",
    "TicketAttrs",
    "TicketProvider",
    "UnknownProviderError",
    "parse_provider_kind",
]
