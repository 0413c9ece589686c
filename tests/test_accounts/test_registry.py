import pytest

from runtimeerror.accounts import AccountRegistry
from runtimeerror.providers import (
    GitHubProvider,
    InMemoryProvider,
    JiraProvider,
    ProviderKind,
    UnknownProviderError,
)


def test_creates_account_bound_to_provider(registry):
    account = registry.find_or_create("repoA", "secretB", "none")
    assert account.repo == "repoA"
    assert account.secret == "secretB"
    assert account.provider is ProviderKind.NONE
    assert isinstance(account.client, InMemoryProvider)


def test_reuses_existing_instance(registry):
    account = registry.find_or_create("repoA", "secretB", "none")
    assert registry.find_or_create("repoA", "secretB", "none") is account
    assert registry.find_or_create("repoA", "secretB", ProviderKind.NONE) is account
    assert len(registry) == 1


def test_distinct_triples_are_distinct_accounts(registry):
    a = registry.find_or_create("repoA", "secretA", "none")
    b = registry.find_or_create("repoA", "secretB", "none")
    c = registry.find_or_create("repoB", "secretA", "none")
    assert len({a.key, b.key, c.key}) == 3


def test_equal_triples_compare_equal_across_registries():
    a = AccountRegistry().find_or_create("repoA", "secretA", "none", label="x")
    b = AccountRegistry().find_or_create("repoA", "secretA", "none", label="y")
    assert a is not b
    assert a == b
    assert hash(a) == hash(b)


@pytest.mark.parametrize(
    "provider, client_class",
    [("github", GitHubProvider), ("JIRA", JiraProvider), ("none", InMemoryProvider)],
)
def test_provider_selection(registry, provider, client_class):
    account = registry.find_or_create("owner/repo", "token", provider)
    assert isinstance(account.client, client_class)
    assert account.client.repo == "owner/repo"
    assert account.client.secret == "token"


def test_unknown_provider(registry):
    with pytest.raises(UnknownProviderError):
        registry.find_or_create("repoA", "secretA", "smtp")
    assert len(registry) == 0


def test_public_secret_prefers_alias(registry):
    account = registry.find_or_create("repoA", "resolved-token", "none", alias="abc.def")
    assert account.public_secret == "abc.def"
    assert registry.find_or_create("repoB", "plain", "none").public_secret == "plain"


def test_empty_provider_map_registers_nothing():
    registry = AccountRegistry({})
    with pytest.raises(UnknownProviderError):
        registry.find_or_create("repoA", "secretA", "none")
    assert len(registry) == 0
