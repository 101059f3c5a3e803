from protean.domain import Domain
from sqlalchemy import create_engine

SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    for _, provider in domain.providers.items():
        if provider.conn_info["provider"] in SQL_PROVIDERS:
            yield provider


def _register_tables(domain: Domain, provider):
    # Touching a repository's DAO registers its table with the provider metadata
    records = list(domain.registry.aggregates.values()) + list(domain.registry.entities.values())
    for record in records:
        if record.cls.meta_.provider == provider.name:
            domain.repository_for(record.cls)._dao  # noqa: B018

    outbox_repos = getattr(domain, "_outbox_repos", {})
    if provider.name in outbox_repos:
        outbox_repos[provider.name]._dao  # noqa: B018


def setup_db(domain: Domain):
    """Create the tables of every SQL-backed aggregate and entity of ``domain``.

    Domains on the default in-memory provider have nothing to create.
    """
    with domain.domain_context():
        for provider in _sql_providers(domain):
            _register_tables(domain, provider)
            provider._metadata.create_all(create_engine(provider.conn_info["database_uri"]))


def drop_db(domain: Domain):
    with domain.domain_context():
        for provider in _sql_providers(domain):
            provider._metadata.drop_all(create_engine(provider.conn_info["database_uri"]))


def reset_data(domain: Domain):
    """Empty every provider and the event store. Must run inside a domain context."""
    for _, provider in domain.providers.items():
        provider._data_reset()
    domain.event_store.store._data_reset()
