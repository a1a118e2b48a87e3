"""Schema management for the SQL providers behind the trust domain.

The memory provider needs no schema; only SQLite and PostgreSQL providers
get tables created or dropped.
"""

import structlog
from protean.domain import Domain
from sqlalchemy import create_engine

logger = structlog.get_logger(__name__)

SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    for provider in domain.providers.values():
        if provider.conn_info["provider"] in SQL_PROVIDERS:
            yield provider, create_engine(provider.conn_info["database_uri"])


def _register_models(domain: Domain, provider) -> int:
    """Touch each repository's DAO so its SQLAlchemy model joins the provider metadata."""
    registries = (
        domain.registry.aggregates,
        domain.registry.entities,
        domain.registry.projections,
    )
    count = 0
    for registry in registries:
        for record in registry.values():
            if record.cls.meta_.provider == provider.name:
                domain.repository_for(record.cls)._dao  # noqa: B018
                count += 1
    return count


def setup_db(domain: Domain):
    """Create tables for every aggregate, entity and projection."""
    with domain.domain_context():
        for provider, engine in _sql_providers(domain):
            models = _register_models(domain, provider)
            provider._metadata.create_all(engine)
            logger.info("Schema created", provider=provider.name, models=models)


def drop_db(domain: Domain):
    with domain.domain_context():
        for provider, engine in _sql_providers(domain):
            provider._metadata.drop_all(engine)
            logger.info("Schema dropped", provider=provider.name)
