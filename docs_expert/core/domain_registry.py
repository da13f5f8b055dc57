"""
================================================================================
FILE: docs_expert/core/domain_registry.py
================================================================================

PURPOSE:
    Explicit registry of documentation domains. Injected into the Retriever,
    the Response Generator and the ingestion service instead of being read
    as module-level state.

OPERATIONS:
    - get(id): domain or None
    - require_active(id): domain, or DomainError if unknown/inactive
    - upsert(domain): create or replace
    - list_active(): active domains in registration order
    - ensure(id): existing domain, or auto-provision one for uploads

KEY FACTS:
    - Domains are never deleted at runtime
    - One registry per process, created by ServiceContainer at startup
    - Domain ids are normalized to lowercase
"""

import logging
from typing import Dict, Iterable, List, Optional

from docs_expert.config.domains import BUILTIN_DOMAINS, build_uploaded_domain
from docs_expert.pipeline.schemas import Domain

from .exceptions import DomainError, ValidationError

logger = logging.getLogger(__name__)


def normalize_domain_id(domain_id: str) -> str:
    return domain_id.strip().lower()


class DomainRegistry:
    """In-process map of domain id -> Domain."""

    def __init__(self, domains: Optional[Iterable[Domain]] = None):
        self._domains: Dict[str, Domain] = {}
        for domain in BUILTIN_DOMAINS if domains is None else domains:
            self.upsert(domain)
        logger.info(f"DomainRegistry initialized with {len(self._domains)} domain(s)")

    def get(self, domain_id: str) -> Optional[Domain]:
        return self._domains.get(normalize_domain_id(domain_id))

    def require_active(self, domain_id: Optional[str]) -> Domain:
        """
        Resolve a domain for retrieval or generation.

        Raises:
            DomainError: unknown, inactive or empty domain id
        """
        if not domain_id or not domain_id.strip():
            raise DomainError("A domain is required", context={"domain": domain_id})

        domain = self.get(domain_id)
        if domain is None:
            raise DomainError(
                f"Unknown domain '{domain_id}'",
                context={"domain": domain_id, "known": sorted(self._domains)},
            )
        if not domain.is_active:
            raise DomainError(
                f"Domain '{domain_id}' is not active",
                context={"domain": domain_id},
            )
        return domain

    def upsert(self, domain: Domain) -> Domain:
        key = normalize_domain_id(domain.id)
        if key != domain.id:
            domain = domain.model_copy(update={"id": key})
        existed = key in self._domains
        self._domains[key] = domain
        logger.info(
            f"Domain {'updated' if existed else 'registered'}: {key}",
            extra={"domain": key, "namespace": domain.namespace},
        )
        return domain

    def list_active(self) -> List[Domain]:
        return [d for d in self._domains.values() if d.is_active]

    def ensure(self, domain_id: str) -> Domain:
        """Return the domain, auto-provisioning it with a generic prompt if unknown."""
        key = normalize_domain_id(domain_id or "")
        if not key:
            raise ValidationError("Domain name must not be empty")

        existing = self._domains.get(key)
        if existing is not None:
            return existing

        logger.info(f"Auto-provisioning domain '{key}'")
        return self.upsert(build_uploaded_domain(key))

    def __contains__(self, domain_id: str) -> bool:
        return normalize_domain_id(domain_id) in self._domains

    def __len__(self) -> int:
        return len(self._domains)


__all__ = ["DomainRegistry", "normalize_domain_id"]
