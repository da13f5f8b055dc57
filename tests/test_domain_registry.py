"""Tests for the domain registry."""

import pytest

from docs_expert.config.domains import INNGEST_DOMAIN
from docs_expert.core.domain_registry import DomainRegistry
from docs_expert.core.exceptions import DomainError, ValidationError


@pytest.fixture()
def registry():
    return DomainRegistry()


def test_builtin_domain(registry):
    domain = registry.require_active("inngest")

    assert domain.namespace == "inngest-docs"
    assert domain.general_help_source == "inngest-general-help"
    assert [d.id for d in registry.list_active()] == ["inngest"]


@pytest.mark.parametrize("domain_id", [None, "", "  ", "unknown"])
def test_require_active_rejects(registry, domain_id):
    with pytest.raises(DomainError):
        registry.require_active(domain_id)


def test_inactive_domain(registry):
    registry.upsert(INNGEST_DOMAIN.model_copy(update={"is_active": False}))

    with pytest.raises(DomainError):
        registry.require_active("inngest")
    assert registry.list_active() == []


def test_ensure_auto_provisions_once(registry):
    created = registry.ensure(" Acme ")

    assert created.id == "acme"
    assert created.namespace == "acme-docs"
    assert created.name == "Acme Documentation"
    assert "acme" in registry
    assert registry.ensure("ACME") is created
    assert len(registry) == 2


def test_ensure_keeps_existing_domain(registry):
    assert registry.ensure("inngest").system_prompt == INNGEST_DOMAIN.system_prompt


def test_ensure_rejects_empty_name(registry):
    with pytest.raises(ValidationError):
        registry.ensure("   ")


def test_lookup_is_case_insensitive(registry):
    assert registry.get("INNGEST") is not None


def test_empty_registry():
    assert len(DomainRegistry(domains=[])) == 0
