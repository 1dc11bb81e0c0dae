"""Domain knowledge provider: lookup, progressive disclosure and routing."""

from __future__ import annotations

import pytest

from strata.domain import BUILTIN_DOMAINS
from strata.domain import DisclosureLevel
from strata.domain import DomainDefinition
from strata.domain import DomainKnowledgeProvider
from strata.domain import DomainTerm
from strata.domain.provider import render_definition
from strata.engine.tokens import estimate_tokens
from strata.errors import ConfigurationError


@pytest.fixture()
def provider() -> DomainKnowledgeProvider:
    return DomainKnowledgeProvider()


def _text(definition: DomainDefinition, level: DisclosureLevel) -> str:
    return "\n".join(render_definition(definition, level))


class TestCatalog:
    def test_builtin_domains(self, provider):
        assert provider.domain_ids == [
            "manufacturing",
            "environment",
            "digital",
            "finance",
            "startup",
            "export",
        ]

    def test_every_domain_has_content(self):
        for definition in BUILTIN_DOMAINS:
            assert definition.keywords
            assert definition.terms
            assert definition.rules
            assert definition.token_budget > 0

    def test_duplicate_ids_rejected(self):
        definition = DomainDefinition(domain_id="x", label="X")
        with pytest.raises(ConfigurationError):
            DomainKnowledgeProvider([definition, definition])


class TestLookup:
    def test_returns_full_knowledge(self, provider):
        context = provider.lookup("manufacturing")
        assert context.domain_id == "manufacturing"
        assert context.knowledge.startswith("Domain: Manufacturing & Smart Factory")
        assert "Rules:" in context.knowledge
        assert context.token_budget == 1600

    def test_unknown_domain_is_configuration_error(self, provider):
        with pytest.raises(ConfigurationError):
            provider.lookup("aerospace")


class TestRender:
    def test_full_when_budget_allows(self, provider):
        text, level = provider.render_with_level("finance", 10_000)
        assert level is DisclosureLevel.full
        assert text == provider.lookup("finance").knowledge

    def test_falls_back_to_terminology(self, provider):
        definition = provider.definition("startup")
        budget = estimate_tokens(_text(definition, DisclosureLevel.terminology))
        text, level = provider.render_with_level("startup", budget)
        assert level is DisclosureLevel.terminology
        assert "Rules:" not in text
        assert "- TIPS:" in text

    def test_falls_back_to_metadata(self, provider):
        definition = provider.definition("export")
        budget = estimate_tokens(_text(definition, DisclosureLevel.metadata))
        text, level = provider.render_with_level("export", budget)
        assert level is DisclosureLevel.metadata
        assert "Terms: 수출바우처, KOTRA, SAM.gov, UNGM, FTA 원산지" in text

    @pytest.mark.parametrize("budget", [0, 5, 12, 40, 200, 1600])
    def test_always_fits_budget(self, provider, budget):
        for domain_id in provider.domain_ids:
            assert estimate_tokens(provider.render(domain_id, budget)) <= budget

    def test_zero_budget_is_empty(self, provider):
        assert provider.render("digital", 0) == ""


class TestKeywordRouting:
    def test_scores_share_of_keywords(self, provider):
        matches = provider.match_by_keywords("스마트공장 MES 도입과 OEE 개선")
        assert matches[0].domain_id == "manufacturing"
        assert matches[0].matched_keywords == ("스마트공장", "MES", "OEE")
        assert matches[0].score == pytest.approx(3 / 20)

    def test_case_insensitive(self, provider):
        assert provider.match_by_keywords("we run an mes")[0].domain_id == "manufacturing"

    def test_ranked_descending(self, provider):
        matches = provider.match_by_keywords("TIPS 투자 유치 후 수출 준비")
        scores = [m.score for m in matches]
        assert scores == sorted(scores, reverse=True)
        assert matches[0].domain_id == "startup"

    def test_ties_keep_catalog_order(self):
        provider = DomainKnowledgeProvider(
            [
                DomainDefinition(domain_id="b", label="B", keywords=("alpha", "beta")),
                DomainDefinition(domain_id="a", label="A", keywords=("alpha", "gamma")),
            ]
        )
        assert [m.domain_id for m in provider.match_by_keywords("alpha")] == ["b", "a"]

    def test_no_match(self, provider):
        assert provider.match_by_keywords("zzz") == []
        assert provider.route("zzz") is None
        assert provider.route("zzz", default="startup") == "startup"

    def test_route_picks_best(self, provider):
        assert provider.route("탄소중립 ESG 온실가스 보고") == "environment"

    def test_definitions_without_keywords_never_match(self):
        provider = DomainKnowledgeProvider(
            [
                DomainDefinition(
                    domain_id="x",
                    label="X",
                    terms=(DomainTerm(name="t", description="d"),),
                )
            ]
        )
        assert provider.match_by_keywords("anything") == []
