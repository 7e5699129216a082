"""
Model tests: version history, variants, creatives, session keyed merges,
brief validation and the typed brief update.

Run with: pytest tests/test_models.py -v
"""

import pytest

from creative_studio.errors import BriefValidationError, ToolCallError, UnknownCreativeError
from creative_studio.models import (
    BriefFieldsUpdate,
    CampaignBrief,
    Concept,
    Creative,
    CreativeStatus,
    Session,
    Settings,
    Variant,
    VersionHistory,
)
from creative_studio.models.concept import missing_prompt
from creative_studio.models.session import replace_creative

from conftest import approved_creative, drafted_creative, make_image


# ============================================================================
# VersionHistory
# ============================================================================

class TestVersionHistory:
    def test_empty_history_has_no_cursor(self):
        history = VersionHistory()
        assert len(history) == 0
        assert history.cursor is None
        assert history.current is None

    def test_append_moves_cursor_to_new_entry(self):
        history = VersionHistory().append(make_image("1:1", "a")).append(make_image("1:1", "b"))
        assert len(history) == 2
        assert history.cursor == 1
        assert history.current.data == b"b:1:1"

    def test_append_after_select_still_moves_to_last(self):
        history = VersionHistory().append(make_image("1:1", "a")).append(make_image("1:1", "b"))
        history = history.select(0).append(make_image("1:1", "c"))
        assert history.cursor == 2
        assert [e.data for e in history.entries] == [b"a:1:1", b"b:1:1", b"c:1:1"]

    def test_select_clamps(self):
        history = VersionHistory().append(make_image("1:1", "a")).append(make_image("1:1", "b"))
        assert history.select(10).cursor == 1
        assert history.select(-3).cursor == 0

    def test_select_on_empty_history_is_noop(self):
        history = VersionHistory()
        assert history.select(2) is history

    def test_invalid_cursor_rejected(self):
        with pytest.raises(ValueError):
            VersionHistory(entries=(), cursor=0)
        with pytest.raises(ValueError):
            VersionHistory(entries=(make_image("1:1"),), cursor=None)
        with pytest.raises(ValueError):
            VersionHistory(entries=(make_image("1:1"),), cursor=1)


# ============================================================================
# Variant / Creative
# ============================================================================

class TestVariant:
    def test_settle_clears_busy_and_appends(self):
        variant = Variant(ratio="1:1", prompt="p").mark_busy()
        assert variant.busy
        settled = variant.settle(make_image("1:1"))
        assert not settled.busy
        assert len(settled.history) == 1

    def test_settle_without_image_keeps_history(self):
        variant = Variant(ratio="1:1", prompt="p").mark_busy().settle()
        assert not variant.busy
        assert len(variant.history) == 0


class TestCreative:
    def test_from_concept_has_one_variant_per_ratio(self):
        concept = Concept(title="T", subtitle="", rationale="R", prompts={"1:1": "a", "9:16": "b"})
        creative = Creative.from_concept("id1", concept, ["1:1", "9:16"], "low")
        assert creative.ratios == ["1:1", "9:16"]
        assert creative.primary_ratio == "1:1"
        assert creative.active_ratio == "1:1"
        assert creative.status == CreativeStatus.PLANNING
        assert creative.subtitle == "R"
        assert all(len(v.history) == 0 and not v.busy for v in creative.variants.values())

    def test_update_variant_touches_only_that_ratio(self):
        creative = drafted_creative()
        updated = creative.update_variant("9:16", lambda v: v.with_prompt("new"))
        assert updated.variant("9:16").prompt == "new"
        assert updated.variant("1:1") is creative.variant("1:1")
        assert updated.variant("16:9") is creative.variant("16:9")
        assert updated.ratios == creative.ratios

    def test_update_variant_cannot_change_ratio(self):
        creative = drafted_creative()
        with pytest.raises(ValueError):
            creative.update_variant("1:1", lambda v: Variant(ratio="4:3", prompt=v.prompt))

    def test_unknown_ratio(self):
        with pytest.raises(UnknownCreativeError):
            drafted_creative().variant("4:3")
        with pytest.raises(UnknownCreativeError):
            drafted_creative().with_active_ratio("4:3")

    def test_busy_if_any_variant_busy(self):
        creative = drafted_creative()
        assert not creative.busy
        assert creative.update_variant("16:9", Variant.mark_busy).busy
        assert all(v.busy for v in creative.mark_all_busy().variants.values())


class TestConcept:
    def test_missing_ratio_gets_placeholder_prompt(self):
        concept = Concept.from_payload(
            {"title": "Dog", "variant_prompts": {"1:1": "square prompt", "9:16": "  "}},
            ["1:1", "9:16", "16:9"],
        )
        assert concept.prompts["1:1"] == "square prompt"
        assert concept.prompts["9:16"] == missing_prompt("9:16")
        assert concept.prompts["16:9"] == missing_prompt("16:9")

    def test_camel_case_payload_and_default_title(self):
        concept = Concept.from_payload({"variantPrompts": {"1:1": "x"}}, ["1:1"])
        assert concept.prompts == {"1:1": "x"}
        assert concept.title == "Untitled concept"

    def test_non_object_variant_prompts_become_placeholders(self):
        concept = Concept.from_payload(
            {"title": "A", "variant_prompts": [{"ratio": "1:1", "prompt": "p"}]},
            ["1:1", "9:16"],
        )
        assert concept.title == "A"
        assert concept.prompts == {"1:1": missing_prompt("1:1"), "9:16": missing_prompt("9:16")}


# ============================================================================
# Session keyed merges
# ============================================================================

class TestSession:
    def test_replace_creative_only_touches_key(self):
        a, b = drafted_creative("a"), drafted_creative("b")
        result = replace_creative([a, b], "b", lambda c: c.with_status(CreativeStatus.APPROVED))
        assert result[0] is a
        assert result[1].status == CreativeStatus.APPROVED

    def test_replace_creative_unknown_id(self):
        with pytest.raises(UnknownCreativeError):
            replace_creative([drafted_creative("a")], "zzz", lambda c: c)

    def test_update_variant_returns_new_variant(self):
        session = Session(creatives=[drafted_creative("a")])
        variant = session.update_variant("a", "9:16", lambda v: v.with_prompt("changed"))
        assert variant.prompt == "changed"
        assert session.get("a").variant("9:16").prompt == "changed"

    def test_append_rejects_duplicate_ids(self):
        session = Session(creatives=[drafted_creative("a")])
        with pytest.raises(ValueError):
            session.append_creatives([drafted_creative("a")])

    def test_discard(self):
        session = Session(creatives=[drafted_creative("a"), drafted_creative("b")])
        session.discard("a")
        assert [c.id for c in session.creatives] == ["b"]
        with pytest.raises(UnknownCreativeError):
            session.discard("a")

    def test_cost_and_errors(self):
        session = Session()
        session.add_cost(0.14)
        session.add_cost(0.04)
        assert session.total_cost == pytest.approx(0.18)
        session.record_error("one")
        session.record_error("two")
        assert session.error_text == "one\ntwo"
        session.clear_errors()
        assert session.errors == []

    def test_reset(self):
        session = Session(
            brief=CampaignBrief(audience_action="x", key_message="y"),
            creatives=[approved_creative("a")],
            total_cost=1.0,
            reference_summary="s",
            errors=["e"],
        )
        session.reset()
        assert session == Session()


# ============================================================================
# Brief and settings
# ============================================================================

class TestBrief:
    def test_required_fields(self):
        with pytest.raises(BriefValidationError):
            CampaignBrief(audience_action="buy").validate()
        with pytest.raises(BriefValidationError):
            CampaignBrief(key_message="tasty").validate()
        CampaignBrief(audience_action="buy", key_message="tasty").validate()

    def test_planning_text_includes_summary_only_when_present(self):
        brief = CampaignBrief(audience_action="buy", key_message="tasty", context="see https://example.com")
        assert "referenced URLs" not in brief.to_planning_text(None)
        assert "Key points extracted" in brief.to_planning_text("great reviews")

    def test_state_text_marks_empty_fields(self):
        text = CampaignBrief().to_state_text()
        assert text.startswith("CURRENT FORM STATE:")
        assert "Audience action: Not defined" in text

    @pytest.mark.parametrize("settings", [
        Settings(ratios=()),
        Settings(ratios=("1:1", "1:1")),
        Settings(ratios=("2:1",)),
        Settings(quality="ultra"),
        Settings(count=0),
    ])
    def test_invalid_settings(self, settings):
        with pytest.raises(BriefValidationError):
            settings.validate()


class TestBriefFieldsUpdate:
    def test_replaces_only_named_fields(self):
        brief = CampaignBrief(audience_action="old action", key_message="old message", context="old context")
        update = BriefFieldsUpdate.from_args({"key_message": "new message"})
        updated = update.apply_to(brief)
        assert updated.key_message == "new message"
        assert updated.audience_action == "old action"
        assert updated.context == "old context"

    def test_replacement_not_append(self):
        brief = CampaignBrief(context="first description")
        updated = BriefFieldsUpdate.from_args({"context": "second description"}).apply_to(brief)
        assert updated.context == "second description"

    @pytest.mark.parametrize("args", [
        {"budget": "100"},
        {"key_message": 42},
        {"objective": "Win awards"},
    ])
    def test_invalid_args(self, args):
        with pytest.raises(ToolCallError):
            BriefFieldsUpdate.from_args(args)

    def test_changed_fields(self):
        update = BriefFieldsUpdate.from_args({"objective": "Generate leads", "context": None})
        assert update.changed_fields() == {"objective": "Generate leads"}
