import pytest

from page_composer.errors import InvalidInputError
from page_composer.interpreter import BUILDERS, NOT_UNDERSTOOD, CommandInterpreter, interpret_chat
from page_composer.models.edit import IntentKind
from page_composer.registry import default_registry
from page_composer.transforms import apply_transforms


def _run(command, sections, **kwargs):
    interpretation = interpret_chat(command, sections, **kwargs)
    return interpretation, apply_transforms(interpretation.transforms, sections)


def test_every_intent_has_a_builder():
    assert set(BUILDERS) == set(IntentKind)


def test_make_hero_dramatic_on_minimal_page(minimal_page):
    interpretation, result = _run("make the hero more dramatic", minimal_page.sections)

    assert interpretation.intent_names == ["makeHeroDramatic"]
    hero = next(s for s in result if s.meta.kind == "hero")
    assert hero.tone == "bold"
    assert hero.meta.variant == "full-bleed"
    assert hero.id == minimal_page.sections[0].id


def test_add_social_proof_on_bold_page(bold_page):
    interpretation, result = _run("add social proof", bold_page.sections)

    assert interpretation.intent_names == ["addSocialProof"]
    kinds = [s.meta.kind for s in result]
    assert kinds == ["hero", "features", "testimonials", "cta"]
    testimonials = result[2]
    assert testimonials.meta.variant == "carousel"
    assert testimonials.tone == "bold"
    assert [s.position for s in result] == [0, 1, 2, 3]


def test_add_social_proof_without_variant_warns(bold_page):
    registry = default_registry().without_kind("testimonials")

    interpretation, result = _run("add social proof", bold_page.sections, registry=registry)

    assert interpretation.transforms == []
    assert interpretation.warnings
    assert result == list(bold_page.sections)


def test_add_social_proof_twice_is_a_noop(bold_page):
    _, once = _run("add social proof", bold_page.sections)

    interpretation, twice = _run("add testimonials", once)

    assert interpretation.transforms == []
    assert "Page already has a testimonials section." in interpretation.warnings
    assert twice == once


def test_unknown_command(minimal_page):
    interpretation, result = _run("purple monkey dishwasher", minimal_page.sections)

    assert interpretation.transforms == []
    assert interpretation.intents == []
    assert NOT_UNDERSTOOD in interpretation.warnings
    assert result == list(minimal_page.sections)


def test_non_string_command_is_rejected(minimal_page):
    with pytest.raises(InvalidInputError):
        interpret_chat(42, minimal_page.sections)


def test_compound_command_follows_rule_order(minimal_page):
    interpretation, result = _run(
        "add social proof and make the hero more dramatic",
        minimal_page.sections,
    )

    assert interpretation.intent_names == ["makeHeroDramatic", "addSocialProof"]
    assert result[0].tone == "bold"
    assert "testimonials" in [s.meta.kind for s in result]


def test_increase_contrast(minimal_page):
    interpretation, result = _run("increase contrast", minimal_page.sections)

    assert interpretation.intent_names == ["increaseContrast"]
    assert all(s.props["contrast"] == "high" for s in result)
    assert [s.tone for s in result] == ["corporate", "corporate", "corporate", "bold"]


def test_tighten_above_the_fold(minimal_page):
    interpretation, result = _run("tighten above the fold", minimal_page.sections)

    assert interpretation.intent_names == ["tightenAboveTheFold"]
    assert [s.meta.kind for s in result] == ["hero", "cta", "features"]
    assert result[0].content["bullets"] == ["No code required", "Brand-aware layouts"]


def test_apply_theme(minimal_page):
    interpretation, result = _run("apply playful theme", minimal_page.sections)

    assert interpretation.intent_names == ["applyTheme:playful"]
    assert {s.tone for s in result} == {"playful"}


def test_optimize_for_conversion_adds_cta_when_missing(demo_brand):
    from page_composer.generator import generate_page

    page = generate_page(None, demo_brand, "minimal", ["hero", "features", "faq"]).primary

    interpretation, result = _run("optimize for conversion", page.sections)

    assert interpretation.intent_names == ["optimizeForConversion"]
    assert [s.meta.kind for s in result] == ["hero", "cta", "features", "faq"]
    assert result[1].tone == "bold"
    assert result[1].props["actions"][0]["label"] == "Get started"
    assert result[0].tone == "bold"


def test_urgency_banner_goes_first(minimal_page):
    interpretation, result = _run('add urgency banner: "Ends Friday"', minimal_page.sections)

    assert interpretation.intent_names == ["addUrgencyBanner"]
    banner = result[0]
    assert banner.meta.kind == "cta"
    assert banner.id == "cta-2"
    assert banner.content["headline"] == "Ends Friday"
    assert [s.position for s in result] == list(range(len(result)))


def test_swap_variant(minimal_page):
    interpretation, result = _run("swap features to bento-grid", minimal_page.sections)

    assert interpretation.intent_names == ["swapVariant:features->bento-grid"]
    assert result[1].meta.variant == "bento-grid"


def test_swap_to_unknown_variant_warns(minimal_page):
    interpretation, result = _run("swap features to carousel", minimal_page.sections)

    assert interpretation.transforms == []
    assert interpretation.warnings
    assert result == list(minimal_page.sections)


def test_reorder_by_index(minimal_page):
    interpretation, result = _run("move section 4 to 2", minimal_page.sections)

    assert interpretation.intent_names == ["reorder:3->1"]
    assert [s.meta.kind for s in result] == ["hero", "cta", "features", "about"]


def test_reorder_by_kind(minimal_page):
    _, before = _run("move cta before features", minimal_page.sections)
    _, after = _run("move the hero after about", minimal_page.sections)

    assert [s.meta.kind for s in before] == ["hero", "cta", "features", "about"]
    assert [s.meta.kind for s in after] == ["features", "about", "hero", "cta"]


def test_remove_section(minimal_page):
    interpretation, result = _run("remove the about section", minimal_page.sections)

    assert interpretation.intent_names == ["removeSection:about"]
    assert [s.meta.kind for s in result] == ["hero", "features", "cta"]
    assert [s.position for s in result] == [0, 1, 2]


def test_remove_missing_section_warns(minimal_page):
    interpretation, result = _run("remove pricing", minimal_page.sections)

    assert interpretation.intent_names == ["removeSection:pricing"]
    assert interpretation.transforms == []
    assert "No pricing section found to remove." in interpretation.warnings
    assert NOT_UNDERSTOOD not in interpretation.warnings
    assert result == list(minimal_page.sections)


def test_update_content(minimal_page):
    _, headline = _run('set headline to "Launch faster"', minimal_page.sections)
    _, field = _run("update cta description: Free for 14 days", minimal_page.sections)

    assert headline[0].content["headline"] == "Launch faster"
    assert field[3].content["description"] == "Free for 14 days"
    assert field[3].content["headline"] == "Ready to launch?"


def test_build_intent_bypasses_phrases(minimal_page):
    interpreter = CommandInterpreter()

    built = interpreter.build_intent("applyTheme", {"tone": "corporate"}, minimal_page.sections, confidence=0.7)
    assert built.intent_names == ["applyTheme:corporate"]
    assert built.confidence == 0.7

    unknown = interpreter.build_intent("teleport", {}, minimal_page.sections)
    assert unknown.intents == []
    assert unknown.warnings == ["Unknown intent: teleport"]

    broken = interpreter.build_intent("applyTheme", {"tone": "grungy"}, minimal_page.sections)
    assert broken.intents == []
    assert broken.warnings


def test_interpretation_is_pure(minimal_page):
    sections = list(minimal_page.sections)

    first = interpret_chat("make the hero more dramatic and add social proof", sections)
    second = interpret_chat("make the hero more dramatic and add social proof", sections)

    assert first == second
    assert sections == list(minimal_page.sections)


def test_build_intent_coerces_non_string_params(minimal_page):
    interpreter = CommandInterpreter()

    built = interpreter.build_intent(
        "reorder", {"kind": "CTA", "relation": "to", "anchor": 2}, minimal_page.sections
    )
    result = apply_transforms(built.transforms, minimal_page.sections)

    assert built.intent_names == ["reorder:3->1"]
    assert [s.meta.kind for s in result] == ["hero", "cta", "features", "about"]


def test_build_intent_with_unusable_params_warns(minimal_page):
    interpreter = CommandInterpreter()

    built = interpreter.build_intent("reorder", {"from_index": None, "to_index": 1}, minimal_page.sections)

    assert built.intents == []
    assert built.transforms == []
    assert built.warnings
