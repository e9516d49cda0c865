from page_composer.analysis import analyze_transform
from page_composer.interpreter import interpret_chat
from page_composer.transforms import apply_transforms


def test_no_change_produces_empty_diff(minimal_page):
    plan = analyze_transform(minimal_page.sections, minimal_page.sections)

    assert not plan.changed
    assert plan.diff == []


def test_diff_reports_moves_tones_and_additions(minimal_page):
    before = list(minimal_page.sections)
    interpretation = interpret_chat("optimize for conversion and add social proof", before)
    after = apply_transforms(interpretation.transforms, before)

    plan = analyze_transform(before, after)

    types = {entry.type for entry in plan.diff}
    assert {"moved", "changed", "added"} <= types
    assert any(entry.key == "props.tone" and entry.id == "hero-1" for entry in plan.diff)
    assert "Call to action sits above the fold." in plan.summary
    assert plan.impact.conversion == 0.9


def test_diff_reports_removals_and_content(minimal_page):
    before = list(minimal_page.sections)
    after = apply_transforms(
        interpret_chat('remove about; set headline to "Hi"', before).transforms,
        before,
    )

    plan = analyze_transform(before, after)

    removed = [entry for entry in plan.diff if entry.type == "removed"]
    assert [entry.kind for entry in removed] == ["about"]
    headline = next(entry for entry in plan.diff if entry.key == "content.headline")
    assert headline.before == "Ship landing pages in minutes"
    assert headline.after == "Hi"
    assert "Removed sections." in plan.summary


def test_prop_patches_are_part_of_the_diff(bold_page):
    before = list(bold_page.sections)
    after = apply_transforms(interpret_chat("increase contrast", before).transforms, before)

    plan = analyze_transform(before, after)

    assert plan.changed
    contrast = [entry for entry in plan.diff if entry.key == "props.contrast"]
    assert [entry.id for entry in contrast] == ["hero-1", "features-1", "cta-1"]
    assert all(entry.before is None and entry.after == "high" for entry in contrast)
    assert "Updated section styling." in plan.summary


def test_variant_swap_reports_layout_change(minimal_page):
    before = list(minimal_page.sections)
    after = apply_transforms(interpret_chat("swap features to bento-grid", before).transforms, before)

    plan = analyze_transform(before, after)

    keys = {entry.key for entry in plan.diff}
    assert {"meta.variant", "props.layout"} <= keys
