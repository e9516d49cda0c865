import pytest

from page_composer.history import HistoryManager
from page_composer.transforms import apply_transforms, patch_content, remove_section, set_tone


def test_undo_restores_initial_sections(minimal_page):
    sections = list(minimal_page.sections)
    transforms = [set_tone("hero", "bold"), remove_section("about")]
    history = HistoryManager(sections)

    applied = history.apply(transforms)
    assert applied == apply_transforms(transforms, sections)

    assert history.undo() == sections
    assert history.current() == sections


def test_redo_restores_forward_state(minimal_page):
    sections = list(minimal_page.sections)
    transforms = [set_tone("hero", "bold")]
    history = HistoryManager.from_page(minimal_page)

    expected = history.apply(transforms)
    history.undo()

    assert history.redo() == expected
    assert history.current() == expected


def test_boundaries_return_none(minimal_page):
    history = HistoryManager(minimal_page.sections)

    assert not history.can_undo()
    assert history.undo() is None
    assert history.redo() is None

    history.apply(set_tone("hero", "bold"))
    assert history.redo() is None
    assert history.can_undo()


def test_apply_after_undo_discards_redo_branch(minimal_page):
    history = HistoryManager(minimal_page.sections)
    history.apply(set_tone("hero", "bold"))
    history.undo()

    branched = history.apply(set_tone("hero", "playful"))

    assert not history.can_redo()
    assert len(history) == 2
    assert branched[0].tone == "playful"


def test_limit_drops_oldest_entries(minimal_page):
    history = HistoryManager(minimal_page.sections, limit=3)
    for index in range(5):
        history.apply(patch_content("hero", {"headline": f"v{index}"}))

    assert len(history) == 3
    assert history.current()[0].content["headline"] == "v4"
    history.undo()
    history.undo()
    assert history.undo() is None
    assert history.current()[0].content["headline"] == "v2"


def test_snapshots_are_isolated_from_callers(minimal_page):
    history = HistoryManager(minimal_page.sections)

    current = history.current()
    current[0].props["content"]["headline"] = "mutated outside"

    assert history.current()[0].content["headline"] == "Ship landing pages in minutes"


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        HistoryManager([], limit=0)
