from page_composer.augmentation import AugmentedInterpreter, ExternalSuggestion
from page_composer.interpreter import NOT_UNDERSTOOD, CommandInterpreter
from page_composer.transforms import apply_transforms


class FakeExternal:
    def __init__(self, suggestion=None, error=None):
        self.suggestion = suggestion
        self.error = error
        self.calls = []

    def suggest(self, command, sections):
        self.calls.append(command)
        if self.error is not None:
            raise self.error
        return self.suggestion


def _suggestion(confidence, *intents):
    return ExternalSuggestion.model_validate(
        {"intents": list(intents), "confidence": confidence, "reasoning": "test"}
    )


def test_confident_deterministic_result_skips_external(minimal_page):
    external = FakeExternal(_suggestion(0.99, {"intent": "applyTheme", "params": {"tone": "playful"}}))
    interpreter = AugmentedInterpreter(CommandInterpreter(), external)

    result = interpreter.interpret("make the hero more dramatic", minimal_page.sections)

    assert result.intent_names == ["makeHeroDramatic"]
    assert external.calls == []


def test_external_fills_in_unrecognised_command(minimal_page):
    external = FakeExternal(_suggestion(0.9, {"intent": "applyTheme", "params": {"tone": "playful"}}))
    interpreter = AugmentedInterpreter(CommandInterpreter(), external)

    result = interpreter.interpret("make it feel fun and friendly", minimal_page.sections)

    assert external.calls == ["make it feel fun and friendly"]
    assert result.intent_names == ["applyTheme:playful"]
    assert result.confidence == 0.9
    assert NOT_UNDERSTOOD not in result.warnings
    sections = apply_transforms(result.transforms, minimal_page.sections)
    assert {s.tone for s in sections} == {"playful"}


def test_low_confidence_suggestion_is_ignored(minimal_page):
    external = FakeExternal(_suggestion(0.2, {"intent": "applyTheme", "params": {"tone": "playful"}}))
    interpreter = AugmentedInterpreter(CommandInterpreter(), external, confidence_threshold=0.6)

    result = interpreter.interpret("vibes", minimal_page.sections)

    assert result.transforms == []
    assert result.intents == []
    assert NOT_UNDERSTOOD in result.warnings


def test_external_failure_degrades_to_deterministic_result(minimal_page):
    external = FakeExternal(error=RuntimeError("quota exceeded"))
    interpreter = AugmentedInterpreter(CommandInterpreter(), external)

    result = interpreter.interpret("vibes", minimal_page.sections)

    assert result.transforms == []
    assert "External interpreter unavailable." in result.warnings


def test_unknown_external_intent_keeps_base_result(minimal_page):
    external = FakeExternal(_suggestion(0.95, {"intent": "teleport"}))
    interpreter = AugmentedInterpreter(CommandInterpreter(), external)

    result = interpreter.interpret("vibes", minimal_page.sections)

    assert result.intents == []
    assert "Unknown intent: teleport" in result.warnings


def test_without_external_matches_base(minimal_page):
    base = CommandInterpreter()
    interpreter = AugmentedInterpreter(base)

    assert interpreter.interpret("vibes", minimal_page.sections) == base.interpret("vibes", minimal_page.sections)
