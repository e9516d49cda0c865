from pathlib import Path

import pytest

from page_composer.generator import generate_page
from page_composer.models.content import Brand, ContentGraph

DATA_DIR = Path(__file__).parent / "data"


def load_content(name: str = "demo_content") -> ContentGraph:
    return ContentGraph.model_validate_json((DATA_DIR / f"{name}.json").read_text(encoding="utf-8"))


def load_brand(name: str = "demo_brand") -> Brand:
    return Brand.model_validate_json((DATA_DIR / f"{name}.json").read_text(encoding="utf-8"))


@pytest.fixture
def demo_content() -> ContentGraph:
    return load_content()


@pytest.fixture
def demo_brand() -> Brand:
    return load_brand()


@pytest.fixture
def minimal_page(demo_content, demo_brand):
    return generate_page(demo_content, demo_brand, "minimal", ["hero", "features", "about", "cta"]).primary


@pytest.fixture
def bold_page(demo_content, demo_brand):
    return generate_page(demo_content, demo_brand, "bold", ["hero", "features", "cta"]).primary
