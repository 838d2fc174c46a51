import json

import pytest

from api_judge.categories import CATEGORY_KEYS


def make_payload() -> dict:
    categories = {
        key: {"score": 70 + i, "issues": [f"Issue in {key}"] if i % 2 else [], "suggestions": ["Add pagination"]}
        for i, key in enumerate(CATEGORY_KEYS)
    }
    categories["resource_design"] = {"score": 90, "issues": [], "suggestions": ["Add pagination"]}
    return {
        "overall_score": 85,
        "summary": "Good API design",
        "categories": categories,
        "critical_issues": [],
        "best_practices_followed": ["Uses plural nouns"],
    }


@pytest.fixture
def payload() -> dict:
    return make_payload()


@pytest.fixture
def document() -> str:
    return json.dumps(make_payload())


async def _fragments_of(text: str, size: int = 17):
    for i in range(0, len(text), size):
        yield text[i : i + size]


@pytest.fixture
def fragments_of():
    """Async iterator over ``text`` in fixed-size chunks, like a model stream."""
    return _fragments_of
