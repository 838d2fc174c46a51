from api_judge.sanitizer import clean_text, sanitize_assessment
from api_judge.schemas import Assessment


def _assessment(**overrides) -> Assessment:
    data = {
        "overall_score": 80,
        "summary": 'Say "hello"\nto\tthe <API>\\',
        "categories": {
            "versioning": {
                "score": 60,
                "issues": ["one", "two", "three"],
                "suggestions": ["a", "b", "c"],
            }
        },
        "critical_issues": ["1", "2", "3", "4"],
        "best_practices_followed": ["x", "y", "z", "w", "v"],
    }
    data.update(overrides)
    return Assessment.model_validate(data)


def test_clean_text_strips_quotes_controls_and_unsafe_chars():
    assert clean_text('Say "hello"\nto\tthe <API>\\') == "Say hello to the API"
    assert clean_text("Use {id} & /users; ok?") == "Use id  users ok?"


def test_clean_text_truncates_to_fifty_chars():
    cleaned = clean_text("word " * 30)
    assert len(cleaned) <= 50
    assert not cleaned.endswith(" ")


def test_clean_text_keeps_safe_punctuation():
    assert clean_text("Fine, really! Is it? yes - no.") == "Fine, really! Is it? yes - no."


def test_sanitize_caps_list_lengths():
    cleaned = sanitize_assessment(_assessment())
    assert cleaned.critical_issues == ["1", "2", "3"]
    assert len(cleaned.best_practices_followed) == 3
    assert cleaned.categories["versioning"].issues == ["one", "two"]
    assert cleaned.categories["versioning"].suggestions == ["a", "b"]
    assert cleaned.summary == "Say hello to the API"


def test_sanitize_does_not_mutate_input():
    original = _assessment()
    sanitize_assessment(original)
    assert len(original.critical_issues) == 4


def test_sanitize_is_idempotent():
    long_summary = "  A  very long summary with, punctuation! and plain words " * 3
    once = sanitize_assessment(_assessment(summary=long_summary))
    twice = sanitize_assessment(once)
    assert once == twice


def test_clean_text_keeps_only_ascii_word_characters():
    assert clean_text("API 設計良好 naïve") == "API  nave"
