"""Tests for the keyword spam classifier."""

from leadpipe.domain.services.spam_classifier import is_spam, matching_keyword, payload_text


def test_empty_keyword_list_is_never_spam():
    payload = {"first_name": "Buy crypto now"}
    assert is_spam([], payload) is False
    assert is_spam(None, payload) is False
    assert is_spam(["", "   "], payload) is False


def test_match_is_case_insensitive_substring():
    payload = {"first_name": "Jane", "interest": "Huge CASINO BONUS inside"}
    assert is_spam(["casino bonus"], payload) is True
    assert is_spam(["Bonus"], payload) is True
    assert is_spam(["lottery"], payload) is False


def test_free_text_and_nested_values_are_checked():
    payload = {
        "email": "jane@example.com",
        "answers": [{"question": "Why foster?", "answer": "visit my crypto site"}],
    }
    assert is_spam(["crypto"], payload) is True


def test_first_matching_keyword_is_returned():
    payload = {"notes": "cheap pills and casino offers"}
    assert matching_keyword(["casino", "pills"], payload) == "casino"


def test_payload_text_joins_scalar_values():
    text = payload_text({"a": "Hello", "b": 42, "c": None, "d": ["X", {"e": True}]})
    assert text == "hello 42 x true"
