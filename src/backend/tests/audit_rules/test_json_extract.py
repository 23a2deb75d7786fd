import json

from common.audit_rules.json_extract import extract_json_object


def test_plain_object_is_returned_unchanged():
    text = '{"a": 1}'
    assert extract_json_object(text) == text


def test_commentary_around_object_is_dropped():
    text = 'Here is the rule:\n```json\n{"a": {"b": [1, 2]}}\n```\nLet me know if you need anything else {ok}.'
    assert json.loads(extract_json_object(text)) == {"a": {"b": [1, 2]}}


def test_first_of_two_objects_wins():
    assert extract_json_object('{"first": 1} and {"second": 2}') == '{"first": 1}'


def test_braces_inside_strings_are_ignored():
    text = 'prefix {"reason": "use } and { freely", "q": "say \\"}\\""} suffix'
    extracted = extract_json_object(text)
    assert json.loads(extracted) == {"reason": "use } and { freely", "q": 'say "}"'}


def test_no_object_returns_none():
    assert extract_json_object("no json here") is None
    assert extract_json_object("") is None


def test_unclosed_brace_falls_through_to_next_complete_object():
    assert extract_json_object('{ broken  {"ok": true}') == '{"ok": true}'


def test_only_unclosed_brace_returns_none():
    assert extract_json_object('{"a": 1') is None
