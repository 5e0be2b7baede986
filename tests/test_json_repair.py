from gendash.services.json_repair import (
    build_repair_candidates,
    convert_single_quotes,
    normalize_line_endings,
    normalize_smart_quotes,
    strip_trailing_commas,
)


def test_strip_trailing_commas_before_closers():
    assert strip_trailing_commas('{"a": 1, "b": [1, 2,], }') == '{"a": 1, "b": [1, 2] }'


def test_strip_trailing_commas_leaves_string_content_alone():
    text = '{"a": "x,}"}'
    assert strip_trailing_commas(text) == text


def test_strip_trailing_commas_honors_escaped_quotes():
    text = r'{"a": "say \"hi,]\"", }'
    assert strip_trailing_commas(text) == r'{"a": "say \"hi,]\"" }'


def test_strip_trailing_commas_even_backslash_run_closes_string():
    assert strip_trailing_commas(r'{"p": "C:\\", }') == r'{"p": "C:\\" }'


def test_strip_trailing_commas_tracks_single_quoted_strings():
    assert strip_trailing_commas("{'a': 'x,]', }") == "{'a': 'x,]' }"


def test_strip_trailing_commas_is_idempotent():
    for text in ("[1,,]", '{"a": [1, 2,],}', '{"a": "x,}", "b": {"c": 1,},}', "[ , ]"):
        once = strip_trailing_commas(text)
        assert strip_trailing_commas(once) == once
    assert strip_trailing_commas("[1,,]") == "[1]"


def test_convert_single_quotes_keys_values_and_array_items():
    text = "{'a': 'b', 'c': ['d', 'e']}"
    assert convert_single_quotes(text) == '{"a": "b", "c": ["d", "e"]}'


def test_convert_single_quotes_keeps_double_quoted_content():
    text = "{\"note\": \"it's 'quoted'\", 'k': 'v'}"
    assert convert_single_quotes(text) == "{\"note\": \"it's 'quoted'\", \"k\": \"v\"}"


def test_convert_single_quotes_unescapes_inner_single_quote():
    assert convert_single_quotes(r"{'msg': 'don\'t'}") == '{"msg": "don\'t"}'


def test_convert_single_quotes_escapes_inner_double_quote():
    assert convert_single_quotes("{'q': 'say \"hi\"'}") == '{"q": "say \\"hi\\""}'


def test_line_endings_and_smart_quotes():
    assert normalize_line_endings('{\r\n"a": 1\r\n}') == '{\n"a": 1\n}'
    assert normalize_smart_quotes("\u201ca\u201d: \u2018b\u2019") == "\"a\": 'b'"


def test_candidates_for_clean_json_is_single_entry():
    assert build_repair_candidates('{"a": 1}') == ['{"a": 1}']


def test_candidates_are_cumulative_and_deduplicated():
    assert build_repair_candidates(" {'a': 1,} ") == ["{'a': 1,}", "{'a': 1}", '{"a": 1}']


def test_candidates_normalize_smart_quotes():
    candidates = build_repair_candidates("{\u201ca\u201d: \u201cb\u201d}")
    assert candidates == ["{\u201ca\u201d: \u201cb\u201d}", '{"a": "b"}']
