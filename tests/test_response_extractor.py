from statement_scan.extraction.response import (
    EXPECT_OBJECT,
    extract_json_payload,
    strip_code_fences,
)


def test_fenced_array_is_unwrapped():
    text = (
        "```json\n"
        '[{"date":"Sun 02 Nov 2025","description":"KFC (Sebastopol)",'
        '"category":"Eating out","amount":24.35,"type":"expense"}]\n'
        "```"
    )
    parsed = extract_json_payload(text)
    assert isinstance(parsed, list)
    assert parsed[0]["description"] == "KFC (Sebastopol)"
    assert parsed[0]["amount"] == 24.35


def test_prose_around_payload_is_ignored():
    text = 'Sure! Here are the transactions:\n[{"description": "Coles", "amount": 12.5}]\nLet me know.'
    assert extract_json_payload(text) == [{"description": "Coles", "amount": 12.5}]


def test_no_brackets_yields_none():
    assert extract_json_payload("I could not read any transactions in this image.") is None


def test_invalid_json_yields_none():
    assert extract_json_payload("[{description: Coles, amount: 12}]") is None


def test_empty_and_non_string_input_yield_none():
    assert extract_json_payload("") is None
    assert extract_json_payload(None) is None


def test_object_mode_reads_braces():
    text = '```json\n{"transactions": [{"description": "Iglu rent", "amount": 300}]}\n```'
    parsed = extract_json_payload(text, expect=EXPECT_OBJECT)
    assert parsed == {"transactions": [{"description": "Iglu rent", "amount": 300}]}


def test_balanced_block_used_when_outer_slice_fails():
    text = 'Result: [{"description": "Cafe", "amount": 5}] (see note [1])'
    assert extract_json_payload(text) == [{"description": "Cafe", "amount": 5}]


def test_brackets_inside_strings_do_not_confuse_scanner():
    text = '[{"description": "Shop ] B", "amount": 1}] trailing ]'
    assert extract_json_payload(text) == [{"description": "Shop ] B", "amount": 1}]


def test_strip_code_fences_handles_plain_and_tagged_fences():
    assert strip_code_fences("```\n[]\n```") == "[]"
    assert strip_code_fences("  ```JSON\n[1, 2]\n```  ") == "[1, 2]"
    assert strip_code_fences("[3]") == "[3]"
