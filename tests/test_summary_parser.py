from services.summary.parser import (
    HIGHLIGHTS_PLACEHOLDER,
    SUMMARY_PLACEHOLDER,
    parse_ai_response,
)


def test_well_formed_reply():
    reply = """SUMMARY: A motivated biology student with strong grades.
HIGHLIGHTS:
- 3.6 GPA at Wayne State
- Leads a community garden
- Two strong recommendations
"""
    parsed = parse_ai_response(reply)
    assert parsed.summary == "A motivated biology student with strong grades."
    assert parsed.highlights == [
        "3.6 GPA at Wayne State",
        "Leads a community garden",
        "Two strong recommendations",
    ]


def test_summary_continues_over_plain_lines():
    reply = "SUMMARY: First sentence.\nSecond sentence.\n\nHIGHLIGHTS:\n- one"
    parsed = parse_ai_response(reply)
    assert parsed.summary == "First sentence. Second sentence."
    assert parsed.highlights == ["one"]


def test_summary_marker_on_its_own_line():
    parsed = parse_ai_response("SUMMARY:\nBody text here.\nHIGHLIGHTS:\n- x")
    assert parsed.summary == "Body text here."


def test_preamble_before_summary_is_ignored():
    parsed = parse_ai_response("Sure! Here you go.\nSUMMARY: Solid.\nHIGHLIGHTS:\n- a")
    assert parsed.summary == "Solid."


def test_highlights_stop_at_first_non_bullet():
    reply = "SUMMARY: ok\nHIGHLIGHTS:\n- a\n\n- b\nLet me know if you need more.\n- c"
    assert parse_ai_response(reply).highlights == ["a", "b"]


def test_bullet_text_is_trimmed():
    reply = "SUMMARY: ok\nHIGHLIGHTS:\n-    padded item   \n- real"
    assert parse_ai_response(reply).highlights == ["padded item", "real"]


def test_missing_sections_fall_back_to_placeholders():
    parsed = parse_ai_response("I could not analyse this application.")
    assert parsed.summary == SUMMARY_PLACEHOLDER
    assert parsed.highlights == list(HIGHLIGHTS_PLACEHOLDER)


def test_empty_and_none_input():
    for content in ("", None):
        parsed = parse_ai_response(content)
        assert parsed.summary == SUMMARY_PLACEHOLDER
        assert parsed.highlights == ["No highlights generated"]


def test_highlights_without_summary():
    parsed = parse_ai_response("HIGHLIGHTS:\n- only this")
    assert parsed.summary == SUMMARY_PLACEHOLDER
    assert parsed.highlights == ["only this"]
