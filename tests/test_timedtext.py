import re

from app.services.timedtext import strip_timed_text


def test_strip_keeps_only_cue_text(sample_vtt):
    assert strip_timed_text(sample_vtt) == "Welcome to the lecture. Today we cover entropy and information."


def test_strip_leaves_no_numbers_or_arrows():
    body = "WEBVTT\n\n1\n00:00:01.000 --> 00:00:02.000\nalpha\n\n2\n00:00:02.000 --> 00:00:03.000\nbeta\n\n3\n00:00:03.000 --> 00:00:04.000\ngamma\n"
    out = strip_timed_text(body)
    assert out == "alpha beta gamma"
    assert "-->" not in out
    assert not re.search(r"(^|\s)\d+(\s|$)", out)


def test_strip_without_header_or_cue_numbers():
    body = "00:00:01.000 --> 00:00:02.000\nhello\n00:00:02.000 --> 00:00:03.000\nworld\n"
    assert strip_timed_text(body) == "hello world"


def test_strip_handles_crlf():
    body = "WEBVTT\r\n\r\n1\r\n00:00:01.000 --> 00:00:02.000\r\nhello there\r\n"
    assert strip_timed_text(body) == "hello there"


def test_strip_removes_inline_asr_tags_and_entities():
    body = (
        "WEBVTT\n\n"
        "00:00:00.160 --> 00:00:02.000 align:start position:0%\n"
        "so<00:00:00.400><c> today</c><00:00:00.800><c> we</c>\n"
        "00:00:02.000 --> 00:00:03.000\n"
        "Q&amp;A time\n"
    )
    assert strip_timed_text(body) == "so today we Q&A time"


def test_strip_keeps_digits_inside_text():
    body = "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nthere are 3 laws\n"
    assert strip_timed_text(body) == "there are 3 laws"


def test_strip_empty_and_header_only():
    assert strip_timed_text("") == ""
    assert strip_timed_text("WEBVTT\nKind: captions\nLanguage: en\n") == ""


def test_strip_without_blank_lines_between_header_and_cues():
    body = "WEBVTT\n1\n00:00:01.000 --> 00:00:02.000\nHello\n2\n00:00:02.000 --> 00:00:03.000\nworld\n"
    assert strip_timed_text(body) == "Hello world"


def test_strip_header_metadata_directly_above_cues():
    body = "WEBVTT\nKind: captions\nLanguage: en\n00:00:01.000 --> 00:00:02.000\nfirst\nsecond line\n00:00:02.000 --> 00:00:03.000\nthird\n"
    assert strip_timed_text(body) == "first second line third"
