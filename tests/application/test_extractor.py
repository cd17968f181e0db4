"""Tests for Markdown card extraction."""

from pathlib import Path

import pytest

from repeater.application.extractor import extract, find_cloze_spans
from repeater.domain.models import BasicContent, CardKind, ClozeContent, ClozeSpan

DECK = Path("deck.md")


def parse(text):
    issues = []
    cards = list(extract(text, DECK, issues))
    return cards, issues


# ---------- Cloze spans ----------


def test_find_cloze_spans_multiple():
    assert find_cloze_spans("a [b] c [d]") == (ClozeSpan(2, 5), ClozeSpan(8, 11))


def test_find_cloze_spans_skips_empty_and_unclosed():
    assert find_cloze_spans("a [] b") == ()
    assert find_cloze_spans("a [b") == ()


def test_find_cloze_spans_does_not_nest():
    text = "a [b [c] d]"
    spans = find_cloze_spans(text)
    assert spans == (ClozeSpan(2, 8),)
    assert spans[0].inner(text) == "b [c"


# ---------- Well-formed decks ----------


def test_extracts_basic_and_cloze_among_prose():
    text = (
        "# Biology\n"
        "\n"
        "Some prose that is not a card.\n"
        "\n"
        "Q: What is 2 + 2?\n"
        "A: 4\n"
        "\n"
        "C: The [mitochondria] is the powerhouse of the cell.\n"
    )
    cards, issues = parse(text)

    assert issues == []
    assert [c.kind for c in cards] == [CardKind.BASIC, CardKind.CLOZE]
    assert cards[0].content == BasicContent(front="What is 2 + 2?", back="4")
    assert (cards[0].source.start_line, cards[0].source.end_line) == (5, 6)
    assert isinstance(cards[1].content, ClozeContent)
    assert cards[1].content.spans[0].inner(cards[1].content.text) == "mitochondria"
    assert cards[1].source.start_line == 8


def test_multiline_question_and_answer():
    cards, _ = parse("Q: first line\ncontinued\nA: answer\nmore answer\n")
    assert cards[0].content == BasicContent(
        front="first line\ncontinued", back="answer\nmore answer"
    )


def test_answer_on_following_lines():
    cards, _ = parse("Q: Name two primes\nA:\n- 2\n- 3\n")
    assert cards[0].content.back == "- 2\n- 3"


def test_horizontal_rule_ends_block():
    cards, _ = parse("Intro\n\nQ: q\nA: a\n\n---\n\nprose after the rule\n")
    assert cards[0].content.back == "a"


def test_prose_after_answer_without_rule_belongs_to_answer():
    cards, _ = parse("Q: q\nA: a\n\nstill the answer\n")
    assert cards[0].content.back == "a\n\nstill the answer"


def test_tags_inside_code_fence_are_content():
    text = "Q: Show the tag syntax\nA:\n```\nQ: not a card\n```\n"
    cards, issues = parse(text)
    assert issues == []
    assert len(cards) == 1
    assert cards[0].content.back == "```\nQ: not a card\n```"


def test_leading_bom_is_ignored():
    cards, _ = parse("\ufeffQ: a\nA: b\n")
    assert len(cards) == 1


def test_extract_is_lazy():
    gen = extract("Q: one\nA: 1\nQ: two\nA: 2\n", DECK)
    assert next(gen).content.front == "one"
    assert next(gen).content.front == "two"
    with pytest.raises(StopIteration):
        next(gen)


# ---------- Frontmatter ----------


def test_frontmatter_repeat_false_skips_file():
    cards, issues = parse("---\nrepeat: false\n---\nQ: a\nA: b\n")
    assert cards == []
    assert issues == []


def test_frontmatter_offsets_line_numbers():
    cards, _ = parse("---\ntags: [x]\n---\nQ: a\nA: b\n")
    assert cards[0].source.start_line == 4


def test_invalid_frontmatter_is_reported_but_cards_survive():
    cards, issues = parse("---\nkey: [unclosed\n---\nQ: a\nA: b\n")
    assert len(cards) == 1
    assert issues[0].message.startswith("invalid frontmatter")


# ---------- Malformed blocks ----------


def test_question_without_answer_and_cloze_without_brackets():
    cards, issues = parse("Q: no answer here\n\nC: no brackets here\n")
    assert cards == []
    assert [i.message for i in issues] == [
        "question has no 'A:' answer",
        "cloze has no [bracketed] deletion",
    ]


def test_answer_without_question():
    cards, issues = parse("A: orphan\n")
    assert cards == []
    assert issues[0].message == "answer has no 'Q:' question"
    assert issues[0].location.start_line == 1


def test_second_answer_is_reported_and_first_card_kept():
    cards, issues = parse("Q: q\nA: a\nA: b\n")
    assert [c.content.back for c in cards] == ["a"]
    assert issues[0].message == "second 'A:' within one card"


def test_empty_question_and_empty_answer():
    _, issues = parse("Q:\nA: x\n\n---\nQ: y\nA:\n")
    assert [i.message for i in issues] == ["question is empty", "answer is empty"]


def test_malformed_block_does_not_stop_parse():
    cards, issues = parse("Q: broken\n\nC: [fine] card\n\nQ: also fine\nA: yes\n")
    assert len(issues) == 1
    assert len(cards) == 2


def test_deck_opening_with_rule_keeps_cards_between_rules():
    cards, issues = parse("---\nQ: 2+2?\nA: 4\n---\nQ: capital of France?\nA: Paris\n")
    assert issues == []
    assert [c.content.back for c in cards] == ["4", "Paris"]
    assert cards[0].source.start_line == 2


def test_prose_between_opening_rules_is_not_metadata():
    cards, issues = parse("---\nA short introduction.\n---\nC: [Rome] is in Italy\n")
    assert issues == []
    assert len(cards) == 1
