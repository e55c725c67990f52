"""Tests for content_utils - heading normalization and paywall previews."""

import pytest

from portal.services.content_utils import (
    CONTENT_PREVIEW_LENGTH,
    ELLIPSIS,
    generate_content_preview,
    get_content_preview,
    get_extended_preview,
    normalize_article_headings,
    slugify,
)


class TestNormalizeHeadings:

    def test_demotes_level_one(self):
        assert normalize_article_headings("# Titel\n\nTekst") == "## Titel\n\nTekst"

    def test_every_line_is_checked(self):
        text = "Intro\n# Første\nmidt\n# Anden"
        assert normalize_article_headings(text) == "Intro\n## Første\nmidt\n## Anden"

    def test_deeper_headings_untouched(self):
        text = "## Allerede h2\n### h3"
        assert normalize_article_headings(text) == text

    def test_hash_without_space_untouched(self):
        assert normalize_article_headings("#hashtag") == "#hashtag"


class TestContentPreview:

    def test_short_content_returned_whole(self):
        assert get_content_preview("Kort tekst.", 400) == "Kort tekst."

    def test_short_content_is_normalized(self):
        assert get_content_preview("# Titel\n\nTekst", 400) == "## Titel\n\nTekst"

    def test_cuts_at_paragraph_in_upper_half(self):
        first = "a" * 300
        content = first + "\n\n" + "b" * 300
        assert get_content_preview(content, 400) == first

    def test_ignores_paragraph_in_lower_half(self):
        # Break at 100 is below 50% of 400, so the sentence rule applies.
        content = "x" * 100 + "\n\n" + "Første sætning. " + "y" * 500
        result = get_content_preview(content, 400)
        assert result.endswith("sætning.")
        assert "\n\n" in result

    def test_cuts_after_last_sentence_within_budget(self):
        content = "Første sætning er her. Anden sætning er her! Tredje " + "z" * 100
        result = get_content_preview(content, 50)
        assert result == "Første sætning er her. Anden sætning er her!"
        assert len(result) <= 50

    def test_question_mark_counts_as_sentence_end(self):
        content = "Hvad sker der? " + "ord " * 40
        assert get_content_preview(content, 30) == "Hvad sker der?"

    def test_word_cut_appends_ellipsis(self):
        content = "ord " * 100
        result = get_content_preview(content, 50)
        assert result.endswith(ELLIPSIS)
        assert not result[:-1].endswith(" ")
        assert len(result) <= 51

    def test_hard_cut_when_no_boundary(self):
        content = "x" * 1000
        result = get_content_preview(content, 100)
        assert result == "x" * 100 + ELLIPSIS

    def test_hard_cut_keeps_combining_marks_with_base(self):
        # "e" + COMBINING ACUTE straddles the budget.
        content = "a" * 9 + "e\u0301" + "b" * 20
        result = get_content_preview(content, 10)
        assert result == "a" * 9 + ELLIPSIS

    def test_zero_budget(self):
        assert get_content_preview("abc", 0) == ELLIPSIS

    def test_negative_budget_rejected(self):
        with pytest.raises(ValueError):
            get_content_preview("abc", -1)

    def test_idempotent(self):
        content = (
            "# Overskrift\n\nEn lang artikel om lokaler. " * 20
            + "Sidste sætning uden punktum"
        )
        once = get_content_preview(content, 400)
        assert get_content_preview(once, 400) == once

    def test_paragraph_result_has_no_trailing_whitespace(self):
        content = "a" * 250 + "   \n\n" + "b" * 400
        assert get_content_preview(content, 400) == "a" * 250

    def test_danish_characters_counted_as_characters(self):
        content = "æøå" * 200
        result = get_content_preview(content, 30)
        assert result == ("æøå" * 10) + ELLIPSIS


class TestExtendedPreview:

    def test_percentage_bounds(self):
        with pytest.raises(ValueError):
            get_extended_preview("tekst", 0)
        with pytest.raises(ValueError):
            get_extended_preview("tekst", 101)

    def test_full_percentage_returns_everything(self):
        content = "Første. Anden."
        assert get_extended_preview(content, 100) == content

    def test_prefers_paragraph_near_target(self):
        # Target is 40% of 1002 = 400; the break at 390 is within 10%.
        content = "a" * 390 + "\n\n" + "b" * 610
        assert get_extended_preview(content, 40) == "a" * 390

    def test_picks_closest_paragraph_break(self):
        content = "a" * 370 + "\n\n" + "b" * 30 + "\n\n" + "c" * 596
        # Breaks at 370 and 402; target 400.
        result = get_extended_preview(content, 40)
        assert result.endswith("b" * 30)

    def test_ignores_paragraph_break_outside_tolerance(self):
        # Target 400, window 360..440; the break at 300 is too early.
        content = "a" * 300 + "\n\n" + ("Ord " * 175).strip()
        result = get_extended_preview(content, 40)
        assert result != "a" * 300
        assert result.endswith("\u2026")
        assert len(result) <= 401

    def test_falls_back_to_sentence(self):
        content = ("Dette er en sætning. " * 50).strip()
        result = get_extended_preview(content, 40)
        assert result.endswith(".")
        assert len(result) <= int(len(content) * 0.4)


class TestCardExcerpt:

    def test_skips_heading_lines(self):
        content = "# Titel\n## Undertitel\nSelve teksten starter her."
        assert generate_content_preview(content) == "Selve teksten starter her."

    def test_limited_length(self):
        content = "ord " * 200
        assert len(generate_content_preview(content)) <= CONTENT_PREVIEW_LENGTH + 1


class TestSlugify:

    def test_basic(self):
        assert slugify("Ny logistikpark ved Køge") == "ny-logistikpark-ved-koege"

    def test_strips_diacritics_and_punctuation(self):
        assert slugify("  Åben café: 50% rabat!  ") == "aben-cafe-50-rabat"

    def test_danish_ligature(self):
        assert slugify("Ærø Havn") == "aeroe-havn"

    def test_empty(self):
        assert slugify("!!!") == ""
