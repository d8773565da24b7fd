"""Unit tests for the matching text normalizer."""

from __future__ import annotations

from tagresolver.utils.text_normalizer import fold_accents, normalize


class TestFoldAccents:
    def test_folds_latin1_accents(self) -> None:
        assert fold_accents("Café Ñandú") == "Cafe Nandu"

    def test_folds_latin_extended_letters(self) -> None:
        assert fold_accents("Šťastný Žák") == "Sťastny Zak"

    def test_leaves_other_characters_alone(self) -> None:
        assert fold_accents("Ø ß 東京") == "O ß 東京"


class TestNormalize:
    def test_single_string(self) -> None:
        assert normalize("Strings of Life") == ["strings", "of", "life"]

    def test_accents_and_case_fold_together(self) -> None:
        assert normalize("Café Del Mar") == normalize("CAFE del mar")

    def test_punctuation_becomes_whitespace(self) -> None:
        assert normalize("Can't Stop (Original Mix)") == ["can", "t", "stop", "original", "mix"]

    def test_underscore_is_punctuation(self) -> None:
        assert normalize("deep_house") == ["deep", "house"]

    def test_multiple_fields_keep_field_order(self) -> None:
        assert normalize(["Café", "DJ Mëtrö"]) == ["cafe", "dj", "metro"]

    def test_none_fields_are_skipped(self) -> None:
        assert normalize(["Title", None, "", "Artist"]) == ["title", "artist"]

    def test_none_yields_no_tokens(self) -> None:
        assert normalize(None) == []

    def test_punctuation_only_yields_no_tokens(self) -> None:
        assert normalize("--- !!! ...") == []

    def test_repeated_tokens_are_kept(self) -> None:
        assert normalize("Bam Bam") == ["bam", "bam"]
