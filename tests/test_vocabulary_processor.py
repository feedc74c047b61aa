"""Tests for vocabulary and dictionary processors."""

import pytest

from devdictate.core.transcript_processor.vocabulary_processor import (
    DictionaryEntry,
    apply_dictionary_replacements,
    apply_vocabulary_replacements,
    default_dictionary_entries,
)


class TestApplyVocabularyReplacements:

    def test_empty_replacements(self):
        assert apply_vocabulary_replacements("Hello world", []) == "Hello world"

    def test_multiple_occurrences(self):
        text = "kube get pods then kube logs"
        result = apply_vocabulary_replacements(text, [("kube", "kubectl")])
        assert result == "kubectl get pods then kubectl logs"

    def test_rules_applied_in_order(self):
        replacements = [("react", "React"), ("React native", "React Native")]
        result = apply_vocabulary_replacements("react native app", replacements)
        assert result == "React Native app"

    def test_case_sensitive_by_default(self):
        result = apply_vocabulary_replacements("postgres Postgres", [("Postgres", "PostgreSQL")])
        assert result == "postgres PostgreSQL"

    def test_case_insensitive_when_disabled(self):
        result = apply_vocabulary_replacements(
            "postgres POSTGRES", [("postgres", "PostgreSQL")], case_sensitive=False
        )
        assert result == "PostgreSQL PostgreSQL"

    def test_empty_original_skipped(self):
        replacements = [("", "NOTHING"), ("world", "universe")]
        assert apply_vocabulary_replacements("Hello world", replacements) == "Hello universe"

    def test_special_regex_chars_in_original(self):
        replacements = [("(regex)", "patterns"), ("[matching]", "selection")]
        result = apply_vocabulary_replacements(
            "Use (regex) for [matching]", replacements, case_sensitive=False
        )
        assert result == "Use patterns for selection"

    def test_replacement_with_backslash(self):
        result = apply_vocabulary_replacements(
            "path sep", [("path sep", r"C:\dir")], case_sensitive=False
        )
        assert result == r"C:\dir"


class TestApplyDictionaryReplacements:

    def test_default_fillers_removed(self):
        text = "Um so uh I think hmm we should er ship it"
        result = apply_dictionary_replacements(text, default_dictionary_entries())
        assert result == "so I think we should ship it"

    def test_whole_words_only(self):
        entries = [DictionaryEntry(triggers=["er"])]
        assert apply_dictionary_replacements("server error", entries) == "server error"

    def test_replacement_value(self):
        entries = [DictionaryEntry(triggers=["pie torch", "pytorch"], replacement="PyTorch")]
        result = apply_dictionary_replacements("install Pie Torch and pytorch", entries)
        assert result == "install PyTorch and PyTorch"

    def test_disabled_entries_ignored(self):
        entries = [DictionaryEntry(triggers=["um"], is_enabled=False)]
        assert apply_dictionary_replacements("um hello", entries) == "um hello"

    def test_triggers_are_escaped(self):
        entries = [DictionaryEntry(triggers=["c++"], replacement="C++")]
        assert apply_dictionary_replacements("I like c++ a lot", entries) == "I like C++ a lot"

    def test_no_entries(self):
        assert apply_dictionary_replacements("  keep  ", []) == "  keep  "


class TestDictionaryEntry:

    def test_display_name(self):
        assert DictionaryEntry(triggers=["um", "umm"]).display_name == "um, umm"

    def test_from_dict_roundtrip(self):
        entry = DictionaryEntry(triggers=["k8s"], replacement="Kubernetes")
        assert DictionaryEntry.from_dict(entry.to_dict()) == entry
