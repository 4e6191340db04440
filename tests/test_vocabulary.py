"""Tests for the vocabulary helpers and the word dictionary."""
from mindmeld.models.game import Round
from mindmeld.services.dictionary import WordDictionary
from mindmeld.services.vocabulary import collect_unique_words, find_new_words


def test_unique_words_are_deduplicated_case_insensitively():
    rows = [
        {"userWord": "Apple", "aiWord": "banana", "correctGuess": "apple"},
        {"userWord": "BANANA", "aiWord": "apple", "correctGuess": "Apple"},
    ]
    assert collect_unique_words(rows) == ["apple", "banana"]


def test_non_string_and_missing_values_are_ignored():
    rows = [
        {"userWord": 42, "aiWord": None, "correctGuess": "tide"},
        {"userWord": "  ", "correctGuess": ["sand"]},
        {},
    ]
    assert collect_unique_words(rows) == ["tide"]


def test_empty_store_has_no_words():
    assert collect_unique_words([]) == []


def test_find_new_words_keeps_game_order():
    rounds = [Round(1, "Ocean", "wave"), Round(2, "tide", "salt")]
    assert find_new_words(rounds, "Beach", ["ocean", "SALT"]) == ["wave", "tide", "Beach"]


def test_find_new_words_with_everything_known():
    rounds = [Round(1, "cat", "dog")]
    assert find_new_words(rounds, "", ["cat", "dog"]) == []


def test_dictionary_normalises_words(tmp_path):
    path = tmp_path / "words"
    path.write_text("Apple\nb\n  Ocean  \n\n", encoding="utf-8")

    dictionary = WordDictionary.load(str(path))

    assert len(dictionary) == 2
    assert "apple" in dictionary
    assert "OCEAN" in dictionary
    assert "b" not in dictionary
    assert dictionary.accepts("Apple")
    assert not dictionary.accepts("xylograph")


def test_missing_dictionary_file_accepts_everything():
    dictionary = WordDictionary.load("/nonexistent/words")
    assert not dictionary.is_loaded
    assert dictionary.accepts("xylograph")
    assert "xylograph" not in dictionary
