import json

import pytest

from ayah_video.core.errors import ContentLookupError, InputValidationError
from ayah_video.models.domain import VerseRef
from ayah_video.services.corpus_service import CorpusService


@pytest.fixture
def corpus(corpus_files):
    arabic, english = corpus_files
    return CorpusService(arabic_file=arabic, translation_file=english)


def test_get_verse(corpus):
    verse = corpus.get_verse(VerseRef(surah_number=1, ayah_number=2))
    assert verse.surah_name == "Al-Faatiha"
    assert verse.translation_text.startswith("[All] praise")
    assert verse.arabic_text.startswith("ٱلْحَمْدُ")


def test_get_range_in_order(corpus):
    verses = corpus.get_range(1, 1, 3)
    assert [verse.ref.ayah_number for verse in verses] == [1, 2, 3]


def test_single_ayah_when_end_missing(corpus):
    assert len(corpus.get_range(1, 2)) == 1


def test_reversed_range_rejected(corpus):
    with pytest.raises(InputValidationError):
        corpus.get_range(1, 3, 1)


@pytest.mark.parametrize("surah,ayah", [(1, 9), (2, 1)])
def test_missing_verse(corpus, surah, ayah):
    with pytest.raises(ContentLookupError):
        corpus.get_verse(VerseRef(surah_number=surah, ayah_number=ayah))


def test_missing_translation(corpus_files, tmp_path):
    arabic, _ = corpus_files
    partial = tmp_path / "partial.json"
    partial.write_text(
        json.dumps({"surahs": [{"number": 1, "ayahs": [{"numberInSurah": 1, "text": "In the name of Allah"}]}]}),
        encoding="utf-8",
    )
    corpus = CorpusService(arabic_file=arabic, translation_file=partial)
    assert corpus.get_verse(VerseRef(surah_number=1, ayah_number=1)).translation_text == "In the name of Allah"
    with pytest.raises(ContentLookupError):
        corpus.get_verse(VerseRef(surah_number=1, ayah_number=2))


def test_missing_corpus_file(tmp_path):
    corpus = CorpusService(arabic_file=tmp_path / "none.json", translation_file=tmp_path / "none.json")
    with pytest.raises(ContentLookupError):
        corpus.get_range(1, 1)
