import pytest

from macrobius_vocab.vocabulary_parser import VocabularyParser


def test_parse_csv(tmp_path):
    path = tmp_path / "words.csv"
    path.write_text(
        " ID ,Latin,Meaning,Source\n"
        "007,convivium,banquet,Sat. 1.1.1\n"
        "008,somnium,dream,\n"
        ",vinum,wine,\n"
        "009,,nothing,\n",
        encoding="utf-8",
    )
    items = VocabularyParser.auto_parse(str(path))
    assert [item.item_id for item in items] == ["007", "008"]
    assert items[0].text == "convivium"
    assert items[0].gloss == "banquet"
    assert items[0].source == "Sat. 1.1.1"
    assert items[1].source is None


def test_parse_csv_alternative_headers(tmp_path):
    path = tmp_path / "words.csv"
    path.write_text("word_id,word\nlux,lux\n", encoding="utf-8")
    items = VocabularyParser.auto_parse(str(path))
    assert items[0].item_id == "lux"
    assert items[0].gloss is None


def test_parse_excel(tmp_path):
    pd = pytest.importorskip("pandas")
    pytest.importorskip("openpyxl")
    path = tmp_path / "words.xlsx"
    pd.DataFrame({"id": ["1", "2"], "latin": ["nox", "dies"], "gloss": ["night", "day"]}).to_excel(path, index=False)
    items = VocabularyParser.auto_parse(str(path))
    assert [(i.item_id, i.text, i.gloss) for i in items] == [("1", "nox", "night"), ("2", "dies", "day")]


def test_missing_required_columns(tmp_path):
    path = tmp_path / "words.csv"
    path.write_text("latin,gloss\nnox,night\n", encoding="utf-8")
    with pytest.raises(ValueError, match="id"):
        VocabularyParser.auto_parse(str(path))


def test_unsupported_format(tmp_path):
    with pytest.raises(ValueError, match="Unsupported"):
        VocabularyParser.auto_parse(str(tmp_path / "words.pdf"))
