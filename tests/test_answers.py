from engines.answers import is_correct, normalize_answer
from engines.questions import Question

from conftest import kana

KA = kana("か", "ka", "hiragana-ka")
MOUNTAIN = kana("山", "mountain", "kanji-n5-nature")


def test_forward_trims_and_casefolds():
    assert is_correct(Question(KA, "forward"), " KA ")


def test_reverse_does_not_casefold_or_convert_romaji():
    assert not is_correct(Question(KA, "reverse"), "KA")


def test_reverse_matches_native_form_after_trim():
    assert is_correct(Question(KA, "reverse"), "  か ")


def test_forward_rejects_wrong_answer():
    assert not is_correct(Question(KA, "forward"), "ki")
    assert not is_correct(Question(KA, "forward"), "")


def test_forward_casefolds_the_expected_form_too():
    item = kana("東京", "Tokyo", "vocab-n5-places")
    assert is_correct(Question(item, "forward"), "tokyo")
    assert is_correct(Question(MOUNTAIN, "forward"), "Mountain")


def test_no_fuzzy_matching():
    assert not is_correct(Question(MOUNTAIN, "forward"), "mountains")
    assert not is_correct(Question(KA, "forward"), "k a")


def test_normalize_depends_on_direction():
    assert normalize_answer("  Ka\n", Question(KA, "forward")) == "ka"
    assert normalize_answer("  Ka\n", Question(KA, "reverse")) == "Ka"


def test_validation_is_repeatable():
    question = Question(KA, "forward")
    assert [is_correct(question, "KA") for _ in range(3)] == [True, True, True]
    assert question == Question(KA, "forward")
