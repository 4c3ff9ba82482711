import random

from core.errors import ErrorCode
from engines.distractors import DistractorGenerator

from conftest import kana


def test_correct_answer_first_and_options_distinct(rng, ka_row):
    options = DistractorGenerator(rng).options(ka_row[0], ka_row, "forward", 4).unwrap()
    assert options[0] == "ka"
    assert len(options) == 4
    assert len(set(options)) == 4
    assert set(options) <= {item.answer_form for item in ka_row}


def test_small_item_set_shrinks_option_count(rng):
    items = [kana("あ", "a"), kana("い", "i")]
    options = DistractorGenerator(rng).options(items[0], items, "forward", 4).unwrap()
    assert options == ("a", "i")


def test_single_item_set_gives_only_the_answer(rng):
    items = [kana("あ", "a")]
    assert DistractorGenerator(rng).options(items[0], items, "forward", 4).unwrap() == ("a",)


def test_homophones_never_appear_twice(rng):
    items = [
        kana("じ", "ji", "hiragana-za"),
        kana("ぢ", "ji", "hiragana-da"),
        kana("ず", "zu", "hiragana-za"),
        kana("づ", "zu", "hiragana-da"),
    ]
    options = DistractorGenerator(rng).options(items[1], items, "forward", 4).unwrap()
    assert options == ("ji", "zu")


def test_reverse_direction_offers_native_forms(rng, ka_row):
    options = DistractorGenerator(rng).options(ka_row[2], ka_row, "reverse", 3).unwrap()
    assert options[0] == "く"
    assert set(options) <= {item.prompt_form for item in ka_row}
    assert len(options) == 3


def test_count_of_one_is_just_the_answer(rng, ka_row):
    assert DistractorGenerator(rng).options(ka_row[0], ka_row, "forward", 1).unwrap() == ("ka",)


def test_non_positive_count_is_an_error(rng, ka_row):
    result = DistractorGenerator(rng).options(ka_row[0], ka_row, "forward", 0)
    assert result.is_err()
    assert result.unwrap_err().code == ErrorCode.E2003_OUT_OF_RANGE


def test_correct_item_outside_the_set_is_malformed(rng, ka_row, vowels):
    result = DistractorGenerator(rng).options(vowels[0], ka_row, "forward", 4)
    assert result.is_err()
    assert result.unwrap_err().code == ErrorCode.E5031_MALFORMED_QUESTION


def test_sampling_follows_the_random_source(ka_row):
    first = DistractorGenerator(random.Random(9)).options(ka_row[0], ka_row, "forward", 3)
    second = DistractorGenerator(random.Random(9)).options(ka_row[0], ka_row, "forward", 3)
    assert first.unwrap() == second.unwrap()


def test_every_wrong_answer_eventually_shows_up(rng, ka_row):
    generator = DistractorGenerator(rng)
    seen: set[str] = set()
    for _ in range(50):
        seen.update(generator.options(ka_row[0], ka_row, "forward", 2).unwrap()[1:])
    assert seen == {"ki", "ku", "ke", "ko"}
