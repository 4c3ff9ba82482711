from engines.achievements import ACHIEVEMENTS, AchievementEvaluator, CumulativeStats

from conftest import session_result as result


def test_with_result_folds_totals():
    stats = (
        CumulativeStats()
        .with_result(result("gauntlet", correct=20, incorrect=0, best_streak=20))
        .with_result(result("blitz", correct=12, incorrect=3, best_streak=7))
        .with_result(result("blitz", correct=31, incorrect=1, best_streak=11))
    )
    assert stats.total_sessions == 3
    assert stats.total_correct == 63
    assert stats.total_incorrect == 4
    assert stats.total_elapsed_ms == 3000
    assert stats.sessions_by_mode == {"gauntlet": 1, "blitz": 2}
    assert stats.best_streak == 20
    assert stats.best_blitz_score == 31
    assert stats.flawless_gauntlets == 1


def test_with_result_leaves_the_input_untouched():
    before = CumulativeStats(sessions_by_mode={"standard": 1}, total_sessions=1)
    before.with_result(result())
    assert before.sessions_by_mode == {"standard": 1}


def test_empty_gauntlet_is_not_flawless():
    stats = CumulativeStats().with_result(result("gauntlet", correct=0, incorrect=0, best_streak=0))
    assert stats.flawless_gauntlets == 0


def test_accuracy_without_answers_is_zero():
    assert CumulativeStats().accuracy == 0.0


def test_first_session_unlocks_first_steps():
    stats = CumulativeStats().with_result(result(correct=3, best_streak=3))
    unlocked = AchievementEvaluator().evaluate(stats)
    assert [a.id for a in unlocked] == ["first_steps"]


def test_already_unlocked_are_not_reported_again():
    stats = CumulativeStats().with_result(result("gauntlet", correct=20, best_streak=20))
    evaluator = AchievementEvaluator()

    first = {a.id for a in evaluator.evaluate(stats)}
    assert first == {"first_steps", "hot_streak", "gauntlet_runner", "flawless"}
    assert evaluator.evaluate(stats, first) == []


def test_lightning_needs_a_single_big_blitz():
    evaluator = AchievementEvaluator()
    small = CumulativeStats()
    for i in range(3):
        small = small.with_result(result("blitz", correct=20, best_streak=5, session_id=f"b{i}"))
    assert "lightning" not in {a.id for a in evaluator.evaluate(small)}

    big = small.with_result(result("blitz", correct=30, best_streak=5, session_id="b9"))
    assert "lightning" in {a.id for a in evaluator.evaluate(big)}


def test_sharpshooter_needs_volume_and_accuracy():
    sharpshooter = next(a for a in ACHIEVEMENTS if a.id == "sharpshooter")
    accurate_but_few = CumulativeStats(total_sessions=1, total_correct=100, total_incorrect=0)
    many_but_sloppy = CumulativeStats(total_sessions=1, total_correct=170, total_incorrect=30)
    both = CumulativeStats(total_sessions=1, total_correct=180, total_incorrect=20)

    assert sharpshooter.predicate(both)
    assert not sharpshooter.predicate(accurate_but_few)
    assert not sharpshooter.predicate(many_but_sloppy)


def test_catalog_ids_are_unique():
    ids = [a.id for a in ACHIEVEMENTS]
    assert len(ids) == len(set(ids))
    assert [a.id for a in AchievementEvaluator().catalog] == ids
