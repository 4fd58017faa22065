import sys

import pytest

from helpers import as_dict, collect_sorted
from sparse_dataflow import recommender
from sparse_dataflow.matrix import build_cooccurrence, sum_cooccurrence

RATINGS = ["1,10,5", "2,10,5", "1,20,4"]


def test_divide_by_user(make_lines):
    lines = make_lines(*RATINGS, "bad line", "3,30")
    assert collect_sorted(recommender.divide_by_user(lines)) == ["1\t10:5,20:4", "2\t10:5"]


def test_divide_then_cooccurrence(make_lines):
    user_items = recommender.divide_by_user(make_lines(*RATINGS))
    cells = collect_sorted(sum_cooccurrence(build_cooccurrence(user_items)))
    assert "10:20\t1" in cells
    assert "10:10\t2" in cells
    assert "20:20\t1" in cells
    assert cells == ["10:10\t2", "10:20\t1", "20:10\t1", "20:20\t1"]


def test_full_pipeline_predictions(make_lines):
    datasets = recommender.run_recommender(make_lines(*RATINGS))
    assert as_dict(datasets["aggregate"]) == {
        "1:10": 4.66667,
        "1:20": 4.5,
        "2:10": 3.33333,
        "2:20": 2.5,
    }


def test_stages_run_in_order(make_lines):
    seen = []

    def on_stage(stage_name, output, count):
        seen.append((stage_name, count))

    recommender.run_recommender(make_lines(*RATINGS), on_stage=on_stage)
    assert seen == [
        ("divide_by_user", 2),
        ("cooccurrence", 4),
        ("normalize", 4),
        ("multiply", 6),
        ("aggregate", 4),
    ]


def test_aggregate_rounds(make_lines):
    partials = make_lines("1:10\t0.333333333", "1:10\t1.0", "2:10\t0.5")
    assert collect_sorted(recommender.aggregate(partials)) == ["1:10\t1.33333", "2:10\t0.5"]


def test_recommend_skips_rated_items(make_lines):
    predictions = make_lines("1:10\t4.66667", "1:20\t4.5", "2:10\t3.33333", "2:20\t2.5")
    result = recommender.recommend(predictions, make_lines(*RATINGS), top_n=5)
    assert collect_sorted(result) == ["2\t20:2.5"]


def test_recommend_keeps_top_n(make_lines):
    predictions = make_lines("1:30\t2.0", "1:40\t3.0", "1:50\t3.0", "1:60\t1.0", "bad\t1.0")
    result = recommender.recommend(predictions, make_lines("1,10,5"), top_n=2)
    assert collect_sorted(result) == ["1\t40:3.0,50:3.0"]


def test_top_items_breaks_ties_by_item():
    assert recommender.top_items([("b", 1.0), ("a", 1.0), ("c", 2.0)], 2) == [("c", 2.0), ("a", 1.0)]
    assert recommender.top_items([], 3) == []


def test_pipeline_is_repeatable(make_lines):
    ratings = make_lines(*RATINGS, "3,20,2", "3,30,1", "2,30,4")
    first = collect_sorted(recommender.run_recommender(ratings)["aggregate"])
    second = collect_sorted(recommender.run_recommender(ratings)["aggregate"])
    assert first == second


def test_empty_ratings(make_lines):
    datasets = recommender.run_recommender(make_lines())
    for stage_name, _, _ in recommender.STAGES:
        assert datasets[stage_name].collect() == []


def test_bad_rating_fails_the_stage(make_lines):
    with pytest.raises(Exception):
        recommender.divide_by_user(make_lines("1,10,five")).collect()


def test_check_inputs(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["recommender.py", "ratings.csv", "out"])
    assert recommender.check_inputs() == ("ratings.csv", "out", None)
    monkeypatch.setattr(sys, "argv", ["recommender.py", "ratings.csv", "out", "10"])
    assert recommender.check_inputs() == ("ratings.csv", "out", 10)


@pytest.mark.parametrize("argv", [
    ["recommender.py", "ratings.csv"],
    ["recommender.py", "ratings.csv", "out", "ten"],
    ["recommender.py", "ratings.csv", "out", "0"],
])
def test_check_inputs_exits_on_bad_arguments(monkeypatch, argv):
    monkeypatch.setattr(sys, "argv", argv)
    with pytest.raises(SystemExit):
        recommender.check_inputs()
