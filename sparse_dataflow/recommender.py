#item-based collaborative filtering with a normalized co-occurrence matrix
#submission: spark-submit recommender.py <ratings_path> <output_dir> [<top_n>]
#input: user,item,rating
#five stages, each one's whole output is the next one's input:
#  divide_by_user -> cooccurrence -> normalize -> multiply -> aggregate
#every stage output is saved under <output_dir>/<stage name>
#with top_n, already rated items are dropped and the best top_n per user go to <output_dir>/recommendations.txt

import os
import sys
import time

from sparse_dataflow import records
from sparse_dataflow.datasets import build_spark_context, materialize, read_dataset, save_dataset, write_output
from sparse_dataflow.matrix import cooccurrence_matrix, normalize
from sparse_dataflow.multiply import format_partial, multiply_ratings
from sparse_dataflow.operators import concat_values, group_sum, rounded_sum

app_name = "recommender"


def check_inputs():
    if len(sys.argv) not in (3, 4):
        print("Usage: spark-submit recommender.py <ratings_path> <output_dir> [<top_n>]", file=sys.stderr)
        sys.exit(1)
    top_n = None
    if len(sys.argv) == 4:
        try:
            top_n = int(sys.argv[3])
        except ValueError:
            print("Error: <top_n> must be an integer.", file=sys.stderr)
            sys.exit(1)
        if top_n < 1:
            print("Error: <top_n> must be >= 1.", file=sys.stderr)
            sys.exit(1)
    return sys.argv[1], sys.argv[2], top_n


# =========================
# stages
# =========================

def user_entry(row):
    user_id, item_id, rating = row
    return (user_id, records.format_pair(item_id, rating))


def divide_by_user(rating_lines):
    #user,item,rating -> user\titem1:rating1,item2:rating2
    entries = rating_lines.mapPartitions(records.read_rating_rows).map(user_entry)
    return group_sum(entries, concat_values).map(lambda kv: records.format_record(kv[0], kv[1]))


def aggregate(partial_lines):
    #user:item\tvalue (grouped) -> user:item\tsum, rounded
    partials = partial_lines.mapPartitions(records.read_partial_rows)
    return group_sum(partials, rounded_sum).map(format_partial)


#fixed order, each entry: (stage name, stage function, names of the datasets it reads)
STAGES = [
    ("divide_by_user", divide_by_user, ["ratings"]),
    ("cooccurrence", cooccurrence_matrix, ["divide_by_user"]),
    ("normalize", normalize, ["cooccurrence"]),
    ("multiply", multiply_ratings, ["normalize", "ratings"]),
    ("aggregate", aggregate, ["multiply"]),
]


def run_recommender(rating_lines, on_stage=None):
    #returns every dataset by name, "aggregate" holds the final predictions
    datasets = {"ratings": rating_lines}
    for stage_name, stage, inputs in STAGES:
        output, count = materialize(stage(*[datasets[name] for name in inputs]))
        datasets[stage_name] = output
        if on_stage is not None:
            on_stage(stage_name, output, count)
    return datasets


# =========================
# top n (after the pipeline)
# =========================

def split_prediction(record):
    #(user:item, score) -> ((user, item), score), None when the key is not a pair
    pair = records.split_pair(record[0], records.pair_sep)
    if pair is None:
        return None
    return (pair, record[1])


def top_items(scored_items, top_n):
    #highest score first, ties by item id
    ranked = sorted(scored_items, key=lambda item_score: (-item_score[1], item_score[0]))
    return ranked[:top_n]


def format_recommendations(record):
    user_id, ranked = record
    entries = [records.format_pair(item_id, records.format_number(score)) for item_id, score in ranked]
    return records.format_record(user_id, records.list_sep.join(entries))


def recommend(prediction_lines, rating_lines, top_n):
    #user:item\tscore + user,item,rating -> user\titem1:score1,... (only items the user has not rated)
    predictions = (prediction_lines
                   .mapPartitions(records.read_partial_rows)
                   .map(split_prediction)
                   .filter(lambda x: x is not None))
    rated = rating_lines.mapPartitions(records.read_rating_rows).map(lambda row: ((row[0], row[1]), None))
    return (predictions
            .subtractByKey(rated)
            .map(lambda kv: (kv[0][0], (kv[0][1], kv[1])))
            .groupByKey()
            .mapValues(lambda scored: top_items(scored, top_n))
            .filter(lambda kv: len(kv[1]) > 0)
            .map(format_recommendations))


def main():
    start_time = time.time()
    ratings_path, output_dir, top_n = check_inputs()

    spark_context = build_spark_context(app_name)

    try:
        rating_lines = read_dataset(spark_context, ratings_path)

        def persist_stage(stage_name, output, count):
            save_dataset(output, os.path.join(output_dir, stage_name))
            print(f"{stage_name}: {count} records ({time.time() - start_time:.2f} seconds)")

        datasets = run_recommender(rating_lines, on_stage=persist_stage)

        if top_n is not None:
            recommendations = recommend(datasets["aggregate"], rating_lines, top_n).collect()
            write_output(os.path.join(output_dir, "recommendations.txt"), sorted(recommendations))
            print(f"recommendations: {len(recommendations)} users")
    finally:
        spark_context.stop()

    elapsed = time.time() - start_time
    print(f"Total elapsed time: {elapsed:.2f} seconds")


if __name__ == "__main__":
    main()
