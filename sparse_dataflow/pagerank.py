#pagerank by repeated sparse matrix x vector multiplication
#submission: spark-submit pagerank.py <transition_path> <rank_path> <output_dir> <iterations>
#input transitions: page\tout1,out2,...  (no list = dangling page)
#input ranks: page\trank
#output: <output_dir>/rank0 .. rank<iterations>, each page\trank rounded to 5 decimals
#fixed number of iterations, no convergence check, dangling mass is dropped not redistributed

import os
import sys
import time

from sparse_dataflow import records
from sparse_dataflow.datasets import build_spark_context, materialize, read_dataset, save_dataset
from sparse_dataflow.matrix import build_transition_matrix
from sparse_dataflow.multiply import format_partial, multiply_transition
from sparse_dataflow.operators import group_sum, rounded_sum

app_name = "pagerank"


def check_inputs():
    if len(sys.argv) != 5:
        print("Usage: spark-submit pagerank.py <transition_path> <rank_path> <output_dir> <iterations>", file=sys.stderr)
        sys.exit(1)
    try:
        iterations = int(sys.argv[4])
    except ValueError:
        print("Error: <iterations> must be an integer.", file=sys.stderr)
        sys.exit(1)
    if iterations < 0:
        print("Error: <iterations> must be >= 0.", file=sys.stderr)
        sys.exit(1)
    return sys.argv[1], sys.argv[2], sys.argv[3], iterations


def sum_ranks(partial_lines):
    #page\tpartial (grouped) -> page\trank, rounded
    partials = partial_lines.mapPartitions(records.read_partial_rows)
    return group_sum(partials, rounded_sum).map(format_partial)


def rank_mass(rank_lines):
    #total probability mass, only drops below 1 through dangling pages
    return rank_lines.mapPartitions(records.read_rank_rows).values().sum()


def pagerank_iteration(transition_lines, rank_lines):
    return sum_ranks(multiply_transition(transition_lines, rank_lines))


def run_pagerank(link_lines, rank_lines, iterations, on_iteration=None):
    #rank_{i+1} = sum(multiply(transitions, rank_i)) for i in 0..iterations-1
    #every rank_i is fully computed before iteration i+1 starts, on_iteration(i, rank_i) sees complete vectors only
    if iterations < 0:
        raise ValueError(f"iterations must be >= 0, got {iterations}")

    #transition matrix is fixed for the whole run
    transition_lines, _ = materialize(build_transition_matrix(link_lines))

    for i in range(iterations):
        previous = rank_lines
        rank_lines, _ = materialize(pagerank_iteration(transition_lines, previous))
        previous.unpersist()
        if on_iteration is not None:
            on_iteration(i + 1, rank_lines)

    transition_lines.unpersist()
    return rank_lines


def main():
    start_time = time.time()
    transition_path, rank_path, output_dir, iterations = check_inputs()

    spark_context = build_spark_context(app_name)

    try:
        link_lines = read_dataset(spark_context, transition_path)
        rank_lines = read_dataset(spark_context, rank_path)
        save_dataset(rank_lines, os.path.join(output_dir, "rank0"))

        def persist_iteration(i, ranks):
            #each vector is saved so a failed run can restart from the last one
            save_dataset(ranks, os.path.join(output_dir, f"rank{i}"))
            print(f"iteration {i}/{iterations}: rank mass {rank_mass(ranks):.5f} "
                  f"({time.time() - start_time:.2f} seconds)")

        run_pagerank(link_lines, rank_lines, iterations, on_iteration=persist_iteration)
    finally:
        spark_context.stop()

    elapsed = time.time() - start_time
    print(f"Total elapsed time: {elapsed:.2f} seconds")


if __name__ == "__main__":
    main()
