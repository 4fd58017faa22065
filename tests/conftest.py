import os
import sys

import pytest


@pytest.fixture(scope="session")
def spark_context():
    #workers must run the same interpreter that has sparse_dataflow installed
    os.environ.setdefault("PYSPARK_PYTHON", sys.executable)
    os.environ.setdefault("PYSPARK_DRIVER_PYTHON", sys.executable)

    from sparse_dataflow.datasets import build_spark_context

    try:
        spark_context = build_spark_context("sparse_dataflow_tests", master="local[2]")
    except Exception as e:
        pytest.skip(f"spark is not available: {e}")
    yield spark_context
    spark_context.stop()


@pytest.fixture
def make_lines(spark_context):
    def make(*lines):
        return spark_context.parallelize(list(lines), 2)
    return make
