#spark context and dataset store helpers
#a dataset is a text file or a saveAsTextFile directory of wire-format lines

import os

from pyspark import SparkConf, SparkContext

#keep spark's own log4j output quiet, progress is printed by the drivers
spark_log_level = "ERROR"


def build_spark_context(app_name, master=None):
    spark_conf = SparkConf().setAppName(app_name)
    if master:
        spark_conf = spark_conf.setMaster(master)
    spark_context = SparkContext.getOrCreate(conf=spark_conf)
    spark_context.setLogLevel(spark_log_level)
    return spark_context


def to_file_path(path):
    #local paths get an explicit file:// scheme, anything with a scheme (hdfs://, s3a://) is left alone
    if "://" in path or path.startswith("file:/"):
        return path
    path = os.path.abspath(path).replace("\\", "/")
    return "file://" + path


def read_dataset(spark_context, path):
    return spark_context.textFile(to_file_path(path))


def save_dataset(lines_rdd, path):
    #sorted so re-running a stage on the same input writes byte-identical files
    lines_rdd.sortBy(lambda line: line).saveAsTextFile(to_file_path(path))


def materialize(lines_rdd):
    #stage barrier: cache and force the whole dataset before anything reads it
    lines_rdd = lines_rdd.cache()
    return lines_rdd, lines_rdd.count()


def write_output(path, lines):
    with open(path, "w", encoding="utf-8") as file_handle:
        for line in lines:
            file_handle.write(line + "\n")
