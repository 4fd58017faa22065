def collect_sorted(lines_rdd):
    return sorted(lines_rdd.collect())


def as_dict(lines_rdd):
    #key\tvalue lines -> {key: float(value)}
    result = {}
    for line in lines_rdd.collect():
        key, value = line.split("\t")
        result[key] = float(value)
    return result
