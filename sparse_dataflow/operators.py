#generic keyed operators shared by both pipelines
#keyed join of two tagged producers, group sum and group concat

import math
from decimal import Decimal, ROUND_HALF_UP

#externally visible precision of final ranks and predictions
decimal_places = 5

origin_a = "A"
origin_b = "B"

# =========================
# keyed join
# =========================

def tag_with(origin):
    #(key, value) -> (key, (origin, value)), one producer per input stream
    def tag(record):
        return (record[0], (origin, record[1]))
    return tag


def split_by_origin(tagged_values):
    #back from [(origin, value), ...] to (values_from_a, values_from_b)
    #no order is promised on either side
    from_a = []
    from_b = []
    for origin, value in tagged_values:
        if origin == origin_a:
            from_a.append(value)
        else:
            from_b.append(value)
    return from_a, from_b


def keyed_join(rdd_a, rdd_b):
    #one grouped record per key seen in either stream: (key, ([a values], [b values]))
    #a key missing from one side gets an empty list there
    tagged = rdd_a.map(tag_with(origin_a)).union(rdd_b.map(tag_with(origin_b)))
    return tagged.groupByKey().mapValues(split_by_origin)


# =========================
# group sum
# =========================

def sum_values(values):
    #fsum is exactly rounded so the result does not depend on value order
    #empty -> 0.0
    return math.fsum(values)


def count_values(values):
    return sum(int(v) for v in values)


def round_half_up(value, places=decimal_places):
    #round on the shortest repr of the float, then back to float
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def rounded_sum(values):
    return round_half_up(sum_values(values))


def concat_values(values, sep=","):
    #sorted so the same group always writes the same line
    return sep.join(sorted(values))


def group_sum(pairs_rdd, reducer=sum_values):
    #(key, value) records -> (key, reducer(all values of key))
    return pairs_rdd.groupByKey().mapValues(reducer)
