#sparse matrix x sparse vector as a keyed join
#emits unsummed partial contributions, the paired group sum finishes the multiply

from sparse_dataflow import records
from sparse_dataflow.operators import keyed_join


def cross_products(cells, scalars):
    #full cross product inside one join key
    #cells = [(target, weight)], scalars = [scalar], one term per combination
    for target, weight in cells:
        for scalar in scalars:
            yield target, weight * scalar


# =========================
# pagerank: transition x rank
# =========================

def multiply_page(group):
    #(page, ([(target, weight)], [rank])) -> [(target, weight * rank)]
    #a page with no rank or no transition row gives nothing
    _, (cells, ranks) = group
    return list(cross_products(cells, ranks))


def format_partial(record):
    key, partial = record
    return records.format_record(key, records.format_number(partial))


def multiply_transition(transition_lines, rank_lines):
    #page\ttarget=weight + page\trank -> target\tpartial
    cells = transition_lines.mapPartitions(records.read_transition_cells)
    ranks = rank_lines.mapPartitions(records.read_rank_rows)
    return keyed_join(cells, ranks).flatMap(multiply_page).map(format_partial)


# =========================
# recommender: normalized co-occurrence x ratings
# =========================

def multiply_item(group):
    #(item, ([(other_item, fraction)], [(user, rating)])) -> [((user, other_item), rating * fraction)]
    _, (relations, raters) = group
    predictions = []
    for user_id, rating in raters:
        for other_item, value in cross_products(relations, [rating]):
            predictions.append(((user_id, other_item), value))
    return predictions


def format_prediction(record):
    (user_id, item_id), value = record
    return records.format_record(records.format_pair(user_id, item_id), records.format_number(value))


def rating_by_item(row):
    user_id, item_id, rating = row
    return (item_id, (user_id, float(rating)))


def multiply_ratings(relation_lines, rating_lines):
    #itemB\titemA=fraction + user,itemB,rating -> user:itemA\trating*fraction
    relations = relation_lines.mapPartitions(records.read_relation_rows)
    ratings = rating_lines.mapPartitions(records.read_rating_rows).map(rating_by_item)
    return keyed_join(relations, ratings).flatMap(multiply_item).map(format_prediction)
