#building the sparse matrices
#transition rows for pagerank, co-occurrence cells and their column normalization for the recommender

from sparse_dataflow import records
from sparse_dataflow.operators import count_values, group_sum

# =========================
# transition rows (pagerank)
# =========================

def transition_cells(page, targets):
    #every out-link gets 1/outDegree, so a row always sums to 1
    weight = 1.0 / len(targets)
    return [(page, (target, weight)) for target in targets]


def format_transition_cell(record):
    page, (target, weight) = record
    return records.format_record(page, records.format_pair(target, records.format_number(weight), records.weight_sep))


def build_transition_matrix(link_lines):
    #page\tout1,out2 -> page\ttarget=weight
    #dangling pages never reach here (read_transition_rows drops them), their mass is lost each iteration
    return (link_lines
            .mapPartitions(records.read_transition_rows)
            .flatMap(lambda row: transition_cells(row[0], row[1]))
            .map(format_transition_cell))


# =========================
# co-occurrence (recommender)
# =========================

def cooccurrence_cells(items):
    #all ordered pairs including (i, i), k items -> k*k cells
    #quadratic per user, callers with very active users should cap the list upstream
    return [((item_a, item_b), 1) for item_a in items for item_b in items]


def format_cell(record):
    (item_a, item_b), count = record
    return records.format_record(records.format_pair(item_a, item_b), count)


def build_cooccurrence(user_item_lines):
    #user\titem:rating,... -> itemA:itemB\t1
    return (user_item_lines
            .mapPartitions(records.read_user_item_rows)
            .flatMap(lambda row: cooccurrence_cells(row[1]))
            .map(format_cell))


def sum_cooccurrence(cell_lines):
    #itemA:itemB\t1 (grouped) -> itemA:itemB\tcount
    return group_sum(cell_lines.mapPartitions(records.read_cell_rows), count_values).map(format_cell)


def cooccurrence_matrix(user_item_lines):
    return sum_cooccurrence(build_cooccurrence(user_item_lines))


# =========================
# normalize + transpose
# =========================

def normalize_row(source_item, cells):
    #cells = [(target_item, count)] for one source item
    #emitted keyed by the target item so the matrix is stored by column
    cells = list(cells)
    denominator = sum(count for _, count in cells)

    #cannot happen when the self pair is present, treat as a bad row
    if denominator <= 0:
        return []
    return [(target_item, (source_item, count / denominator)) for target_item, count in cells]


def format_relation(record):
    item_id, (other_item, fraction) = record
    return records.format_record(item_id, records.format_pair(other_item, records.format_number(fraction), records.weight_sep))


def normalize(count_lines):
    #itemA:itemB\tcount -> itemB\titemA=fraction
    return (count_lines
            .mapPartitions(records.read_cell_rows)
            .map(lambda cell: (cell[0][0], (cell[0][1], cell[1])))
            .groupByKey()
            .flatMap(lambda group: normalize_row(group[0], group[1]))
            .map(format_relation))
