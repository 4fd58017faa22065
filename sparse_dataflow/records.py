#wire format for every stage, one record per text line
#key and value are split on a tab, lists on commas, pairs on ":" and weighted cells on "="
#line parsers are generators so they can go straight into rdd.mapPartitions

# =========================
# delimiters
# =========================

field_sep = "\t"
list_sep = ","
pair_sep = ":"
weight_sep = "="


class NumericFieldError(ValueError):
    """A structurally valid record whose numeric field does not parse.

    Malformed lines are skipped, but a bad number means the upstream dataset is
    corrupt, so this is raised and fails the stage.
    """

    def __init__(self, field, text):
        super().__init__(f"could not parse {field} value {text!r}")
        self.field = field
        self.text = text


def to_number(text, field, convert=float):
    try:
        return convert(text)
    except (TypeError, ValueError):
        raise NumericFieldError(field, text) from None


#same as str(float) but kept in one place so every stage writes numbers the same way
def format_number(value):
    return repr(value)


def split_record(line):
    #key\tvalue, anything else is malformed (None)
    parts = line.strip().split(field_sep)
    if len(parts) != 2:
        return None
    key = parts[0].strip()
    value = parts[1].strip()
    if not key or not value:
        return None
    return key, value


def split_pair(text, sep):
    #a<sep>b with both sides present
    parts = text.strip().split(sep)
    if len(parts) != 2:
        return None
    left = parts[0].strip()
    right = parts[1].strip()
    if not left or not right:
        return None
    return left, right


def format_record(key, value):
    return f"{key}{field_sep}{value}"


def format_pair(left, right, sep=pair_sep):
    return f"{left}{sep}{right}"


# =========================
# pagerank
# =========================

def read_transition_rows(lines):
    #page\tout1,out2,... -> (page, [out1, out2, ...])
    #no tab or an empty list is a dangling page, which produces nothing
    for line in lines:
        parts = line.strip().split(field_sep)
        page = parts[0].strip()
        if not page or len(parts) != 2:
            continue
        targets = [t.strip() for t in parts[1].split(list_sep) if t.strip()]
        if not targets:
            continue
        yield (page, targets)


def read_transition_cells(lines):
    #page\ttarget=weight -> (page, (target, weight))
    for line in lines:
        record = split_record(line)
        if record is None:
            continue
        page, cell = record
        pair = split_pair(cell, weight_sep)
        if pair is None:
            continue
        target, weight = pair
        yield (page, (target, to_number(weight, "transition weight")))


def read_rank_rows(lines):
    #page\trank -> (page, rank)
    for line in lines:
        record = split_record(line)
        if record is None:
            continue
        page, rank = record
        yield (page, to_number(rank, "rank"))


#shared by the rank sum and the prediction aggregate: key\tpartial -> (key, partial)
def read_partial_rows(lines):
    for line in lines:
        record = split_record(line)
        if record is None:
            continue
        key, partial = record
        yield (key, to_number(partial, "partial contribution"))


# =========================
# recommender
# =========================

def read_rating_rows(lines):
    #user,item,rating -> (user, item, rating text)
    #the rating is checked here but kept as text so divide-by-user writes it back unchanged
    for line in lines:
        row = line.strip().split(list_sep)
        if len(row) != 3:
            continue
        user_id = row[0].strip()
        item_id = row[1].strip()
        rating = row[2].strip()
        if not user_id or not item_id or not rating:
            continue
        to_number(rating, "rating")
        yield (user_id, item_id, rating)


def read_user_item_rows(lines):
    #user\titem1:rating1,item2:rating2 -> (user, [item1, item2])
    for line in lines:
        record = split_record(line)
        if record is None:
            continue
        user_id, entries = record
        items = []
        for entry in entries.split(list_sep):
            pair = split_pair(entry, pair_sep)
            if pair is None:
                continue
            items.append(pair[0])
        if items:
            yield (user_id, items)


def read_cell_rows(lines, convert=int):
    #itemA:itemB\tcount -> ((itemA, itemB), count)
    for line in lines:
        record = split_record(line)
        if record is None:
            continue
        cell, count = record
        pair = split_pair(cell, pair_sep)
        if pair is None:
            continue
        yield (pair, to_number(count, "co-occurrence count", convert))


def read_relation_rows(lines):
    #itemB\titemA=fraction -> (itemB, (itemA, fraction))
    for line in lines:
        record = split_record(line)
        if record is None:
            continue
        item_id, relation = record
        pair = split_pair(relation, weight_sep)
        if pair is None:
            continue
        other_item, fraction = pair
        yield (item_id, (other_item, to_number(fraction, "relation fraction")))
