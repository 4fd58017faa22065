#pagerank and item-based collaborative filtering as chained group-by-key stages on spark
