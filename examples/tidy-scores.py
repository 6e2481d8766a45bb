import logging

from tidyground import Pipeline, Table
from tidyground.compute import (
    CoercionOptions,
    Mean,
    aggregate,
    cast,
    coerce_table,
    filter,
    left_join,
    melt,
    replace_dummy_table,
    sort,
)
from tidyground.io import read_csv_string

logging.basicConfig(level=logging.DEBUG)

SCORES = """id,Verbal,Nonverbal
1,100,"1,090"
2,9999,95
3,120,9999
4,110,105
"""

STUDENTS = Table.from_pydict(
    {"id": [1, 2, 3, 4], "school": ["North", "South", "North", "South"]}
)

scores, failures = coerce_table(
    read_csv_string(SCORES),
    {"id": "integer", "Verbal": "integer", "Nonverbal": "integer"},
    CoercionOptions(na_values=frozenset({9999})),
)
print("Failed conversions:", failures)

tidy = (
    Pipeline()
    .then(replace_dummy_table, [9999])
    .then(melt, id_columns=["id"], variable_name="Test", value_name="Score")
    .then(filter, "Score IS NOT NULL")
    .then(left_join, STUDENTS, "id")
)
print(tidy)

long = tidy.run(scores)
print(long)

by_school = aggregate(long, ["school", "Test"], {"mean_score": Mean("Score")})
print(sort(by_school, ["school", "Test"]))
print(cast(by_school, "school", "Test", "mean_score"))
