"""
Property-based tests for MERGE / DELETE generation using Hypothesis.

Tests invariants that should hold for every pair of table shapes:
- Join predicate covers exactly the key columns
- UPDATE assignments cover exactly the payload columns
- INSERT and VALUES lists line up with the shared columns
- DELETE only ever projects key columns through EXCEPT
- Applying the plans to in-memory rows converges destination onto source
"""

import re

from hypothesis import given, settings
from hypothesis import strategies as st

from automerge.builder import build_delete, build_merge, plan_delete, plan_merge
from automerge.models import KeyConstraint, TableRef
from utils.database_types import DatabaseType

SOURCE = TableRef("staging", "src")
DEST = TableRef("public", "dst")
TABLE_NAMES = {"public", "dst", "staging", "src"}

identifiers = st.text(
    alphabet="abcdefghijklmnopqrstuvwxyz_", min_size=1, max_size=12
).filter(lambda name: name not in TABLE_NAMES)


@st.composite
def table_shapes(draw):
    """(dest_columns, source_columns, key_columns) with the key fully shared."""
    names = draw(st.lists(identifiers, min_size=1, max_size=12, unique=True))
    shared = draw(
        st.lists(st.sampled_from(names), min_size=1, max_size=len(names), unique=True)
    )
    rest = [n for n in names if n not in shared]
    dest_only = [n for n in rest if draw(st.booleans())]
    source_only = [n for n in rest if n not in dest_only]

    dest_columns = draw(st.permutations(shared + dest_only))
    source_columns = draw(st.permutations(shared + source_only))
    key_columns = draw(
        st.lists(st.sampled_from(shared), min_size=1, max_size=len(shared), unique=True)
    )
    return list(dest_columns), list(source_columns), key_columns


def _key(columns):
    return KeyConstraint(DEST, "dst_key", tuple(columns))


def _clause(text, start, end=None):
    begin = text.index(start) + len(start)
    finish = text.index(end, begin) if end else len(text)
    return text[begin:finish]


# Property: the join predicate is one S.c = T.c equality per key column
@given(shape=table_shapes())
@settings(max_examples=200)
def test_join_predicate_covers_exactly_the_key(shape):
    dest_columns, source_columns, key_columns = shape
    text = build_merge(SOURCE, DEST, _key(key_columns), dest_columns, source_columns).text

    join = _clause(text, " ON ", " WHEN ")
    predicates = join.split(" AND ")
    assert sorted(predicates) == sorted(f'S."{c}" = T."{c}"' for c in key_columns)


# Property: UPDATE covers shared minus key; INSERT/VALUES list shared columns once, aligned
@given(shape=table_shapes())
@settings(max_examples=200)
def test_update_and_insert_lists(shape):
    dest_columns, source_columns, key_columns = shape
    plan = plan_merge(SOURCE, DEST, _key(key_columns), dest_columns, source_columns)

    shared = [c for c in dest_columns if c in source_columns]
    assert set(plan.join_columns) == set(key_columns)
    assert list(plan.update_columns) == [c for c in shared if c not in key_columns]
    assert list(plan.insert_columns) == shared

    text = build_merge(SOURCE, DEST, _key(key_columns), dest_columns, source_columns).text
    insert_cols = _clause(text, "INSERT (", ") VALUES").split(", ")
    insert_vals = _clause(text, "VALUES (")[:-1].split(", ")
    assert len(insert_cols) == len(insert_vals) == len(shared)
    assert [v[len("S."):] for v in insert_vals] == insert_cols

    if plan.update_columns:
        assert "WHEN MATCHED THEN UPDATE SET" in text
    else:
        assert "WHEN MATCHED" not in text


# Property: the DELETE is a key-only EXCEPT and never names a payload column
@given(shape=table_shapes(), dialect=st.sampled_from(list(DatabaseType)))
@settings(max_examples=200)
def test_delete_projects_only_key_columns(shape, dialect):
    dest_columns, source_columns, key_columns = shape
    text = build_delete(
        SOURCE, DEST, _key(key_columns), dest_columns, source_columns, dialect
    ).text

    assert text.count(" EXCEPT ") == 1
    referenced = set(re.findall(r'"([^"]+)"|\[([^\]]+)\]', text))
    names = {a or b for a, b in referenced} - TABLE_NAMES
    assert names == set(key_columns)


def _apply_merge(plan, source_rows, dest_rows):
    """Evaluate a MergePlan over rows keyed by their join columns."""
    result = {k: dict(v) for k, v in dest_rows.items()}
    for key, row in source_rows.items():
        if key in result:
            for column in plan.update_columns:
                result[key][column] = row[column]
        else:
            result[key] = {c: row[c] for c in plan.insert_columns}
    return result


def _apply_delete(plan, source_rows, dest_rows):
    assert plan.key_columns
    return {k: v for k, v in dest_rows.items() if k in source_rows}


rows = st.dictionaries(
    st.integers(min_value=0, max_value=20),
    st.text(max_size=3),
    max_size=10,
)


# Property: upsert then delete leaves destination equal to source; upsert is idempotent
@given(source=rows, dest=rows)
def test_merge_then_delete_round_trip(source, dest):
    columns = ["id", "name"]
    key = _key(["id"])
    merge = plan_merge(SOURCE, DEST, key, columns, columns)
    delete = plan_delete(SOURCE, DEST, key, columns, columns)

    source_rows = {i: {"id": i, "name": n} for i, n in source.items()}
    dest_rows = {i: {"id": i, "name": n} for i, n in dest.items()}

    merged = _apply_merge(merge, source_rows, dest_rows)
    assert _apply_merge(merge, source_rows, merged) == merged

    reconciled = _apply_delete(delete, source_rows, merged)
    assert reconciled == source_rows
