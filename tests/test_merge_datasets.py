import pandas as pd
import pytest

from marine_species_integration.exceptions import JoinConfigurationError
from marine_species_integration.integration.merge_datasets import (
    coalesce_columns,
    full_outer_join,
    outer_join_cardinality,
)


def test_outer_join_keeps_unmatched_rows_from_both_sides():
    left = pd.DataFrame({"id": ["1", "2", None], "a": ["l1", "l2", "l3"]})
    right = pd.DataFrame({"id": ["2", "3", None], "b": ["r2", "r3", "r4"]})

    out = full_outer_join(left, right, on="id")

    assert len(out) == 5 == outer_join_cardinality(left, right, "id")
    assert out["a"].tolist()[:3] == ["l1", "l2", "l3"]
    assert out["b"].tolist()[3:] == ["r3", "r4"]
    matched = out[out["id"] == "2"]
    assert matched[["a", "b"]].values.tolist() == [["l2", "r2"]]


def test_null_keys_never_match():
    left = pd.DataFrame({"id": [None], "a": [1]})
    right = pd.DataFrame({"id": [None], "b": [2]})
    out = full_outer_join(left, right, on="id")
    assert len(out) == 2


def test_many_to_many_emits_every_combination():
    left = pd.DataFrame({"id": ["x", "x"], "a": [1, 2]})
    right = pd.DataFrame({"id": ["x", "x", "x"], "b": [10, 20, 30]})

    out = full_outer_join(left, right, on="id")

    assert len(out) == 6 == outer_join_cardinality(left, right, "id")
    assert out["a"].tolist() == [1, 1, 1, 2, 2, 2]
    assert out["b"].tolist() == [10, 20, 30, 10, 20, 30]


def test_shared_columns_coalesce_left_first():
    left = pd.DataFrame({"id": ["1", "2", "3"], "name": ["A", None, None]})
    right = pd.DataFrame({"id": ["1", "2", "3"], "name": ["Z", "B", None]})

    out = full_outer_join(left, right, on="id", suffixes=("_supp", "_goat"))

    assert list(out.columns) == ["id", "name"]
    assert out["name"].tolist()[:2] == ["A", "B"]
    assert pd.isna(out["name"].iloc[2])


def test_coalesce_can_be_disabled():
    left = pd.DataFrame({"id": ["1"], "name": ["A"]})
    right = pd.DataFrame({"id": ["1"], "name": ["Z"]})
    out = full_outer_join(left, right, on="id", suffixes=("_supp", "_goat"), coalesce=False)
    assert {"name_supp", "name_goat"} <= set(out.columns)


def test_coalesce_columns_keeps_position():
    df = pd.DataFrame({"id": [1], "family_x": [None], "genus": ["Gadus"], "family_y": ["Gadidae"]})
    out = coalesce_columns(df, suffixes=("_x", "_y"))
    assert list(out.columns) == ["id", "family", "genus"]
    assert out["family"].iloc[0] == "Gadidae"


def test_left_join_drops_unmatched_right_rows():
    left = pd.DataFrame({"id": ["1", "2"], "a": [1, 2]})
    right = pd.DataFrame({"id": ["2", "3"], "b": [20, 30]})
    out = full_outer_join(left, right, on="id", how="left")
    assert out["id"].tolist() == ["1", "2"]
    assert len(out) == outer_join_cardinality(left, right, "id", how="left")


def test_multi_column_keys():
    left = pd.DataFrame({"Species": ["Gadus morhua", "Gadus morhua"], "SpecCode": [69, 70], "depth": [600, 10]})
    right = pd.DataFrame({"Species": ["Gadus morhua"], "SpecCode": [69], "TempMin": [2.0]})
    out = full_outer_join(left, right, on=["Species", "SpecCode"])
    assert len(out) == 2
    assert out.loc[out["SpecCode"] == 69, "TempMin"].tolist() == [2.0]


def test_key_absent_from_both_sides_is_a_configuration_error():
    with pytest.raises(JoinConfigurationError):
        full_outer_join(pd.DataFrame({"a": [1]}), pd.DataFrame({"b": [2]}), on="id")


def test_suffixed_name_already_taken_is_a_configuration_error():
    left = pd.DataFrame({"id": ["1"], "name": ["x"], "name_right": ["y"]})
    right = pd.DataFrame({"id": ["1"], "name": ["z"]})
    with pytest.raises(JoinConfigurationError):
        full_outer_join(left, right, on="id")


def test_key_absent_from_one_side_leaves_rows_unmatched():
    left = pd.DataFrame({"id": ["1"], "a": [1]})
    right = pd.DataFrame({"b": [2, 3]})
    out = full_outer_join(left, right, on="id")
    assert len(out) == 3


def test_unsupported_join_type():
    with pytest.raises(ValueError):
        full_outer_join(pd.DataFrame({"id": [1]}), pd.DataFrame({"id": [1]}), on="id", how="inner")
