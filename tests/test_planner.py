"""Tests for branchsplit.planner module."""

import math

import pytest

from branchsplit.planner import group_name, partition


def test_groups_of_two():
    plan = partition(["f1", "f2", "f3", "f4", "f5"], 2, "split")

    assert [(g.name, g.files) for g in plan.groups] == [
        ("split_1", ["f1", "f2"]),
        ("split_2", ["f3", "f4"]),
        ("split_3", ["f5"]),
    ]


@pytest.mark.parametrize("length", [0, 1, 2, 7, 10, 23])
@pytest.mark.parametrize("size", [1, 3, 10, 50])
def test_partition_properties(length, size):
    files = [f"file_{i}.txt" for i in range(length)]
    plan = partition(files, size)

    assert len(plan.groups) == math.ceil(length / size)
    assert [f for g in plan.groups for f in g.files] == files
    assert all(len(g.files) == size for g in plan.groups[:-1])
    assert plan.total_files == length


def test_default_prefix_and_one_based_names():
    plan = partition(["a", "b"], 1)
    assert [g.name for g in plan.groups] == ["split_1", "split_2"]


def test_group_name():
    assert group_name("review", 12) == "review_12"


def test_input_list_not_shared():
    files = ["a", "b"]
    plan = partition(files, 5)
    plan.groups[0].files.append("c")
    assert files == ["a", "b"]
