import pytest

from community_sdk.selector import holder_weights, merge_vault, select_weighted_holder
from community_sdk.types.state import VaultEntry


def fixed(r: float):
    return lambda: r


def test_merge_vault_adds_locked_balances_and_vault_only_accounts():
    merged = merge_vault({"A": 10}, {"A": [VaultEntry(5)], "B": [VaultEntry(3)]})
    assert merged == {"A": 15, "B": 3}
    assert sum(merged.values()) == 18


def test_merge_vault_accepts_raw_entries():
    assert merge_vault({"A": 1}, {"A": [{"balance": 2}, {"balance": 3}]}) == {"A": 6}


def test_weights_sum_to_one():
    weights = holder_weights({"A": 15, "B": 3})
    assert weights["A"] == pytest.approx(15 / 18)
    assert sum(weights.values()) == pytest.approx(1.0)


def test_weights_all_zero_when_nothing_held():
    assert holder_weights({"A": 0, "B": 0}) == {"A": 0.0, "B": 0.0}


def test_empty_balances_select_nothing():
    assert select_weighted_holder({}, {}) is None


def test_zero_holdings_select_nothing():
    assert select_weighted_holder({"A": 0}, {}, rng=fixed(0.0)) is None


@pytest.mark.parametrize(
    "r, expected",
    [
        (0.0, "A"),
        (0.5, "A"),
        (15 / 18, "A"),
        (0.9, "B"),
        (0.999, "B"),
    ],
)
def test_draw_walks_cumulative_weights(r, expected):
    picked = select_weighted_holder({"A": 10}, {"A": [VaultEntry(5)], "B": [VaultEntry(3)]}, rng=fixed(r))
    assert picked == expected


def test_zero_weight_account_is_never_selected():
    # r == 0 would match the first cumulative sum, but "A" holds nothing.
    assert select_weighted_holder({"A": 0, "B": 5}, {}, rng=fixed(0.0)) == "B"


def test_ties_resolve_in_insertion_order():
    assert select_weighted_holder({"A": 1, "B": 1}, {}, rng=fixed(0.5)) == "A"
    assert select_weighted_holder({"B": 1, "A": 1}, {}, rng=fixed(0.5)) == "B"


def test_inputs_are_not_mutated():
    balances = {"A": 10}
    vault = {"A": [VaultEntry(5)], "B": [VaultEntry(3)]}
    select_weighted_holder(balances, vault, rng=fixed(0.2))
    assert balances == {"A": 10}
    assert vault == {"A": [VaultEntry(5)], "B": [VaultEntry(3)]}


def test_frequencies_follow_weights():
    import random

    rnd = random.Random(7)
    counts = {"A": 0, "B": 0}
    for _ in range(4000):
        counts[select_weighted_holder({"A": 3, "B": 1}, {}, rng=rnd.random)] += 1
    assert 0.70 < counts["A"] / 4000 < 0.80
