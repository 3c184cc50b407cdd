"""
Property tests for weighted holder selection.

1) Whenever anything is held, weights sum to 1 and the selected account has a
   positive merged balance.
2) When nothing is held there is never a selection, whatever the draw.
3) The merged total equals liquid plus vaulted holdings, and inputs are left
   untouched.
"""
from __future__ import annotations

import math

import pytest
from hypothesis import given, settings, strategies as st

from community_sdk.selector import holder_weights, merge_vault, select_weighted_holder
from community_sdk.types.state import VaultEntry

accounts = st.text(alphabet="abcdefgh", min_size=1, max_size=3)
balances_st = st.dictionaries(accounts, st.integers(min_value=0, max_value=10**12), max_size=8)
vault_st = st.dictionaries(
    accounts,
    st.lists(st.builds(VaultEntry, balance=st.integers(min_value=0, max_value=10**9)), max_size=3),
    max_size=5,
)
draws = st.floats(min_value=0.0, max_value=1.0, exclude_max=True)


@settings(max_examples=200, deadline=None)
@given(balances_st, vault_st, draws)
def test_selection_has_positive_weight(balances, vault, r):
    merged = merge_vault(balances, vault)
    total = sum(merged.values())
    picked = select_weighted_holder(balances, vault, rng=lambda: r)

    if total == 0:
        assert picked is None
        return
    assert math.isclose(sum(holder_weights(merged).values()), 1.0, rel_tol=1e-9)
    if picked is not None:
        assert merged[picked] > 0


@settings(max_examples=100, deadline=None)
@given(st.dictionaries(accounts, st.just(0), max_size=6), draws)
def test_nothing_held_never_selects(balances, r):
    assert select_weighted_holder(balances, {}, rng=lambda: r) is None


@settings(max_examples=100, deadline=None)
@given(balances_st, vault_st)
def test_merge_totals_and_purity(balances, vault):
    before_b = dict(balances)
    before_v = {k: list(v) for k, v in vault.items()}

    merged = merge_vault(balances, vault)

    expected = sum(balances.values()) + sum(e.balance for entries in vault.values() for e in entries)
    assert sum(merged.values()) == expected
    assert set(balances) <= set(merged)
    assert balances == before_b
    assert vault == before_v


@pytest.mark.parametrize("r", [0.0, 0.25, 0.5, 0.999999])
def test_single_holder_always_wins(r):
    assert select_weighted_holder({"solo": 1}, {"solo": [VaultEntry(9)]}, rng=lambda: r) == "solo"
