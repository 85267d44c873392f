# tests/test_selector.py
import random

import pytest

from zkwallet.core.errors import InsufficientFunds
from zkwallet.tx.selector import order_candidates, select_utxos

from conftest import account, utxo

OWNER = account(0xA)


def make_set(amounts):
    return [utxo(i + 1, OWNER, a) for i, a in enumerate(amounts)]


def test_single_utxo_exact():
    sel = select_utxos(make_set([100]), 100)
    assert [u.amount for u in sel.inputs] == [100]
    assert sel.change == 0


def test_largest_first_with_change():
    sel = select_utxos(make_set([50, 70]), 90)
    assert [u.amount for u in sel.inputs] == [70, 50]
    assert sel.total == 120
    assert sel.change == 30


def test_prefers_one_large_input_over_many_small():
    sel = select_utxos(make_set([1, 1, 1, 1, 40]), 3)
    assert [u.amount for u in sel.inputs] == [40]
    assert sel.change == 37


def test_insufficient_funds_reports_available_and_requested():
    with pytest.raises(InsufficientFunds) as exc:
        select_utxos(make_set([10, 5]), 100)
    assert exc.value.available == 15
    assert exc.value.requested == 100


def test_empty_set_is_insufficient():
    with pytest.raises(InsufficientFunds) as exc:
        select_utxos([], 1)
    assert exc.value.available == 0


def test_fee_is_part_of_target():
    sel = select_utxos(make_set([10, 5]), 10, fee=3)
    assert sel.target == 13
    assert [u.amount for u in sel.inputs] == [10, 5]
    assert sel.change == 2

    with pytest.raises(InsufficientFunds) as exc:
        select_utxos(make_set([10, 5]), 13, fee=3)
    assert exc.value.requested == 16


def test_zero_target_still_spends_one_input():
    sel = select_utxos(make_set([3, 9]), 0)
    assert [u.amount for u in sel.inputs] == [9]


def test_ties_broken_by_id():
    owner = OWNER
    utxos = [utxo(9, owner, 10), utxo(3, owner, 10), utxo(5, owner, 10)]
    sel = select_utxos(utxos, 15)
    assert [u.id for u in sel.inputs] == [format(3, "064x"), format(5, "064x")]


def test_deterministic_across_input_order():
    utxos = make_set([5, 5, 7, 7, 1, 9, 9, 2])
    expected = select_utxos(utxos, 20)
    for seed in range(10):
        shuffled = utxos[:]
        random.Random(seed).shuffle(shuffled)
        assert select_utxos(shuffled, 20) == expected


def test_duplicates_collapsed():
    u = utxo(1, OWNER, 10)
    assert order_candidates([u, u]) == [u]
    with pytest.raises(InsufficientFunds):
        select_utxos([u, u], 20)


@pytest.mark.parametrize("seed", range(25))
def test_greedy_selection_properties(seed):
    rng = random.Random(seed)
    utxos = make_set([rng.randint(1, 50) for _ in range(rng.randint(1, 12))])
    total = sum(u.amount for u in utxos)
    target = rng.randint(1, total)

    sel = select_utxos(utxos, target)
    ids = {u.id for u in utxos}

    assert {u.id for u in sel.inputs} <= ids
    assert sel.total >= target
    assert sel.total - target == sel.change
    if len(sel.inputs) > 1:
        largest = max(sel.inputs, key=lambda u: u.amount)
        assert sel.total - largest.amount < target


@pytest.mark.parametrize("seed", range(10))
def test_selection_fails_when_set_too_small(seed):
    rng = random.Random(1000 + seed)
    utxos = make_set([rng.randint(1, 20) for _ in range(rng.randint(0, 6))])
    total = sum(u.amount for u in utxos)
    with pytest.raises(InsufficientFunds):
        select_utxos(utxos, total + rng.randint(1, 10))
