import pytest
from numpy.testing import assert_allclose

from heisdmrg.infinite_system import InfiniteSystemBuilder, TruncationSchedule, TruncationState
from heisdmrg.storage import MemoryBlockStore


def _run_schedule(max_states, steps):
    # (sites, states kept, state, basis_dim, identity_dim) after each step.
    schedule = TruncationSchedule(max_states)
    history = []
    for sites in range(2, 2 + steps):
        keep = schedule.next_states_to_keep()
        schedule.decide(sites)
        schedule.lock_basis()
        schedule.lock_identity()
        history.append((sites, keep, schedule.state, schedule.basis_dim, schedule.identity_dim))
    return schedule, history


def test_schedule_power_of_two_cap():
    schedule, history = _run_schedule(8, 5)
    assert history == [
        (2, 4, TruncationState.PRE_CAP, 4, 8),
        (3, 8, TruncationState.PRE_CAP, 8, 16),
        (4, 8, TruncationState.STEADY, 8, 16),
        (5, 8, TruncationState.STEADY, 8, 16),
        (6, 8, TruncationState.STEADY, 8, 16),
    ]
    assert schedule.onset_size == 4


def test_schedule_cap_between_powers_of_two():
    schedule, history = _run_schedule(10, 4)
    assert [h[1] for h in history] == [4, 8, 10, 10]
    assert [h[3] for h in history] == [4, 8, 10, 10]
    assert [h[4] for h in history] == [8, 16, 20, 20]
    assert schedule.onset_size == 4


def test_schedule_passes_through_every_state():
    schedule = TruncationSchedule(2)
    schedule.next_states_to_keep()
    schedule.decide(2)
    assert schedule.state == TruncationState.ONSET
    assert schedule.basis_dim == 2
    schedule.lock_basis()
    assert schedule.state == TruncationState.STABILIZING
    schedule.lock_identity()
    assert schedule.state == TruncationState.STEADY
    assert schedule.identity_dim == 4


def test_schedule_with_two_states():
    # The first doubling already exceeds the cap.
    schedule, history = _run_schedule(2, 3)
    assert [h[1] for h in history] == [2, 2, 2]
    assert [h[4] for h in history] == [4, 4, 4]
    assert schedule.onset_size == 2


def test_schedule_rejects_empty_cap():
    with pytest.raises(ValueError):
        TruncationSchedule(0)


def test_cap_never_reached_on_short_chain():
    store = MemoryBlockStore()
    builder = InfiniteSystemBuilder(64, 8, store)
    builder.run()
    assert builder.schedule.state == TruncationState.PRE_CAP
    assert builder.schedule.onset_size is None
    assert builder.kept_states == [4, 8, 16]


def test_untruncated_energies_are_exact(exact_energies):
    store = MemoryBlockStore()
    reported = []
    builder = InfiniteSystemBuilder(16, 8, store, report=reported.append)
    records = builder.run()
    assert records == reported
    assert [(r.left_sites, r.right_sites) for r in records] == [(2, 2), (3, 3), (4, 4)]
    for record in records:
        sites = record.left_sites + record.right_sites
        assert_allclose(record.energy_per_site, exact_energies[sites] / sites, atol=1e-10)


def test_blocks_are_stored_after_every_step():
    store = MemoryBlockStore()
    builder = InfiniteSystemBuilder(16, 8, store)
    builder.run()
    assert store.sizes() == [3, 4, 5]
    assert [store.read(size).dim for size in (3, 4, 5)] == [8, 16, 32]
    assert all(store.context_of(size) == "infinite" for size in (3, 4, 5))
    assert builder.block is store.read(5)


def test_kept_states_never_exceed_cap():
    store = MemoryBlockStore()
    builder = InfiniteSystemBuilder(4, 16, store)
    records = builder.run()
    assert len(records) == 7
    assert builder.kept_states == [4, 4, 4, 4, 4, 4, 4]
    for size in store.sizes():
        assert store.read(size).dim == 8
    assert builder.schedule.state == TruncationState.STEADY


def test_energies_are_negative_and_approach_bulk():
    store = MemoryBlockStore()
    records = InfiniteSystemBuilder(10, 20, store).run()
    assert [r.left_sites for r in records] == list(range(2, 11))
    assert all(r.energy_per_site < 0 for r in records)
    # Bulk value 1/4 - ln 2 approached from above for open chains.
    assert -0.4431 < records[-1].energy_per_site < -0.42
