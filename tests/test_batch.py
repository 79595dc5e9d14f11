#!/usr/bin/env python3
"""
Batch Execution Tests

multi_fill / multi_reclaim:
- stop at the first empty slot
- a failing entry never blocks its siblings
- capacity and shape violations are rejected up front
"""

import pytest

from intent_platform.domain.errors import InvalidBatch
from intent_platform.domain.models import MAX_BATCH_SIZE
from intent_platform.execution.address import ZERO_ADDRESS
from fake_contracts import ALICE, BOB, CAROL


@pytest.fixture
def intents(ledger, factory, target):
    """Three funded native intents with different amounts"""
    addresses = []
    for amount in (10, 20, 30):
        address = factory.create_intent(ALICE, None, amount, target.address, b"")
        ledger.mint_native(address, amount * 5)
        addresses.append(address)
    return addresses


class TestMultiFill:

    def test_all_entries_filled(self, factory, intents):
        results = factory.multi_fill(BOB, intents, [0, 0, 0])

        assert [r.success for r in results] == [True, True, True]
        for address in intents:
            assert factory.get_intent(address).fill_count(BOB) == 1

    def test_failing_entry_isolated(self, factory, intents):
        a, b, _ = intents
        factory.get_intent(a).fill(CAROL, 0)

        results = factory.multi_fill(BOB, [a, b, None], [0, 0])

        assert not results[0].success
        assert results[0].error_code == "SEQUENCE_MISMATCH"
        assert results[1].success
        assert factory.get_intent(a).fill_count(BOB) == 0
        assert factory.get_intent(b).fill_count(BOB) == 1

    def test_stops_at_first_empty_slot(self, factory, intents):
        a, b, c = intents
        results = factory.multi_fill(BOB, [a, None, c], [0, 0, 0])

        assert len(results) == 1
        assert factory.get_intent(c).outstanding_fills == 0

    @pytest.mark.parametrize("sentinel", [None, "", ZERO_ADDRESS])
    def test_sentinels(self, factory, intents, sentinel):
        results = factory.multi_fill(BOB, [intents[0], sentinel, intents[1]], [0, 0, 0])
        assert len(results) == 1

    def test_unknown_and_malformed_entries_fail_individually(self, factory, intents):
        results = factory.multi_fill(BOB, [CAROL, "0xbad", intents[0]], [0, 0, 0])

        assert results[0].error_code == "INTENT_NOT_FOUND"
        assert results[1].error_code == "INVALID_PARAMS"
        assert results[1].intent == "0xbad"
        assert results[2].success

    def test_underfunded_entry_isolated(self, ledger, factory, target, intents):
        empty = factory.create_intent(ALICE, None, 99, target.address, b"")
        results = factory.multi_fill(BOB, [empty, intents[0]], [0, 0])

        assert results[0].error_code == "TRANSFER_FAILED"
        assert results[1].success
        assert factory.get_intent(empty).outstanding_fills == 0

    def test_empty_batch(self, factory):
        assert factory.multi_fill(BOB, [], []) == []

    def test_too_many_intents(self, factory, intents):
        with pytest.raises(InvalidBatch):
            factory.multi_fill(BOB, [intents[0]] * (MAX_BATCH_SIZE + 1), [0] * MAX_BATCH_SIZE)

    def test_too_many_sequences(self, factory, intents):
        with pytest.raises(InvalidBatch):
            factory.multi_fill(BOB, intents, [0] * (MAX_BATCH_SIZE + 1))

    def test_missing_sequences(self, factory, intents):
        with pytest.raises(InvalidBatch):
            factory.multi_fill(BOB, intents, [0, 0])
        for address in intents:
            assert factory.get_intent(address).outstanding_fills == 0

    def test_same_intent_twice_in_one_batch(self, factory, intents):
        a = intents[0]
        results = factory.multi_fill(BOB, [a, a, a], [0, 1, 1])

        assert [r.success for r in results] == [True, True, False]
        assert factory.get_intent(a).fill_count(BOB) == 2

    def test_results_serialize(self, factory, intents):
        data = factory.multi_fill(BOB, intents[:1], [0])[0].to_dict()
        assert data == {
            "index": 0,
            "intent": intents[0],
            "success": True,
            "sequence": 0,
            "error_code": None,
            "error": None,
        }


class TestMultiReclaim:

    def test_reclaims_each_entry(self, ledger, factory, intents):
        factory.multi_fill(BOB, intents, [0, 0, 0])
        results = factory.multi_reclaim(BOB, intents)

        assert all(r.success for r in results)
        assert ledger.balance_of(BOB) == 60
        for address in intents:
            assert factory.get_intent(address).outstanding_fills == 0

    def test_entry_without_fill_isolated(self, factory, intents):
        a, b, _ = intents
        factory.get_intent(b).fill(BOB, 0)

        results = factory.multi_reclaim(BOB, [a, b])

        assert results[0].error_code == "NO_OUTSTANDING_FILL"
        assert results[1].success

    def test_only_reclaims_callers_fills(self, factory, intents):
        a = intents[0]
        factory.get_intent(a).fill(CAROL, 0)

        results = factory.multi_reclaim(BOB, [a])

        assert not results[0].success
        assert factory.get_intent(a).fill_count(CAROL) == 1

    def test_stops_at_sentinel(self, factory, intents):
        factory.multi_fill(BOB, intents, [0, 0, 0])
        results = factory.multi_reclaim(BOB, [intents[0], ZERO_ADDRESS, intents[2]])

        assert len(results) == 1
        assert factory.get_intent(intents[2]).fill_count(BOB) == 1

    def test_capacity(self, factory, intents):
        with pytest.raises(InvalidBatch):
            factory.multi_reclaim(BOB, [intents[0]] * (MAX_BATCH_SIZE + 1))


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
