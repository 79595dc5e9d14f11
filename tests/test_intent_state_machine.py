#!/usr/bin/env python3
"""
Intent Instance Tests

Fill / reclaim sequence protocol:
- outstanding fills always equal the sum of per-actor fills
- stale sequences and empty reclaims fail without side effects
- native and fungible actions, including asset failures
- one-shot, factory-only initialization
"""

import random

import pytest

from intent_platform.domain.errors import (
    AlreadyInitialized,
    InvalidIntentParams,
    NoOutstandingFill,
    NotInitialized,
    SequenceMismatch,
    TransferFailed,
    Unauthorized,
)
from intent_platform.domain.events import IntentFilled, IntentReclaimed
from intent_platform.execution.intent import IntentInstance
from fake_contracts import (
    ALICE,
    BOB,
    CAROL,
    DEPLOYER,
    PAYLOAD,
    RefusingToken,
    RevertingTarget,
)


def assert_counters_consistent(intent):
    assert intent.outstanding_fills == sum(intent.fill_counts().values())
    assert all(count > 0 for count in intent.fill_counts().values())


class TestNativeScenario:

    def test_fill_then_reclaim(self, ledger, native_intent, target):
        """fill(0) by X, reclaim by X, second reclaim fails"""
        assert native_intent.outstanding_fills == 0

        assert native_intent.fill(ALICE, 0) == 0
        assert native_intent.outstanding_fills == 1
        assert native_intent.fill_count(ALICE) == 1
        assert ledger.balance_of(target.address) == 100
        assert target.calls == [
            {"sender": native_intent.address, "value": 100, "payload": PAYLOAD}
        ]

        assert native_intent.reclaim(ALICE) == 0
        assert native_intent.outstanding_fills == 0
        assert native_intent.fill_count(ALICE) == 0
        assert ledger.balance_of(ALICE) == 100
        assert ledger.balance_of(native_intent.address) == 900

        with pytest.raises(NoOutstandingFill):
            native_intent.reclaim(ALICE)

    def test_racing_sequence(self, native_intent):
        """fill(0) X ok; fill(0) Y mismatch; fill(1) Y ok"""
        native_intent.fill(ALICE, 0)

        with pytest.raises(SequenceMismatch) as exc_info:
            native_intent.fill(BOB, 0)
        assert exc_info.value.expected == 0
        assert exc_info.value.actual == 1

        assert native_intent.fill(BOB, 1) == 1
        assert native_intent.outstanding_fills == 2
        assert native_intent.fill_counts() == {ALICE: 1, BOB: 1}


class TestSequenceProtocol:

    def test_stale_fill_leaves_state_unchanged(self, ledger, native_intent, target):
        native_intent.fill(ALICE, 0)
        before = native_intent.state()
        events_before = ledger.event_count

        for stale in (0, 2, -1):
            with pytest.raises(SequenceMismatch):
                native_intent.fill(BOB, stale)

        assert native_intent.state() == before
        assert ledger.event_count == events_before
        assert ledger.balance_of(target.address) == 100

    def test_empty_reclaim_leaves_state_unchanged(self, ledger, native_intent):
        native_intent.fill(ALICE, 0)
        before = native_intent.state()

        with pytest.raises(NoOutstandingFill):
            native_intent.reclaim(BOB)

        assert native_intent.state() == before
        assert ledger.balance_of(BOB) == 0

    def test_sequence_reused_after_reclaim(self, native_intent):
        native_intent.fill(ALICE, 0)
        native_intent.reclaim(ALICE)
        assert native_intent.fill(BOB, 0) == 0

    def test_fills_by_same_actor_are_fungible(self, native_intent):
        native_intent.fill(ALICE, 0)
        native_intent.fill(BOB, 1)
        native_intent.fill(ALICE, 2)

        assert native_intent.reclaim(ALICE) == 1
        assert native_intent.reclaim(ALICE) == 0
        assert native_intent.fill_counts() == {BOB: 1}
        assert native_intent.outstanding_fills == 1

    def test_non_integer_sequence_rejected(self, native_intent):
        with pytest.raises(InvalidIntentParams):
            native_intent.fill(ALICE, "0")
        with pytest.raises(InvalidIntentParams):
            native_intent.fill(ALICE, True)

    def test_counters_consistent_over_random_walk(self, ledger, native_intent):
        ledger.mint_native(native_intent.address, 100_000)
        rng = random.Random(7)
        actors = [ALICE, BOB, CAROL]

        for _ in range(200):
            actor = rng.choice(actors)
            if rng.random() < 0.55:
                seq = native_intent.outstanding_fills
                if rng.random() < 0.2:
                    seq += 1
                    with pytest.raises(SequenceMismatch):
                        native_intent.fill(actor, seq)
                else:
                    native_intent.fill(actor, seq)
            elif native_intent.fill_count(actor):
                native_intent.reclaim(actor)
            else:
                with pytest.raises(NoOutstandingFill):
                    native_intent.reclaim(actor)
            assert_counters_consistent(native_intent)

    def test_events_emitted(self, ledger, native_intent):
        start = ledger.event_count
        native_intent.fill(ALICE, 0)
        native_intent.reclaim(ALICE)

        events = ledger.events(start)
        assert [type(e) for e in events] == [IntentFilled, IntentReclaimed]
        assert events[0].sequence == 0
        assert events[0].filler == ALICE
        assert events[1].remaining_fills == 0


class TestFundingFailures:

    def test_underfunded_fill_rolls_back(self, ledger, factory, target):
        address = factory.create_intent(ALICE, None, 100, target.address, PAYLOAD)
        intent = factory.get_intent(address)
        ledger.mint_native(address, 99)

        with pytest.raises(TransferFailed):
            intent.fill(BOB, 0)

        assert intent.outstanding_fills == 0
        assert intent.fill_count(BOB) == 0
        assert ledger.balance_of(address) == 99

    def test_reverting_target_rolls_back(self, ledger, factory):
        reverting = ledger.create(DEPLOYER, lambda a: RevertingTarget(ledger, a))
        address = factory.create_intent(ALICE, None, 10, reverting.address, b"")
        ledger.mint_native(address, 100)
        intent = factory.get_intent(address)

        with pytest.raises(TransferFailed):
            intent.fill(BOB, 0)

        assert intent.outstanding_fills == 0
        assert ledger.balance_of(address) == 100

    def test_reclaim_without_funds_rolls_back(self, ledger, native_intent, target):
        native_intent.fill(ALICE, 0)
        # drain the instance so the reclaim payout cannot be covered
        with ledger.transaction():
            ledger.transfer_native(native_intent.address, CAROL, 900)

        with pytest.raises(TransferFailed):
            native_intent.reclaim(ALICE)

        assert native_intent.fill_count(ALICE) == 1
        assert native_intent.outstanding_fills == 1

    def test_direct_funding_with_value_transfer(self, ledger, factory, target):
        address = factory.create_intent(ALICE, None, 10, target.address, b"")
        ledger.mint_native(BOB, 50)
        ledger.call(BOB, address, value=50)
        assert factory.get_intent(address).funded_balance() == 50

    def test_calldata_to_instance_rejected(self, ledger, native_intent):
        with pytest.raises(TransferFailed):
            ledger.call(ALICE, native_intent.address, b"\x01")


class TestFungibleAsset:

    def test_fill_approves_then_calls(self, token, token_intent, token_target):
        token_intent.fill(BOB, 0)

        assert token.balance_of(token_target.address) == 50
        assert token.balance_of(token_intent.address) == 450
        assert token.allowance(token_intent.address, token_target.address) == 0
        assert token_target.calls == [
            {"sender": token_intent.address, "value": 0, "payload": PAYLOAD}
        ]

    def test_reclaim_pays_filler(self, token, token_intent):
        token_intent.fill(BOB, 0)
        assert token_intent.reclaim(BOB) == 0
        assert token.balance_of(BOB) == 50
        assert token_intent.funded_balance() == 400

    def test_target_may_leave_allowance_unused(self, token, factory, target):
        address = factory.create_intent(ALICE, token.address, 5, target.address, b"")
        token.mint(address, 5)
        factory.get_intent(address).fill(BOB, 0)

        assert token.allowance(address, target.address) == 5
        assert token.balance_of(address) == 5

    def test_refused_approval_aborts_fill(self, ledger, factory, target):
        refusing = ledger.create(DEPLOYER, lambda a: RefusingToken(ledger, a))
        address = factory.create_intent(ALICE, refusing.address, 5, target.address, b"")
        intent = factory.get_intent(address)

        with pytest.raises(TransferFailed):
            intent.fill(BOB, 0)
        assert intent.outstanding_fills == 0
        assert target.calls == []

    def test_missing_asset_contract_fails(self, factory, target):
        address = factory.create_intent(ALICE, CAROL, 5, target.address, b"")
        with pytest.raises(TransferFailed):
            factory.get_intent(address).fill(BOB, 0)

    def test_insufficient_token_balance_for_reclaim(self, ledger, token, token_intent):
        token_intent.fill(BOB, 0)
        with ledger.transaction():
            token.transfer(token_intent.address, CAROL, 450)

        with pytest.raises(TransferFailed):
            token_intent.reclaim(BOB)
        assert token_intent.fill_count(BOB) == 1


class TestInitialization:

    def test_factory_only(self, native_intent):
        with pytest.raises(Unauthorized):
            native_intent.initialize(ALICE, None, 1, BOB, b"")

    def test_second_initialize_rejected(self, factory, native_intent):
        params_before = native_intent.params
        with pytest.raises(AlreadyInitialized):
            native_intent.initialize(factory.address, None, 1, BOB, b"")
        assert native_intent.params == params_before

    def test_uninitialized_instance_cannot_fill(self, ledger, factory):
        with ledger.transaction():
            bare = ledger.deploy(IntentInstance(ledger, CAROL, factory=factory.address))

        assert not bare.is_initialized
        with pytest.raises(NotInitialized):
            bare.fill(ALICE, 0)
        with pytest.raises(NotInitialized):
            bare.reclaim(ALICE)

    def test_state_view(self, native_intent, target):
        state = native_intent.state().to_dict()
        assert state["initialized"] is True
        assert state["filler_of_record"] == ALICE
        assert state["params"] == {
            "asset": None,
            "amount": 100,
            "target": target.address,
            "payload": "0x" + PAYLOAD.hex(),
        }
        assert state["balance"] == 1000


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
