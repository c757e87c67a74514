"""Tests for agentboard.workflow.fsm module."""

import pytest

from agentboard.workflow.fsm import FSM_TRANSITIONS, STATES, ItemFSM
from agentboard.workflow.state_machine import InvalidTransition
from agentboard.workflow.states import ItemStatus, Transition


class TestFSMDefinition:
    """Tests for FSM state and trigger definitions."""

    def test_all_states_defined(self):
        expected = ["draft", "pending_review", "approved", "in_progress", "done", "accepted"]
        assert STATES == expected

    def test_one_trigger_per_edge(self):
        triggers = [t["trigger"] for t in FSM_TRANSITIONS]
        assert sorted(triggers) == sorted(t.value for t in Transition)


class TestItemFSM:
    """Tests for ItemFSM."""

    def test_initial_status(self):
        fsm = ItemFSM("item1", ItemStatus.APPROVED)
        assert fsm.status == ItemStatus.APPROVED

    def test_move_to_runs_named_trigger(self):
        fsm = ItemFSM("item1", ItemStatus.DRAFT)
        trigger = fsm.move_to(ItemStatus.PENDING_REVIEW)
        assert trigger == Transition.SUBMIT_FOR_REVIEW
        assert fsm.status == ItemStatus.PENDING_REVIEW

    def test_callback_receives_edge(self):
        seen = []
        fsm = ItemFSM("item1", ItemStatus.DONE, on_transition=lambda *args: seen.append(args))
        fsm.move_to(ItemStatus.DRAFT)
        assert seen == [(ItemStatus.DONE, ItemStatus.DRAFT, Transition.REJECT_RESULT)]

    def test_undefined_pair_raises(self):
        fsm = ItemFSM("item1", ItemStatus.DRAFT)
        with pytest.raises(InvalidTransition) as exc_info:
            fsm.move_to(ItemStatus.DONE)
        assert "Invalid transition from draft to done" in str(exc_info.value)
        assert fsm.status == ItemStatus.DRAFT

    def test_no_auto_transitions(self):
        """transitions' to_<state> helpers are disabled."""
        fsm = ItemFSM("item1", ItemStatus.DRAFT)
        assert not hasattr(fsm, "to_done")

    def test_callback_error_propagates(self):
        def boom(*args):
            raise RuntimeError("storage down")

        fsm = ItemFSM("item1", ItemStatus.APPROVED, on_transition=boom)
        with pytest.raises(RuntimeError, match="storage down"):
            fsm.move_to(ItemStatus.IN_PROGRESS)

    def test_available_triggers(self):
        fsm = ItemFSM("item1", ItemStatus.PENDING_REVIEW)
        assert set(fsm.get_available_triggers()) == {Transition.APPROVE, Transition.REJECT_REVIEW}
        assert fsm.can(Transition.APPROVE)
        assert not fsm.can(Transition.ACCEPT)

    def test_full_happy_path(self):
        fsm = ItemFSM("item1", ItemStatus.DRAFT)
        for status in [
            ItemStatus.PENDING_REVIEW,
            ItemStatus.APPROVED,
            ItemStatus.IN_PROGRESS,
            ItemStatus.DONE,
            ItemStatus.ACCEPTED,
        ]:
            fsm.move_to(status)
        assert fsm.status == ItemStatus.ACCEPTED
        assert fsm.get_available_triggers() == []
