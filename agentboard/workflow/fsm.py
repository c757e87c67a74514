"""Item state machine using the transitions library.

Built from the closed table in states.py: one trigger per named edge,
no automatic to_<state> triggers. The executor uses it to apply exactly one
edge to an item; the on_transition callback is where the new status gets
persisted.

Usage:
    from agentboard.workflow.fsm import ItemFSM

    fsm = ItemFSM(item.id, item.status, on_transition=persist)
    fsm.move_to(ItemStatus.APPROVED)   # runs the "approve" trigger
"""

import logging
from typing import Callable

from transitions import Machine, MachineError

from agentboard.workflow.state_machine import InvalidTransition
from agentboard.workflow.states import TRANSITIONS, ItemStatus, Transition, find_transition

logger = logging.getLogger(__name__)


STATES = [s.value for s in ItemStatus]

FSM_TRANSITIONS = [
    {"trigger": name.value, "source": tdef.source.value, "dest": tdef.dest.value}
    for name, tdef in TRANSITIONS.items()
]

TransitionCallback = Callable[[ItemStatus, ItemStatus, Transition], None]


class ItemFSM:
    """State machine for one item's status."""

    def __init__(self, item_id: str, status: ItemStatus, on_transition: TransitionCallback | None = None):
        """
        Args:
            item_id: Item the machine belongs to (for logging)
            status: Current status
            on_transition: Optional callback(from_status, to_status, transition) run after each move
        """
        self.item_id = item_id
        self.on_transition = on_transition

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=FSM_TRANSITIONS,
            initial=status.value,
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    @property
    def status(self) -> ItemStatus:
        return ItemStatus(self.state)

    def on_state_change(self, event) -> None:
        from_status = ItemStatus(event.transition.source)
        to_status = ItemStatus(event.transition.dest)
        trigger = Transition(event.event.name)

        logger.info(f"[FSM] {self.item_id}: {from_status.value} -> {to_status.value} ({trigger.value})")

        if self.on_transition:
            self.on_transition(from_status, to_status, trigger)

    def can(self, trigger: Transition) -> bool:
        """Check if a trigger can be executed in current state."""
        return trigger.value in self.machine.get_triggers(self.state)

    def get_available_triggers(self) -> list[Transition]:
        return [Transition(t) for t in self.machine.get_triggers(self.state)]

    def move_to(self, dest: ItemStatus) -> Transition:
        """Run the edge leading from the current status to `dest`.

        Raises:
            InvalidTransition: no edge exists for current -> dest
        """
        source = self.status
        tdef = find_transition(source, dest)
        if tdef is None:
            raise InvalidTransition(source, dest, self.item_id)

        try:
            getattr(self, tdef.name.value)()
        except MachineError as e:
            raise InvalidTransition(source, dest, self.item_id) from e
        return tdef.name
