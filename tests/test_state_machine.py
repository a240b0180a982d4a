import pytest
from storefront.core.state_machine import InvalidTransition, StateMachine
from storefront.services.checkout import CHECKOUT_TRANSITIONS

def test_checkout_transitions_and_history():
    sm = StateMachine("idle", CHECKOUT_TRANSITIONS)
    sm.apply("submitting")
    sm.apply("failed", {"error": "boom"})
    assert sm.state == "failed"
    assert not sm.is_terminal()
    sm.apply("submitting")
    sm.apply("succeeded")
    assert sm.is_terminal()
    assert len(sm.history) == 4
    assert sm.history[1]["meta"] == {"error": "boom"}
    with pytest.raises(InvalidTransition):
        sm.apply("submitting")  # a finished checkout cannot be resubmitted

def test_cannot_skip_submitting():
    sm = StateMachine("idle", CHECKOUT_TRANSITIONS)
    assert not sm.can_transition("succeeded")
    with pytest.raises(InvalidTransition):
        sm.apply("succeeded")
    assert sm.state == "idle"
    assert sm.history == []
