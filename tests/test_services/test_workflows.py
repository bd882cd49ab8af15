"""Stavové automaty a výpočet stavu položky (bez DB)."""
import pytest

from labtrack.errors import Forbidden, InvalidTransition
from labtrack.identity import Actor
from labtrack.models.item import ItemStatus
from labtrack.models.requests import RequestStatus as S
from labtrack.services.item_sync import item_status_delta
from labtrack.services.workflows import CALIBRATION, RENTAL, MAINTENANCE, authorize, check_transition

OWNER = Actor(actor_id=1, role="user")
STRANGER = Actor(actor_id=2, role="user")
ADMIN = Actor(actor_id=3, role="admin")
MANAGER = Actor(actor_id=4, role="manager")


# ─── Přechody ────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("workflow,current,target", [
    (CALIBRATION, S.PENDING, S.APPROVED),
    (CALIBRATION, S.APPROVED, S.IN_PROGRESS),
    (CALIBRATION, S.IN_PROGRESS, S.COMPLETED),
    (CALIBRATION, S.APPROVED, S.CANCELLED),
    (RENTAL, S.PENDING, S.APPROVED),
    (RENTAL, S.APPROVED, S.COMPLETED),
    (MAINTENANCE, S.PENDING, S.COMPLETED),
    (MAINTENANCE, S.IN_PROGRESS, S.CANCELLED),
])
def test_allowed_transitions(workflow, current, target):
    check_transition(workflow, current, target)


@pytest.mark.parametrize("workflow,current,target", [
    (CALIBRATION, S.PENDING, S.COMPLETED),
    (CALIBRATION, S.IN_PROGRESS, S.CANCELLED),
    (RENTAL, S.APPROVED, S.CANCELLED),
    (RENTAL, S.PENDING, S.IN_PROGRESS),
    (MAINTENANCE, S.PENDING, S.APPROVED),
])
def test_unreachable_transitions(workflow, current, target):
    with pytest.raises(InvalidTransition):
        check_transition(workflow, current, target)


@pytest.mark.parametrize("terminal", [S.COMPLETED, S.REJECTED, S.CANCELLED])
def test_terminal_state_cannot_be_reentered(terminal):
    with pytest.raises(InvalidTransition):
        check_transition(CALIBRATION, terminal, terminal)


def test_same_status_is_rejected_for_open_state():
    with pytest.raises(InvalidTransition):
        check_transition(RENTAL, S.APPROVED, S.APPROVED)


def test_terminal_state_is_closed():
    with pytest.raises(InvalidTransition):
        check_transition(RENTAL, S.REJECTED, S.APPROVED)


# ─── Oprávnění ───────────────────────────────────────────────────────────────

def test_owner_may_cancel_own_request():
    authorize(RENTAL, OWNER.actor_id, OWNER, S.CANCELLED)


def test_stranger_is_forbidden():
    with pytest.raises(Forbidden):
        authorize(RENTAL, OWNER.actor_id, STRANGER, S.CANCELLED)


def test_owner_cannot_approve_own_rental():
    with pytest.raises(Forbidden):
        authorize(RENTAL, OWNER.actor_id, OWNER, S.APPROVED)


def test_admin_approves_any_calibration():
    authorize(CALIBRATION, OWNER.actor_id, ADMIN, S.APPROVED)


def test_in_progress_calibration_is_manager_only():
    authorize(CALIBRATION, OWNER.actor_id, MANAGER, S.IN_PROGRESS)
    with pytest.raises(Forbidden):
        authorize(CALIBRATION, OWNER.actor_id, ADMIN, S.IN_PROGRESS)


def test_manager_authorizes_maintenance_but_not_rental():
    authorize(MAINTENANCE, OWNER.actor_id, MANAGER, S.COMPLETED)
    with pytest.raises(Forbidden):
        authorize(RENTAL, OWNER.actor_id, MANAGER, S.COMPLETED)


# ─── Stav položky ────────────────────────────────────────────────────────────

def test_calibration_approval_takes_item():
    assert item_status_delta(CALIBRATION, S.PENDING, S.APPROVED) == ItemStatus.IN_CALIBRATION


def test_calibration_completion_releases_item():
    assert item_status_delta(CALIBRATION, S.IN_PROGRESS, S.COMPLETED) == ItemStatus.AVAILABLE


def test_internal_calibration_step_keeps_item():
    assert item_status_delta(CALIBRATION, S.APPROVED, S.IN_PROGRESS) is None


def test_rejecting_pending_request_does_not_touch_item():
    assert item_status_delta(RENTAL, S.PENDING, S.REJECTED) is None


def test_rental_lifecycle():
    assert item_status_delta(RENTAL, S.PENDING, S.APPROVED) == ItemStatus.RENTED
    assert item_status_delta(RENTAL, S.APPROVED, S.COMPLETED) == ItemStatus.AVAILABLE


def test_maintenance_takes_item_on_creation():
    assert item_status_delta(MAINTENANCE, None, S.PENDING) == ItemStatus.IN_MAINTENANCE
    assert item_status_delta(MAINTENANCE, S.PENDING, S.COMPLETED) == ItemStatus.AVAILABLE
