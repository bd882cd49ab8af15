"""Stavové automaty tří pevných workflow: kalibrace, výpůjčka, údržba."""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from labtrack.errors import Forbidden, InvalidTransition
from labtrack.identity import Actor
from labtrack.models.history import HistoryAction
from labtrack.models.item import ItemStatus
from labtrack.models.requests import WorkflowKind, RequestStatus, TERMINAL_STATUSES

S = RequestStatus


@dataclass(frozen=True)
class Workflow:
    kind: WorkflowKind
    transitions: Mapping[RequestStatus, frozenset[RequestStatus]]
    # role, které smí měnit cizí požadavky
    authorizing_roles: frozenset[str]
    # stavy, kdy požadavek drží položku
    holding_statuses: frozenset[RequestStatus]
    held_item_status: ItemStatus
    history_action: HistoryAction
    initial_statuses: frozenset[RequestStatus] = frozenset({S.PENDING})
    # cílové stavy, na které vlastník sám nestačí
    privileged_targets: frozenset[RequestStatus] = frozenset()
    # cílové stavy vyhrazené konkrétní roli
    role_restricted: Mapping[RequestStatus, frozenset[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    # stavy položky, ze kterých ji lze převzít
    engageable_from: frozenset[ItemStatus] = frozenset({ItemStatus.AVAILABLE})

    def allowed_targets(self, current: RequestStatus) -> frozenset[RequestStatus]:
        return self.transitions.get(current, frozenset())

    def holds_item(self, status: RequestStatus | None) -> bool:
        return status in self.holding_statuses


CALIBRATION = Workflow(
    kind=WorkflowKind.calibration,
    transitions=MappingProxyType({
        S.PENDING: frozenset({S.APPROVED, S.REJECTED, S.CANCELLED}),
        S.APPROVED: frozenset({S.IN_PROGRESS, S.COMPLETED, S.REJECTED, S.CANCELLED}),
        S.IN_PROGRESS: frozenset({S.COMPLETED}),
    }),
    authorizing_roles=frozenset({"admin"}),
    holding_statuses=frozenset({S.APPROVED, S.IN_PROGRESS}),
    held_item_status=ItemStatus.IN_CALIBRATION,
    history_action=HistoryAction.CALIBRATED,
    privileged_targets=frozenset({S.APPROVED, S.REJECTED}),
    role_restricted=MappingProxyType({S.IN_PROGRESS: frozenset({"manager"})}),
)

RENTAL = Workflow(
    kind=WorkflowKind.rental,
    transitions=MappingProxyType({
        S.PENDING: frozenset({S.APPROVED, S.REJECTED, S.CANCELLED}),
        S.APPROVED: frozenset({S.COMPLETED}),
    }),
    authorizing_roles=frozenset({"admin"}),
    holding_statuses=frozenset({S.APPROVED}),
    held_item_status=ItemStatus.RENTED,
    history_action=HistoryAction.RENTED,
    privileged_targets=frozenset({S.APPROVED, S.REJECTED}),
)

MAINTENANCE = Workflow(
    kind=WorkflowKind.maintenance,
    transitions=MappingProxyType({
        S.PENDING: frozenset({S.IN_PROGRESS, S.COMPLETED, S.CANCELLED}),
        S.IN_PROGRESS: frozenset({S.COMPLETED, S.CANCELLED}),
    }),
    authorizing_roles=frozenset({"admin", "manager"}),
    holding_statuses=frozenset({S.PENDING, S.IN_PROGRESS}),
    held_item_status=ItemStatus.IN_MAINTENANCE,
    history_action=HistoryAction.MAINTAINED,
    initial_statuses=frozenset({S.PENDING, S.IN_PROGRESS}),
    engageable_from=frozenset({ItemStatus.AVAILABLE, ItemStatus.DAMAGED}),
)

WORKFLOWS: Mapping[WorkflowKind, Workflow] = MappingProxyType({
    WorkflowKind.calibration: CALIBRATION,
    WorkflowKind.rental: RENTAL,
    WorkflowKind.maintenance: MAINTENANCE,
})


def is_terminal(status: RequestStatus) -> bool:
    return status in TERMINAL_STATUSES


def authorize(workflow: Workflow, owner_id: int, actor: Actor, target: RequestStatus) -> None:
    restricted = workflow.role_restricted.get(target)
    if restricted is not None:
        # interní krok, rozhoduje jen role
        if actor.role not in restricted:
            raise Forbidden(f"Stav {target.value} může nastavit jen role: {', '.join(sorted(restricted))}")
        return
    is_owner = owner_id == actor.actor_id
    has_role = actor.role in workflow.authorizing_roles
    if not (is_owner or has_role):
        raise Forbidden("Nemáte oprávnění měnit tento požadavek")
    if target in workflow.privileged_targets and not has_role:
        raise Forbidden(f"Stav {target.value} může nastavit jen oprávněná role")


def check_transition(workflow: Workflow, current: RequestStatus, target: RequestStatus) -> None:
    if target == current:
        raise InvalidTransition(f"Požadavek je již ve stavu {current.value}")
    if is_terminal(current):
        raise InvalidTransition(f"Požadavek ve stavu {current.value} je uzavřen")
    if target not in workflow.allowed_targets(current):
        raise InvalidTransition(f"Přechod {current.value} → {target.value} není povolen")
