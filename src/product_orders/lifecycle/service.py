"""ProductOrderLifecycle: every operation that moves a participant or an order.

Each public method runs as one repository transaction:

1. read the order (hydrated with just the participants it needs),
2. validate the whole request before writing anything,
3. compute next statuses through the state machine and apply them,
4. record audit entries inside the same transaction.

Notifications and metrics are queued while the transaction is open and
flushed only after it commits, so a rolled-back operation never notifies
and a failing notifier never undoes a transition.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

import structlog

from product_orders.audit.logger import AuditLogger
from product_orders.domain.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    LifecycleError,
    NotFoundError,
)
from product_orders.domain.models import (
    BatchResult,
    CampaignSubmission,
    OrderTransition,
    Participant,
    ProductOrder,
    RemovalResult,
    Submission,
    SurveyAnswer,
)
from product_orders.domain.types import OrderKind, OrderStatus, ParticipantStatus
from product_orders.lifecycle.protocols import Notifier, Repository, UserDirectory
from product_orders.lifecycle.validation import (
    check_batch,
    describe_ids,
    not_in_order_error,
    require_participants,
    unique_ids,
)
from product_orders.notifications.models import LifecycleEvent
from product_orders.notifications.notifier import publish_safely
from product_orders.observability.metrics import TRANSITIONS_APPLIED
from product_orders.state_machine.machine import ParticipantStateMachine
from product_orders.state_machine.transitions import (
    ORDER_TRANSITIONS,
    TRANSITIONS,
    OrderEvent,
    ParticipantEvent,
    source_states,
)
from product_orders.store.errors import DuplicateRecordError
from product_orders.store.query import OrderProjection, ParticipantQuery

logger = structlog.get_logger()

T = TypeVar("T")

_ACTIVE_STATUSES = frozenset(s for s in ParticipantStatus if not s.is_terminal)


@dataclass
class _Effects:
    """Side effects deferred until the operation's transaction commits."""

    notifications: list[tuple[LifecycleEvent, OrderKind, int, list[int]]] = field(
        default_factory=list
    )
    transitions: list[tuple[str, OrderKind, int]] = field(default_factory=list)

    def notify(
        self,
        event: LifecycleEvent,
        order: ProductOrder,
        recipient_ids: Iterable[int | None],
    ) -> None:
        recipients = sorted({r for r in recipient_ids if r is not None})
        if recipients:
            self.notifications.append((event, order.kind, order.id, recipients))

    def count(self, event: str, kind: OrderKind, amount: int) -> None:
        if amount:
            self.transitions.append((event, kind, amount))

    def flush(self, notifier: Notifier) -> None:
        for event, kind, amount in self.transitions:
            TRANSITIONS_APPLIED.labels(event=event, kind=kind.value).inc(amount)
        for event, kind, order_id, recipients in self.notifications:
            publish_safely(notifier, event, kind, order_id, recipients)


def _title(order: ProductOrder) -> str:
    return order.kind.value.capitalize()


class ProductOrderLifecycle:
    """Apply participation transitions for campaigns and surveys.

    Args:
        repository: Transactional persistence for orders and participants.
        notifier: Receives lifecycle events after commit.
        directory: Resolves influencers' currency and desired amounts.
        audit_logger: Optional audit trail writer.  It must share the
            repository's connection so entries commit or roll back with the
            transition they describe.
    """

    def __init__(
        self,
        repository: Repository,
        notifier: Notifier,
        directory: UserDirectory,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._repository = repository
        self._notifier = notifier
        self._directory = directory
        self._audit = audit_logger

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _run(self, operation: str, order_id: int, fn: Callable[[_Effects], T]) -> T:
        effects = _Effects()
        try:
            result = self._repository.run_in_transaction(lambda: fn(effects))
        except LifecycleError as exc:
            logger.info(
                "lifecycle_operation_rejected",
                operation=operation,
                order_id=order_id,
                error_type=type(exc).__name__,
                error=exc.message,
                offending_ids=exc.offending_ids,
            )
            raise
        effects.flush(self._notifier)
        return result

    def _load(
        self,
        order_id: int,
        influencer_ids: Sequence[int] | None = None,
        statuses: Iterable[ParticipantStatus] | None = None,
        *,
        with_participants: bool = True,
    ) -> ProductOrder:
        if with_participants:
            projection = OrderProjection.with_participants(
                influencer_ids=influencer_ids, statuses=statuses
            )
        else:
            projection = OrderProjection.bare()
        order = self._repository.find_order(order_id, projection)
        if order is None:
            raise NotFoundError(f"Product order {order_id} not found")
        return order

    def _apply(
        self,
        effects: _Effects,
        order: ProductOrder,
        participants: Sequence[Participant],
        event: ParticipantEvent,
    ) -> dict[ParticipantStatus, list[Participant]]:
        """Move *participants* along the *event* edge of the state machine.

        Participants are grouped by target status so one ``UPDATE`` is issued
        per target.

        Returns:
            The participants (as they were before the update) keyed by the
            status they moved to.
        """
        groups: dict[ParticipantStatus, list[Participant]] = {}
        for participant in participants:
            target = ParticipantStateMachine(order.kind, participant.status).peek(event)
            groups.setdefault(target, []).append(participant)

        for target, group in groups.items():
            self._repository.update_status([p.id for p in group], target)
            self._record(effects, order, group, event, target)
        return groups

    def _apply_where(
        self,
        effects: _Effects,
        order: ProductOrder,
        event: ParticipantEvent,
        influencer_ids: Sequence[int] | None = None,
    ) -> list[Participant]:
        """Move every participant of *order* that sits on a source of *event*.

        Only usable for events whose sources all share one target status.

        Returns:
            The moved participants as they were before the update.
        """
        sources = source_states(order.kind, event)
        targets = {TRANSITIONS[order.kind][(s, event)] for s in sources}
        if len(targets) != 1:
            raise ValueError(f"Event {event} has more than one target status")
        target = targets.pop()

        query = ParticipantQuery.build(
            product_order_id=order.id, influencer_ids=influencer_ids, statuses=sources
        )
        moved = self._repository.update_status_where(query, target)
        self._record(effects, order, moved, event, target)
        return moved

    def _record(
        self,
        effects: _Effects,
        order: ProductOrder,
        participants: Sequence[Participant],
        event: str,
        target: ParticipantStatus,
    ) -> None:
        if not participants:
            return
        if self._audit is not None:
            self._audit.log_status_transitions(
                order.id, order.kind.value, participants, str(event), target.value
            )
        effects.count(str(event), order.kind, len(participants))
        logger.info(
            "participants_transitioned",
            order_id=order.id,
            kind=order.kind.value,
            lifecycle_event=str(event),
            influencer_ids=sorted(p.influencer_id for p in participants),
            from_status=sorted({p.status.value for p in participants}),
            to_status=target.value,
            count=len(participants),
        )

    def _move_order(
        self, effects: _Effects, order: ProductOrder, event: OrderEvent
    ) -> ProductOrder:
        target = ORDER_TRANSITIONS[(order.status, event)]
        self._repository.set_order_status(order.id, target)
        if self._audit is not None:
            self._audit.log_order_transition(
                order.id, order.kind.value, order.status.value, target.value, str(event)
            )
        effects.count(str(event), order.kind, 1)
        logger.info(
            "order_transitioned",
            order_id=order.id,
            kind=order.kind.value,
            lifecycle_event=str(event),
            from_status=order.status.value,
            to_status=target.value,
        )
        return order.model_copy(update={"status": target, "participants": []})

    def _own_participant(self, order: ProductOrder, influencer_id: int) -> Participant:
        participant = order.participant_for(influencer_id)
        if participant is None:
            raise not_in_order_error(order, [influencer_id])
        return participant

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_order(
        self,
        order_id: int,
        *,
        influencer_ids: Sequence[int] | None = None,
        statuses: Iterable[ParticipantStatus] | None = None,
    ) -> ProductOrder:
        """Return an order with its participants, optionally filtered.

        Raises:
            NotFoundError: If the order does not exist.
        """
        with self._repository.transaction():
            return self._load(order_id, influencer_ids, statuses)

    # ------------------------------------------------------------------
    # Manager-side participant operations
    # ------------------------------------------------------------------

    def add_influencers(self, order_id: int, influencer_ids: Sequence[int]) -> BatchResult:
        """Add influencers at ADDED, or refresh the amount of existing ones.

        The agreed amount and currency come from the user directory: the
        influencer's desired amount for the order's post (or survey) type and
        their account currency.  Existing participants keep their status.

        Raises:
            NotFoundError: If the order or any influencer does not exist.
            ForbiddenError: If the order has already finished.
            BadRequestError: If the order has no post type, or an influencer
                has not declared an amount for it.
            ConflictError: If a concurrent add inserted the same influencer.
        """
        ids = unique_ids(influencer_ids)

        def work(effects: _Effects) -> BatchResult:
            order = self._load(order_id, ids)
            if order.status >= OrderStatus.FINISHED:
                raise ForbiddenError(
                    f"Can't add influencer/s after the {order.kind} has finished"
                )
            if order.post_type is None:
                type_name = "post type" if order.kind is OrderKind.CAMPAIGN else "survey type"
                raise BadRequestError(f"{_title(order)} has to have {type_name} defined")
            if not ids:
                return BatchResult(count=0)

            rates = self._directory.find_rates(ids, order.kind, order.post_type)
            unknown = [i for i in ids if i not in rates]
            if unknown:
                raise NotFoundError(
                    describe_ids(unknown, "does not exist", "do not exist"), unknown
                )
            amounts = {
                i: amount for i in ids if (amount := rates[i].desired_amount) is not None
            }
            no_amount = [i for i in ids if i not in amounts]
            if no_amount:
                raise BadRequestError(
                    describe_ids(
                        no_amount,
                        f"has no desired amount for {order.post_type}",
                        f"have no desired amount for {order.post_type}",
                    ),
                    no_amount,
                )

            newly_added: list[int] = []
            for influencer_id in ids:
                try:
                    participant = self._repository.upsert_participant(
                        order.id,
                        influencer_id,
                        amounts[influencer_id],
                        rates[influencer_id].currency,
                    )
                except DuplicateRecordError as exc:
                    raise ConflictError(str(exc), [influencer_id]) from exc
                if order.participant_for(influencer_id) is None:
                    newly_added.append(influencer_id)
                if self._audit is not None:
                    self._audit.log_participant_added(order.id, order.kind.value, participant)

            effects.count("add", order.kind, len(newly_added))
            effects.notify(LifecycleEvent.INFLUENCER_ADDED, order, newly_added)
            logger.info(
                "influencers_added",
                order_id=order.id,
                kind=order.kind.value,
                influencer_ids=sorted(ids),
                new=len(newly_added),
                refreshed=len(ids) - len(newly_added),
            )
            return BatchResult(count=len(ids), influencer_ids=sorted(ids))

        return self._run("add_influencers", order_id, work)

    def invite_influencers(self, order_id: int, influencer_ids: Sequence[int]) -> BatchResult:
        """Invite participants in ADDED or INVITED; re-inviting is allowed."""
        ids = unique_ids(influencer_ids)

        def work(effects: _Effects) -> BatchResult:
            order = self._load(order_id, ids)
            if not ids:
                return BatchResult(count=0)
            participants = check_batch(
                order,
                ids,
                source_states(order.kind, ParticipantEvent.INVITE),
                "to be invited",
            )
            self._apply(effects, order, participants, ParticipantEvent.INVITE)
            effects.notify(LifecycleEvent.INFLUENCER_INVITED, order, ids)
            return BatchResult(count=len(participants), influencer_ids=sorted(ids))

        return self._run("invite_influencers", order_id, work)

    def remove_influencers(
        self, order_id: int, influencer_ids: Sequence[int]
    ) -> RemovalResult:
        """Remove participants, splitting them by whether they had applied.

        Participants who had not applied yet become NOT_SELECTED; those who
        had become REMOVED.  Participants in any other status (declined,
        withdrawn, already removed, under review after a rejection) are left
        untouched and not counted.

        Raises:
            BadRequestError: If any id is not a participant of the order.
        """
        ids = unique_ids(influencer_ids)

        def work(effects: _Effects) -> RemovalResult:
            order = self._load(order_id, ids)
            if not ids:
                return RemovalResult(count=0)
            participants = require_participants(order, ids)
            removable = source_states(order.kind, ParticipantEvent.REMOVE)
            groups = self._apply(
                effects,
                order,
                [p for p in participants if p.status in removable],
                ParticipantEvent.REMOVE,
            )

            not_selected = sorted(
                p.influencer_id for p in groups.get(ParticipantStatus.NOT_SELECTED, [])
            )
            removed = sorted(p.influencer_id for p in groups.get(ParticipantStatus.REMOVED, []))
            effects.notify(LifecycleEvent.REMOVED_BEFORE_APPLICATION, order, not_selected)
            effects.notify(LifecycleEvent.REMOVED_AFTER_APPLICATION, order, removed)
            return RemovalResult(
                count=len(not_selected) + len(removed),
                influencer_ids=sorted(not_selected + removed),
                not_selected=not_selected,
                removed=removed,
            )

        return self._run("remove_influencers", order_id, work)

    def confirm_match(self, order_id: int, influencer_ids: Sequence[int]) -> BatchResult:
        """Confirm matched campaign participants so they can submit work.

        Raises:
            BadRequestError: If the order is a survey, an id is not a
                participant, or a participant is not in MATCHING.
        """
        ids = unique_ids(influencer_ids)

        def work(effects: _Effects) -> BatchResult:
            order = self._load(order_id, ids)
            if order.kind is not OrderKind.CAMPAIGN:
                raise BadRequestError(
                    f"{_title(order)} {order.id} has no matching step", ids
                )
            if not ids:
                return BatchResult(count=0)
            participants = check_batch(
                order,
                ids,
                source_states(order.kind, ParticipantEvent.CONFIRM_MATCH),
                "to confirm a match",
            )
            self._apply(effects, order, participants, ParticipantEvent.CONFIRM_MATCH)
            effects.notify(LifecycleEvent.MATCH_CONFIRMED, order, ids)
            return BatchResult(count=len(participants), influencer_ids=sorted(ids))

        return self._run("confirm_match", order_id, work)

    def approve_submission(
        self, order_id: int, influencer_ids: Sequence[int]
    ) -> BatchResult:
        """Approve submitted work.

        The named influencers are validated (each must be awaiting approval
        or previously disapproved), but the status change is applied to
        every participant of the order in one of those statuses.
        """
        ids = unique_ids(influencer_ids)

        def work(effects: _Effects) -> BatchResult:
            order = self._load(order_id, ids)
            if not ids:
                return BatchResult(count=0)
            check_batch(
                order,
                ids,
                source_states(order.kind, ParticipantEvent.APPROVE),
                "to become approved - force him to submit the required data",
            )
            moved = self._apply_order_wide(effects, order, ParticipantEvent.APPROVE)
            moved_ids = sorted(p.influencer_id for p in moved)
            effects.notify(LifecycleEvent.SUBMISSION_APPROVED, order, moved_ids)
            return BatchResult(count=len(moved), influencer_ids=moved_ids)

        return self._run("approve_submission", order_id, work)

    def disapprove_submission(
        self, order_id: int, influencer_ids: Sequence[int]
    ) -> BatchResult:
        """Send submitted work back to the influencers for another attempt.

        Validation and order-wide application follow
        :meth:`approve_submission`.

        Raises:
            ForbiddenError: If the order has already finished.
        """
        ids = unique_ids(influencer_ids)

        def work(effects: _Effects) -> BatchResult:
            order = self._load(order_id, ids)
            if order.status >= OrderStatus.FINISHED:
                raise ForbiddenError(
                    f"{_title(order)} {order.id} has finished, submissions can't be "
                    "disapproved"
                )
            if not ids:
                return BatchResult(count=0)
            check_batch(
                order,
                ids,
                source_states(order.kind, ParticipantEvent.DISAPPROVE),
                "to become disapproved - force him to submit the required data",
            )
            moved = self._apply_order_wide(effects, order, ParticipantEvent.DISAPPROVE)
            moved_ids = sorted(p.influencer_id for p in moved)
            effects.notify(LifecycleEvent.SUBMISSION_DISAPPROVED, order, moved_ids)
            return BatchResult(count=len(moved), influencer_ids=moved_ids)

        return self._run("disapprove_submission", order_id, work)

    def _apply_order_wide(
        self, effects: _Effects, order: ProductOrder, event: ParticipantEvent
    ) -> list[Participant]:
        # Review decisions apply to the whole order, not only the named ids.
        # Narrowing to the request means passing influencer_ids here.
        return self._apply_where(effects, order, event)

    # ------------------------------------------------------------------
    # Influencer-side participant operations
    # ------------------------------------------------------------------

    def accept_invitation(self, order_id: int, influencer_id: int) -> Participant:
        """Accept an invitation: MATCHING for campaigns, TO_BE_ANSWERED for surveys.

        Raises:
            BadRequestError: If the influencer is not a participant or is not
                currently invited.
        """
        return self._answer_invitation(
            "accept_invitation",
            order_id,
            influencer_id,
            ParticipantEvent.ACCEPT,
            LifecycleEvent.INVITE_ACCEPTED,
        )

    def decline_invitation(self, order_id: int, influencer_id: int) -> Participant:
        """Decline an invitation; the participant becomes DECLINED."""
        return self._answer_invitation(
            "decline_invitation",
            order_id,
            influencer_id,
            ParticipantEvent.DECLINE,
            LifecycleEvent.INVITE_DECLINED,
        )

    def _answer_invitation(
        self,
        operation: str,
        order_id: int,
        influencer_id: int,
        event: ParticipantEvent,
        notification: LifecycleEvent,
    ) -> Participant:
        def work(effects: _Effects) -> Participant:
            order = self._load(order_id, [influencer_id])
            participant = self._own_participant(order, influencer_id)
            if participant.status is not ParticipantStatus.INVITED:
                raise BadRequestError(
                    f"Influencer {influencer_id} is not invited", [influencer_id]
                )
            groups = self._apply(effects, order, [participant], event)
            (target,) = groups
            effects.notify(notification, order, [order.client_id])
            return participant.model_copy(update={"status": target})

        return self._run(operation, order_id, work)

    def remove_influencer_self(self, order_id: int, influencer_id: int) -> Participant:
        """Let an influencer withdraw from an order they have joined.

        Raises:
            BadRequestError: If the influencer is not a participant, was never
                invited, or has already left the order.
            ForbiddenError: If the invitation has not been accepted yet
                (declining is the way out of an invitation).
        """

        def work(effects: _Effects) -> Participant:
            order = self._load(order_id, [influencer_id])
            participant = order.participant_for(influencer_id)
            if participant is None or participant.status < ParticipantStatus.INVITED:
                raise BadRequestError(
                    f"Can't remove itself from the {order.kind} if invitation is not "
                    f"accepted, eg. not in the {order.kind}",
                    [influencer_id],
                )
            if participant.status is ParticipantStatus.INVITED:
                raise ForbiddenError(
                    f"Influencer {influencer_id} has to accept or decline the invitation "
                    f"to the {order.kind} {order.id}",
                    [influencer_id],
                )
            if participant.status.is_terminal:
                raise BadRequestError(
                    f"Influencer {influencer_id} has already left the {order.kind} {order.id}",
                    [influencer_id],
                )
            self._apply(effects, order, [participant], ParticipantEvent.WITHDRAW)
            effects.notify(LifecycleEvent.INFLUENCER_WITHDREW, order, [order.client_id])
            return participant.model_copy(update={"status": ParticipantStatus.WITHDRAWN})

        return self._run("remove_influencer_self", order_id, work)

    def submit_data(
        self, order_id: int, influencer_id: int, payload: Submission
    ) -> Participant:
        """Store a submission and move the participant to TO_BE_APPROVED.

        A campaign takes a :class:`CampaignSubmission`, a survey a
        :class:`SurveyAnswer`.  Resubmitting after a disapproval replaces the
        stored submission.

        Raises:
            BadRequestError: If the payload does not fit the order kind, the
                influencer is not a participant, or their status does not
                allow submitting.
        """
        def work(effects: _Effects) -> Participant:
            order = self._load(order_id, [influencer_id])
            if payload_kind(payload) is not order.kind:
                expected = (
                    CampaignSubmission if order.kind is OrderKind.CAMPAIGN else SurveyAnswer
                )
                raise BadRequestError(
                    f"{_title(order)} {order.id} expects a {expected.__name__}",
                    [influencer_id],
                )
            (participant,) = check_batch(
                order,
                [influencer_id],
                source_states(order.kind, ParticipantEvent.SUBMIT),
                "to submit data",
            )
            self._apply(effects, order, [participant], ParticipantEvent.SUBMIT)
            self._repository.upsert_submission(order.id, influencer_id, payload)
            if self._audit is not None:
                self._audit.log_submission(
                    order.id,
                    order.kind.value,
                    influencer_id,
                    {k: str(v) for k, v in payload.model_dump(exclude_none=True).items()},
                )
            effects.notify(LifecycleEvent.SUBMISSION_RECEIVED, order, [order.client_id])
            return participant.model_copy(update={"status": ParticipantStatus.TO_BE_APPROVED})

        return self._run("submit_data", order_id, work)

    # ------------------------------------------------------------------
    # Order lifecycle
    # ------------------------------------------------------------------

    def start_order(self, order_id: int) -> OrderTransition:
        """Move an order from IN_PREPARATION to ON_GOING.

        Raises:
            BadRequestError: If the order already started or finished, or has
                no instructions.
        """

        def work(effects: _Effects) -> OrderTransition:
            order = self._load(order_id, statuses=_ACTIVE_STATUSES)
            if order.status is OrderStatus.ON_GOING:
                raise BadRequestError(f"{_title(order)} {order.id} has already started")
            if order.status > OrderStatus.ON_GOING:
                raise BadRequestError(f"{_title(order)} {order.id} has finished")
            if not (order.instructions or "").strip():
                raise BadRequestError("Fill the data required: instructions")
            updated = self._move_order(effects, order, OrderEvent.START)
            effects.notify(
                LifecycleEvent.ORDER_STARTED,
                order,
                [p.influencer_id for p in order.participants],
            )
            return OrderTransition(order=updated)

        return self._run("start_order", order_id, work)

    def finish_order(self, order_id: int) -> OrderTransition:
        """Finish an ongoing order and queue its approved participants for payment.

        Approved participants of this order move to TO_BE_PAID in the same
        transaction as the order status change; everyone else is untouched.

        Raises:
            ForbiddenError: If the order is not ongoing.
        """

        def work(effects: _Effects) -> OrderTransition:
            order = self._load(order_id, statuses=_ACTIVE_STATUSES)
            if order.status < OrderStatus.ON_GOING:
                raise ForbiddenError(
                    f"{_title(order)} can't be stopped as it is not started"
                )
            if order.status > OrderStatus.ON_GOING:
                raise ForbiddenError(
                    f"{_title(order)} can't be stopped as it is already finished"
                )
            moved = self._apply_where(effects, order, ParticipantEvent.MARK_PAYABLE)
            updated = self._move_order(effects, order, OrderEvent.FINISH)
            effects.notify(
                LifecycleEvent.ORDER_FINISHED,
                order,
                [p.influencer_id for p in order.participants],
            )
            return OrderTransition(order=updated, participants_changed=len(moved))

        return self._run("finish_order", order_id, work)

    def archive_order(self, order_id: int) -> OrderTransition:
        """Archive a finished order.

        Raises:
            ForbiddenError: If the order has not finished or is already archived.
        """

        def work(effects: _Effects) -> OrderTransition:
            order = self._load(order_id, with_participants=False)
            if order.status < OrderStatus.FINISHED:
                raise ForbiddenError(
                    f"{_title(order)} can't be archived as it is not finished"
                )
            if order.status is OrderStatus.ARCHIVED:
                raise ForbiddenError(f"{_title(order)} is already archived")
            updated = self._move_order(effects, order, OrderEvent.ARCHIVE)
            effects.notify(LifecycleEvent.ORDER_ARCHIVED, order, [order.client_id])
            return OrderTransition(order=updated)

        return self._run("archive_order", order_id, work)


def payload_kind(payload: Submission) -> OrderKind:
    """Return the order kind a submission payload belongs to."""
    if isinstance(payload, CampaignSubmission):
        return OrderKind.CAMPAIGN
    return OrderKind.SURVEY
