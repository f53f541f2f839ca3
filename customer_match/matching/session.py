"""
Matching session: the state machine behind one "new customer" form.

Events in: ``input_changed``, the debounced cycle, ``submit``,
``select_existing`` and ``dispose``. Events out: ``on_candidates_changed``,
``on_blocked``, ``on_select_existing``, the create operation (``on_submit``)
and notifications for the presentation layer.

State flow::

    idle -> debouncing -> searching -> results_ready <-> debouncing
    idle / results_ready -> guard_checking -> blocked | creating -> terminal

Clearing the input returns to ``idle``; ``dispose`` ends in ``terminal`` from
any state.
"""

import uuid
from typing import Awaitable, Callable, Optional

import structlog

from customer_match.directory.base import BaseDirectoryClient
from customer_match.directory.resilience import CircuitBreaker
from customer_match.matching.config import MatchingConfig
from customer_match.matching.debounce import DebounceScheduler
from customer_match.matching.dispatcher import QueryDispatcher
from customer_match.matching.guard import SubmissionGuard
from customer_match.matching.merger import merge
from customer_match.matching.metrics import SessionMetrics
from customer_match.matching.models import (
    CandidateList,
    CandidateMatch,
    GuardResult,
    NewCustomerRequest,
    SessionState,
    SubmissionOutcome,
)
from customer_match.normalize import apply_phone_prefix, is_trivial_input, phone_digits
from customer_match.matching.notifier import (
    LoggingNotifier,
    Notifier,
    create_failed,
    customer_created,
    customer_selected,
    duplicate_phone,
    missing_information,
    similar_customers_found,
)
from customer_match.matching.relevance import RelevanceFilter

logger = structlog.get_logger()

CandidatesListener = Callable[[CandidateList], None]
CandidateListener = Callable[[CandidateMatch], None]
CreateOperation = Callable[[NewCustomerRequest], Awaitable[CandidateMatch]]

_EDITABLE_STATES = frozenset(
    {
        SessionState.IDLE,
        SessionState.DEBOUNCING,
        SessionState.SEARCHING,
        SessionState.RESULTS_READY,
        SessionState.BLOCKED,
    }
)


class SessionStateError(RuntimeError):
    """Raised when an event is not valid in the session's current state."""


class MatchingSession:
    """
    Live duplicate detection for one customer-creation form.

    The candidate list has a single writer (the debounced cycle) and is
    replaced, never mutated, so readers always see a consistent tuple.
    """

    def __init__(
        self,
        client: BaseDirectoryClient,
        config: Optional[MatchingConfig] = None,
        notifier: Optional[Notifier] = None,
        on_candidates_changed: Optional[CandidatesListener] = None,
        on_select_existing: Optional[CandidateListener] = None,
        on_blocked: Optional[CandidateListener] = None,
        on_submit: Optional[CreateOperation] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        session_id: Optional[str] = None,
        on_closed: Optional[Callable[["MatchingSession"], None]] = None,
    ):
        """
        Initialize a session.

        Args:
            client: Directory client for lookups (and creation by default)
            config: Matching configuration
            notifier: Receiver of user-facing notifications
            on_candidates_changed: Called with every published candidate list
            on_select_existing: Called when the user picks an existing customer
            on_blocked: Called with the conflicting record when submit is vetoed
            on_submit: Create operation; defaults to ``client.create_customer``
            circuit_breaker: Breaker shared across sessions, if any
            session_id: Identifier used in logs (generated if omitted)
            on_closed: Called once when the session reaches terminal
        """
        self.session_id = session_id or uuid.uuid4().hex
        self.client = client
        self.config = config or MatchingConfig()
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.metrics = SessionMetrics()

        self._on_candidates_changed = on_candidates_changed
        self._on_select_existing = on_select_existing
        self._on_blocked = on_blocked
        self._on_closed = on_closed
        self._create: CreateOperation = on_submit or client.create_customer

        self.dispatcher = QueryDispatcher(
            client, self.config, self.metrics, circuit_breaker
        )
        self.relevance = RelevanceFilter(self.config)
        self.guard = SubmissionGuard(self.config)
        self.scheduler = DebounceScheduler(
            self.config.debounce_seconds, self._run_cycle
        )

        self._state = SessionState.IDLE
        self._candidates: CandidateList = ()
        self._has_published = False
        self._name = ""
        self._phone = self.config.phone_placeholder
        self._log = logger.bind(session_id=self.session_id)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def candidates(self) -> CandidateList:
        return self._candidates

    @property
    def name(self) -> str:
        return self._name

    @property
    def phone(self) -> str:
        return self._phone

    @property
    def has_duplicate_risk(self) -> bool:
        return bool(self._candidates)

    @property
    def closed(self) -> bool:
        return self._state == SessionState.TERMINAL

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def input_changed(self, name: str, phone: str) -> None:
        """Record new field values and (re)start the quiet period."""
        if self._state in (SessionState.TERMINAL, SessionState.CREATING):
            self._log.debug("session.input_ignored", state=self._state.value)
            return

        self._name = name or ""
        self._phone = phone or ""
        if self.config.enforce_phone_prefix:
            self._phone = apply_phone_prefix(
                self._phone, self.config.phone_placeholder
            )
        self.metrics.inputs_received += 1

        if is_trivial_input(self._name, self._phone, self.config.phone_placeholder):
            self.scheduler.cancel()
            self.dispatcher.invalidate()
            self.metrics.short_circuits += 1
            self._state = SessionState.IDLE
            if self._candidates:
                self._publish(())
            return

        self.scheduler.schedule(self._name, self._phone)
        self._state = SessionState.DEBOUNCING

    async def _run_cycle(self, name: str, phone: str) -> None:
        """One debounced round: dispatch, merge, filter, publish."""
        if self.dispatcher.retired:
            return

        try:
            query = self.dispatcher.issue(name, phone)
            if self._state in _EDITABLE_STATES:
                self._state = SessionState.SEARCHING

            results = await self.dispatcher.dispatch(query)
            self.metrics.record_cycle(published=results is not None)
            if results is None:
                return

            merged = merge(results.name_results, results.phone_results)
            candidates = self.relevance.filter(merged, name, phone_digits(phone))
            self._publish(candidates)

            if self._state == SessionState.SEARCHING or (
                self._state == SessionState.IDLE and candidates
            ):
                self._state = SessionState.RESULTS_READY

            self._log.info(
                "cycle.published",
                sequence=query.sequence_number,
                name_results=len(results.name_results),
                phone_results=len(results.phone_results),
                candidates=len(candidates),
            )
        except Exception as e:
            self._log.error(
                "cycle.failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            if self._state == SessionState.SEARCHING:
                self._state = self._settled_state()

    async def submit(self, initial_credit: Optional[float] = None) -> SubmissionOutcome:
        """
        Validate, run the duplicate guard and hand off to the create operation.

        Only the candidate list already published is consulted; no new
        lookup is started.
        """
        if self._state == SessionState.TERMINAL:
            raise SessionStateError("Session is closed")
        if self._state in (SessionState.CREATING, SessionState.GUARD_CHECKING):
            raise SessionStateError("Submission already in progress")

        self._state = SessionState.GUARD_CHECKING

        errors = self.guard.validate_submission(self._name, self._phone)
        if errors:
            self.metrics.submissions_invalid += 1
            self.notifier.notify(missing_information(errors[0]))
            self._state = self._settled_state()
            self._log.info("submit.invalid", errors=errors)
            return SubmissionOutcome(status="invalid", errors=errors)

        verdict = self.check_before_create()
        if verdict.blocked and verdict.exact_match is not None:
            self.metrics.submissions_blocked += 1
            self._state = SessionState.BLOCKED
            if self._on_blocked:
                self._on_blocked(verdict.exact_match)
            self.notifier.notify(duplicate_phone(verdict.exact_match.name))
            self._log.info(
                "submit.blocked",
                existing_id=verdict.exact_match.id,
                existing_name=verdict.exact_match.name,
            )
            return SubmissionOutcome(status="blocked", exact_match=verdict.exact_match)

        request = self.build_request(initial_credit)
        self._state = SessionState.CREATING
        self._log.info("submit.creating", name=request.name)

        try:
            created = await self._create(request)
        except Exception as e:
            self.metrics.submissions_failed += 1
            self._state = self._settled_state()
            self.notifier.notify(create_failed(str(e)))
            self._log.error(
                "submit.create_failed", error=str(e), error_type=type(e).__name__
            )
            return SubmissionOutcome(status="failed", error=str(e))

        self.metrics.submissions_created += 1
        self._shutdown()
        self.notifier.notify(customer_created(created.name))
        self._log.info("submit.created", customer_id=created.id)
        return SubmissionOutcome(status="created", created=created)

    def check_before_create(self) -> GuardResult:
        """Guard verdict for the current phone against the current candidates."""
        return self.guard.check_before_create(self._phone, self._candidates)

    def select_existing(self, candidate: CandidateMatch) -> None:
        """Use an existing customer instead of creating one; ends the session."""
        if self._state == SessionState.TERMINAL:
            raise SessionStateError("Session is closed")
        if self._on_select_existing:
            self._on_select_existing(candidate)
        self._shutdown()
        self.notifier.notify(customer_selected(candidate.name))
        self._log.info("session.selected_existing", customer_id=candidate.id)

    def dispose(self) -> None:
        """Cancel pending work; in-flight lookups finish but are discarded."""
        if self._state == SessionState.TERMINAL:
            return
        self._shutdown()
        self._log.info("session.disposed")

    async def wait_idle(self) -> None:
        """Wait for the pending timer and any running cycle to finish."""
        await self.scheduler.wait_idle()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def build_request(self, initial_credit: Optional[float] = None) -> NewCustomerRequest:
        """Payload for the create operation; only name and phone come from input."""
        defaults = self.config.form_defaults
        return NewCustomerRequest(
            name=self._name.strip(),
            phone=self._phone.strip(),
            city=defaults.city,
            type=defaults.customer_type,
            credit_limit=defaults.credit_limit,
            initial_credit=initial_credit if initial_credit else None,
        )

    def _publish(self, candidates: CandidateList) -> None:
        previous_ids = [c.id for c in self._candidates]
        self._candidates = candidates
        self._has_published = True

        if self._on_candidates_changed:
            self._on_candidates_changed(candidates)
        if candidates and [c.id for c in candidates] != previous_ids:
            self.notifier.notify(similar_customers_found(len(candidates)))

    def _settled_state(self) -> SessionState:
        if self.scheduler.pending:
            return SessionState.DEBOUNCING
        if self._candidates or (
            self._has_published
            and not is_trivial_input(
                self._name, self._phone, self.config.phone_placeholder
            )
        ):
            return SessionState.RESULTS_READY
        return SessionState.IDLE

    def _shutdown(self) -> None:
        self.scheduler.dispose()
        self.dispatcher.retire()
        self._state = SessionState.TERMINAL
        if self._on_closed:
            self._on_closed(self)
