"""Tests for RendezvousEngine submit, fetch and resolve behavior.

These tests cover the request/answer contract from both sides: the
submitter blocked in submit() and the consumer fetching work and posting
answers. Blocking callers run on the shared thread pool fixture.
"""

import pytest

from playground_sync.domain.rendezvous.engine import RendezvousEngine
from playground_sync.domain.rendezvous.exceptions import BrokerClosedError
from playground_sync.domain.rendezvous.models import Answer, RequestState


class TestSubmitThenFetch:
    """Submitter arrives before any consumer is waiting."""

    def test_fetch_returns_pending_request_immediately(
        self, engine, executor, wait_until
    ):
        """Test the basic submit, fetch, answer round trip.

        Given - A prompt submitted while no consumer is waiting
        When - The consumer fetches work and posts an answer
        Then - Fetch returns immediately and the submitter gets the answer
        """
        # Given - Submitter blocked on a summarize prompt
        future = executor.submit(
            engine.submit, "summarize", "n1", "mindmap", "hi"
        )
        assert wait_until(lambda: engine.status().has_pending_request)

        # When - Consumer fetches without waiting
        work = engine.await_work(timeout=0)

        # Then - The request is delivered as submitted
        assert work is not None
        assert work.action == "summarize"
        assert work.subject_id == "n1"
        assert work.category == "mindmap"
        assert work.prompt == "hi"
        assert not future.done()

        # When - Consumer answers
        result = engine.resolve(work.request_id, "done")

        # Then - The submitter is unblocked with that content
        assert result.to_dict() == {"success": True}
        answer = future.result(timeout=2.0)
        assert answer == Answer(request_id=work.request_id, content="done")

    def test_repeated_fetch_returns_same_request(
        self, engine, executor, wait_until
    ):
        """Test that polling before resolve is idempotent.

        Given - One pending request
        When - The consumer fetches it three times
        Then - Every fetch returns the same request without queueing
        """
        executor.submit(engine.submit, "expand", "n2", "tree", "more")
        assert wait_until(lambda: engine.status().has_pending_request)

        ids = {engine.await_work(timeout=0).request_id for _ in range(3)}

        assert len(ids) == 1
        assert engine.status().waiting_consumers == 0

    def test_fetched_request_is_a_copy(self, engine, executor, wait_until):
        """Test that consumers receive snapshots, not the stored request.

        Given - A pending request with nested context
        When - The consumer mutates the context it received
        Then - The next fetch still sees the original context
        """
        executor.submit(
            engine.submit,
            "summarize",
            "n1",
            "mindmap",
            "hi",
            {"selection": ["n1"]},
        )
        assert wait_until(lambda: engine.status().has_pending_request)

        first = engine.await_work(timeout=0)
        first.context["selection"].append("tampered")
        second = engine.await_work(timeout=0)

        assert second.context == {"selection": ["n1"]}

    def test_submitter_context_is_forwarded_verbatim(
        self, engine, executor, wait_until
    ):
        context = {"prompt": "ignored here", "nodes": [{"id": "a", "depth": 2}]}
        executor.submit(engine.submit, "a", "b", "c", "text", context)
        assert wait_until(lambda: engine.status().has_pending_request)

        work = engine.await_work(timeout=0)

        assert work.context == context
        assert work.to_work_item() == {
            "requestId": work.request_id,
            "action": "a",
            "subjectId": "b",
            "category": "c",
            "prompt": "text",
            "context": context,
        }


class TestResolve:
    """Test the three resolution outcomes."""

    def test_second_resolve_reports_not_found(
        self, engine, executor, wait_until
    ):
        """Test that a duplicate answer is rejected.

        Given - A request answered once
        When - The same id is answered again
        Then - The second call reports not-found and wakes nothing
        """
        future = executor.submit(engine.submit, "a", "b", "c", "p")
        assert wait_until(lambda: engine.status().has_pending_request)
        request_id = engine.await_work(timeout=0).request_id

        first = engine.resolve(request_id, "first")
        second = engine.resolve(request_id, "second")

        assert first.success is True
        assert second.success is False
        assert second.error == "Request not found"
        assert second.to_dict() == {"error": "Request not found"}
        assert future.result(timeout=2.0).content == "first"

    def test_unknown_id_reports_pending_id(
        self, engine, executor, wait_until
    ):
        """Test diagnostics for an answer to an id never submitted.

        Given - One request pending
        When - An answer names an unknown id
        Then - The error carries the pending request's id
        """
        executor.submit(engine.submit, "a", "b", "c", "p")
        assert wait_until(lambda: engine.status().has_pending_request)
        pending_id = engine.status().pending_request_id

        result = engine.resolve("not-a-real-id", "content")

        assert result.to_dict() == {
            "error": "Request not found",
            "pendingId": pending_id,
        }
        # The pending request is untouched
        assert engine.status().pending_request_id == pending_id

    def test_unknown_id_with_nothing_pending_omits_pending_id(self, engine):
        result = engine.resolve("nope", "content")

        assert result.success is False
        assert result.pending_id is None
        assert "pendingId" not in result.to_dict()

    def test_detached_submitter_gets_stale_warning(self, engine):
        """Test answering a request whose submitter already gave up.

        Given - A submission whose transport detached after its deadline
        When - The consumer answers it late
        Then - The answer succeeds with a warning and clears the request
        """
        # Given - Submission opened and abandoned
        submission = engine.open_submission("a", "b", "c", prompt="p")
        assert submission.wait(timeout=0.01) is None
        assert engine.detach(submission.request_id) is True
        assert engine.status().has_pending_request is True

        # When - Late answer
        result = engine.resolve(submission.request_id, "late")

        # Then - Success with warning, nothing left pending
        assert result.to_dict() == {
            "success": True,
            "warning": "Submitter may have timed out",
        }
        assert engine.status().has_pending_request is False
        assert engine.resolve(submission.request_id, "again").success is False

    def test_detach_after_resolve_reports_nothing_removed(self, engine):
        submission = engine.open_submission("a", "b", "c")
        engine.resolve(submission.request_id, "fast")

        assert engine.detach(submission.request_id) is False
        assert submission.wait(timeout=0).content == "fast"


class TestPollCache:
    """Test the last-submitted-wins behavior of the current slot."""

    def test_second_submission_replaces_current(self, engine):
        """Test overlapping submissions.

        Given - Two submissions before either is answered
        When - The older one is answered by id
        Then - It resolves and the newer one stays current
        """
        first = engine.open_submission("a", "first", "c")
        second = engine.open_submission("a", "second", "c")

        assert engine.await_work(timeout=0).request_id == second.request_id

        result = engine.resolve(first.request_id, "one")

        assert result.success is True
        assert first.wait(timeout=1.0).content == "one"
        assert engine.status().pending_request_id == second.request_id

        engine.resolve(second.request_id, "two")
        assert second.wait(timeout=1.0).content == "two"
        assert engine.status().has_pending_request is False


class TestStatus:
    """Test the read-only status view."""

    def test_pending_flag_follows_request_lifecycle(self, engine):
        """Test status before submit, after submit and after resolve."""
        assert engine.status().has_pending_request is False

        submission = engine.open_submission("a", "b", "c")
        status = engine.status()
        assert status.has_pending_request is True
        assert status.pending_request_id == submission.request_id
        assert status.waiting_submitters == 1

        engine.resolve(submission.request_id, "x")
        status = engine.status()
        assert status.has_pending_request is False
        assert status.pending_request_id is None
        assert status.waiting_submitters == 0

    def test_consumer_connection_flag(self, engine):
        assert engine.status().consumer_connected is False
        engine.set_consumer_connected(True)
        assert engine.status().consumer_connected is True
        engine.set_consumer_connected(False)
        assert engine.status().consumer_connected is False


class TestRequestState:
    """Test lifecycle states recorded on the stored request."""

    def test_states_progress_through_dispatch(self, engine):
        engine.open_submission("a", "b", "c")
        assert engine.await_work(timeout=0).state is RequestState.DISPATCHED

    def test_unique_ids_from_custom_factory(self):
        ids = iter(["req-1", "req-2"])
        engine = RendezvousEngine(id_factory=lambda: next(ids))

        assert engine.open_submission("a", "b", "c").request_id == "req-1"
        assert engine.open_submission("a", "b", "c").request_id == "req-2"
        engine.shutdown()


class TestShutdown:
    """Test releasing suspended callers on shutdown."""

    def test_shutdown_releases_submitter_and_consumer(
        self, engine, executor, wait_until
    ):
        """Test that no caller stays suspended after shutdown.

        Given - A consumer waiting for work and a submitter awaiting an answer
        When - The engine shuts down
        Then - Both raise BrokerClosedError
        """
        other = RendezvousEngine()
        consumer = executor.submit(other.await_work)
        submitter = executor.submit(engine.submit, "a", "b", "c")
        assert wait_until(lambda: other.status().waiting_consumers == 1)
        assert wait_until(lambda: engine.status().waiting_submitters == 1)

        other.shutdown()
        engine.shutdown()

        with pytest.raises(BrokerClosedError):
            consumer.result(timeout=2.0)
        with pytest.raises(BrokerClosedError):
            submitter.result(timeout=2.0)

    def test_calls_after_shutdown(self, engine):
        engine.shutdown()

        assert engine.is_closed is True
        with pytest.raises(BrokerClosedError):
            engine.open_submission("a", "b", "c")
        with pytest.raises(BrokerClosedError):
            engine.await_work(timeout=0)
        assert engine.resolve("anything", "x").success is False

    def test_shutdown_is_idempotent(self, engine):
        engine.shutdown()
        engine.shutdown()
        assert engine.status().has_pending_request is False
