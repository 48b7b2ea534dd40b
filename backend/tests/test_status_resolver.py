"""
Blocking-state derivation and message-driven recomputation.
"""

import pytest

from taskgraph.exceptions import SelfReferenceError
from taskgraph.models import TaskStatus
from taskgraph.services import (
    BlockingStateChanged,
    DependencyInput,
    EdgeSetChanged,
    EventType,
    GraphEventDispatcher,
    TaskStatusChanged,
)


def depends(dependent, blocking):
    return DependencyInput(dependent_task_id=dependent.id, blocking_task_id=blocking.id)


async def set_status(graph, session, task, status):
    """Simulate the task repository changing a status and notifying the engine."""
    task.status = status
    await session.flush()
    await graph.notify_task_status_changed(task.id, status)


class StateRecorder:
    def __init__(self):
        self.states = []

    def __call__(self, event):
        self.states.append(event.state)

    def latest(self, task_id):
        return [s for s in self.states if s.task_id == task_id][-1]


class TestResolve:

    @pytest.mark.asyncio
    async def test_task_without_blockers(self, graph, make_tasks):
        t = await make_tasks("Solo")

        state = await graph.get_blocking_state(t["Solo"].id)

        assert state.is_blocked is False
        assert state.blocking_tasks == []
        assert state.dependency_status is None
        assert state.dependency_count == 0

    @pytest.mark.asyncio
    async def test_blocked_until_every_blocker_completes(self, graph, make_tasks, test_session):
        t = await make_tasks("Dep", "B1", "B2")
        await graph.create_dependency(depends(t["Dep"], t["B1"]))
        await graph.create_dependency(depends(t["Dep"], t["B2"]))

        state = await graph.get_blocking_state(t["Dep"].id)
        assert state.is_blocked is True
        assert set(state.blocking_tasks) == {t["B1"].id, t["B2"].id}
        assert state.dependency_status == "blocked"

        t["B1"].status = TaskStatus.COMPLETED
        await test_session.flush()
        state = await graph.get_blocking_state(t["Dep"].id)
        assert state.is_blocked is True
        assert state.blocking_tasks == [t["B2"].id]

        t["B2"].status = TaskStatus.COMPLETED
        await test_session.flush()
        state = await graph.get_blocking_state(t["Dep"].id)
        assert state.is_blocked is False
        assert state.blocking_tasks == []
        assert state.dependency_status == "ready"
        assert state.dependency_count == 2

    @pytest.mark.asyncio
    async def test_blocker_reports_blocking_status(self, graph, make_tasks):
        t = await make_tasks("Dep", "Blocker")
        await graph.create_dependency(depends(t["Dep"], t["Blocker"]))

        state = await graph.get_blocking_state(t["Blocker"].id)

        assert state.is_blocked is False
        assert state.blocks_ids == [t["Dep"].id]
        assert state.dependency_status == "blocking"

    @pytest.mark.asyncio
    async def test_in_progress_blocker_still_blocks(self, graph, make_tasks, test_session):
        t = await make_tasks("Dep", "Blocker")
        t["Blocker"].status = TaskStatus.IN_PROGRESS
        await test_session.flush()
        await graph.create_dependency(depends(t["Dep"], t["Blocker"]))

        assert (await graph.get_blocking_state(t["Dep"].id)).is_blocked is True


class TestRecomputeNotifications:

    @pytest.mark.asyncio
    async def test_status_flip_and_reopen(self, graph, make_tasks, test_session):
        """in-progress -> completed unblocks the dependent; reopening blocks it again."""
        t = await make_tasks("Dep", "Blocker")
        await set_status(graph, test_session, t["Blocker"], TaskStatus.IN_PROGRESS)
        await graph.create_dependency(depends(t["Dep"], t["Blocker"]))

        recorder = StateRecorder()
        graph.events.subscribe(EventType.BLOCKING_STATE_CHANGED, recorder)

        await set_status(graph, test_session, t["Blocker"], TaskStatus.COMPLETED)
        assert recorder.latest(t["Dep"].id).is_blocked is False

        await set_status(graph, test_session, t["Blocker"], TaskStatus.PENDING)
        assert recorder.latest(t["Dep"].id).is_blocked is True

    @pytest.mark.asyncio
    async def test_edge_changes_publish_states(self, graph, make_tasks):
        t = await make_tasks("Dep", "Blocker")
        recorder = StateRecorder()
        graph.events.subscribe(EventType.BLOCKING_STATE_CHANGED, recorder)

        dep = await graph.create_dependency(depends(t["Dep"], t["Blocker"]))
        assert recorder.latest(t["Dep"].id).is_blocked is True
        assert recorder.latest(t["Blocker"].id).dependency_status == "blocking"

        await graph.delete_dependency(dep.id)
        assert recorder.latest(t["Dep"].id).is_blocked is False

    @pytest.mark.asyncio
    async def test_cascade_unblocks_former_dependents(self, graph, make_tasks):
        t = await make_tasks("Dep", "Doomed")
        await graph.create_dependency(depends(t["Dep"], t["Doomed"]))
        recorder = StateRecorder()
        graph.events.subscribe(EventType.BLOCKING_STATE_CHANGED, recorder)

        await graph.delete_dependencies_for_task(t["Doomed"].id)

        assert recorder.latest(t["Dep"].id).is_blocked is False
        assert all(state.task_id != t["Doomed"].id for state in recorder.states)

    @pytest.mark.asyncio
    async def test_rejected_create_publishes_nothing(self, graph, make_tasks):
        t = await make_tasks("A")
        seen = []
        graph.events.subscribe_all(seen.append)

        with pytest.raises(SelfReferenceError):
            await graph.create_dependency(depends(t["A"], t["A"]))

        assert seen == []


class TestGraphEventDispatcher:

    @pytest.mark.asyncio
    async def test_typed_and_wildcard_subscriptions(self):
        dispatcher = GraphEventDispatcher()
        typed, everything = [], []
        dispatcher.subscribe(EventType.TASK_STATUS_CHANGED, typed.append)
        dispatcher.subscribe_all(everything.append)

        status_event = TaskStatusChanged(task_id="t1")
        edge_event = EdgeSetChanged(dependent_task_ids=frozenset({"t1"}))
        await dispatcher.publish(status_event)
        await dispatcher.publish(edge_event)

        assert typed == [status_event]
        assert everything == [status_event, edge_event]

    @pytest.mark.asyncio
    async def test_async_handlers_awaited_in_order(self):
        dispatcher = GraphEventDispatcher()
        calls = []

        async def first(event):
            calls.append("first")

        def second(event):
            calls.append("second")

        dispatcher.subscribe(EventType.BLOCKING_STATE_CHANGED, first)
        dispatcher.subscribe(EventType.BLOCKING_STATE_CHANGED, second)
        await dispatcher.publish(BlockingStateChanged(state=None))

        assert calls == ["first", "second"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        dispatcher = GraphEventDispatcher()
        seen = []
        sub_id = dispatcher.subscribe_all(seen.append)

        assert dispatcher.unsubscribe(sub_id) is True
        assert dispatcher.unsubscribe(sub_id) is False
        await dispatcher.publish(TaskStatusChanged(task_id="t1"))

        assert seen == []

    @pytest.mark.asyncio
    async def test_handler_errors_propagate(self):
        dispatcher = GraphEventDispatcher()

        def broken(event):
            raise RuntimeError("listener failed")

        dispatcher.subscribe_all(broken)

        with pytest.raises(RuntimeError, match="listener failed"):
            await dispatcher.publish(TaskStatusChanged(task_id="t1"))
