from __future__ import annotations

import asyncio
import threading
from typing import Any

import pytest

import pyzustate
from pyzustate import sync as sync_module
from pyzustate.state.events import ChangeStatus, StateDiff


def _initial() -> dict[str, Any]:
    return {
        "values": {"ready": False},
        "collections": {"tasks": [{"id": "t1", "updated": 1, "title": "a"}]},
    }


def test_push_called_after_every_change_with_store_and_diff() -> None:
    seen: list[tuple[Any, StateDiff]] = []

    def push(store: pyzustate.Store, get_diff) -> None:
        seen.append((store, get_diff()))

    store = pyzustate.create(_initial(), push=push)
    store.values.ready.set(True)
    store.collections.tasks.set({"id": "t1", "title": "b"})

    assert len(seen) == 2
    assert seen[0][0] is store
    assert seen[0][1].paths() == ["values.ready"]
    title_change = next(c for c in seen[1][1].changes if c.path == "collections.tasks[t1].title")
    assert title_change.status == ChangeStatus.UPDATED
    assert (title_change.previous, title_change.current) == ("a", "b")


def test_push_diff_is_lazy_and_memoised(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[int] = []
    real_diff = sync_module.diff_states

    def counting_diff(previous, current):
        calls.append(1)
        return real_diff(previous, current)

    monkeypatch.setattr(sync_module, "diff_states", counting_diff)
    getters: list[Any] = []
    store = pyzustate.create(_initial(), push=lambda _store, get_diff: getters.append(get_diff))

    store.values.ready.set(True)
    assert calls == []

    first = getters[0]()
    second = getters[0]()
    assert first is second
    assert calls == [1]


def test_push_sees_state_of_the_triggering_mutation() -> None:
    observed: list[bool] = []
    store = pyzustate.create(_initial(), push=lambda s, _diff: observed.append(s.values.ready.get()))

    store.values.ready.set(True)

    assert observed == [True]


def test_push_failure_does_not_affect_mutation() -> None:
    def push(_store, _get_diff) -> None:
        raise RuntimeError("remote down")

    store = pyzustate.create(_initial(), push=push)
    store.values.ready.set(True)

    assert store.values.ready.get() is True


@pytest.mark.asyncio
async def test_async_push_is_detached_and_not_awaited() -> None:
    gate = asyncio.Event()
    finished: list[bool] = []

    async def push(_store, get_diff) -> None:
        await gate.wait()
        finished.append(get_diff().is_equal)

    store = pyzustate.create(_initial(), push=push)
    store.values.ready.set(True)

    assert finished == []
    assert len(store.sync.pending) == 1

    gate.set()
    await store.sync.drain()
    assert finished == [False]
    assert store.sync.pending == []


@pytest.mark.asyncio
async def test_async_push_failure_is_contained() -> None:
    async def push(_store, _get_diff) -> None:
        raise RuntimeError("remote down")

    store = pyzustate.create(_initial(), push=push)
    store.values.ready.set(True)

    await store.sync.drain()
    assert store.values.ready.get() is True


def test_async_push_without_running_loop_uses_worker_thread() -> None:
    done = threading.Event()
    thread_names: list[str] = []

    async def push(_store, _get_diff) -> None:
        thread_names.append(threading.current_thread().name)
        done.set()

    store = pyzustate.create(_initial(), push=push)
    store.values.ready.set(True)

    assert done.wait(timeout=5)
    store.sync.join(timeout=5)
    assert thread_names == ["pyzustate-push"]


def test_pull_runs_once_before_create_returns() -> None:
    calls: list[Any] = []

    def pull(store: pyzustate.Store, calc_diff) -> None:
        calls.append(store)
        store.collections.tasks.set({"id": "t1", "title": "remote"})

    store = pyzustate.create(_initial(), pull=pull)

    assert calls == [store]
    assert store.collections.tasks.get("t1")["title"] == "remote"


def test_pull_calc_diff_compares_without_mutating() -> None:
    diffs: list[StateDiff] = []

    def pull(_store, calc_diff) -> None:
        diffs.append(calc_diff({"values": {"ready": True}}))
        diffs.append(calc_diff({}))

    store = pyzustate.create(_initial(), pull=pull)

    changed, unchanged = diffs
    assert changed.paths() == ["values.ready"]
    assert unchanged.is_equal
    assert store.values.ready.get() is False
    assert store.internal.version == 0


def test_pull_mutations_are_pushed() -> None:
    pushed: list[list[str]] = []

    def pull(store, _calc_diff) -> None:
        store.values.ready.set(True)

    pyzustate.create(_initial(), push=lambda _s, get_diff: pushed.append(get_diff().paths()), pull=pull)

    assert pushed == [["values.ready"]]


@pytest.mark.asyncio
async def test_async_pull_applies_remote_state_later() -> None:
    async def pull(store, calc_diff) -> None:
        await asyncio.sleep(0)
        remote = [{"id": "t2", "updated": 5, "title": "from server"}]
        if not calc_diff({"collections": {"tasks": remote}}).is_equal:
            store.collections.tasks.add(remote)

    store = pyzustate.create(_initial(), pull=pull)
    assert store.collections.tasks.get("t2") is None

    await store.sync.drain()
    assert store.collections.tasks.get("t2")["title"] == "from server"


def test_close_stops_push() -> None:
    pushed: list[int] = []
    store = pyzustate.create(_initial(), push=lambda _s, _d: pushed.append(1))

    store.sync.close()
    store.values.ready.set(True)

    assert pushed == []
