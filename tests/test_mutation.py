import asyncio

import pytest

from speakerkit.labels.mutation import MutationStatus, OptimisticMutation


def _mutation(state: dict, fail: bool = False) -> OptimisticMutation:
    def apply():
        previous = state.get("name")
        state["name"] = "nuevo"
        return previous

    async def write():
        if fail:
            raise ConnectionError("offline")

    def revert(previous):
        state["name"] = previous

    return OptimisticMutation(apply, write, revert, description="rename")


def test_commit_keeps_local_change():
    state = {"name": "viejo"}
    mutation = _mutation(state)
    assert asyncio.run(mutation.run()) is True
    assert mutation.status is MutationStatus.COMMITTED
    assert state["name"] == "nuevo"
    assert mutation.error is None


def test_failure_rolls_back_and_records_error():
    state = {"name": "viejo"}
    mutation = _mutation(state, fail=True)
    assert asyncio.run(mutation.run()) is False
    assert mutation.status is MutationStatus.ROLLED_BACK
    assert state["name"] == "viejo"
    assert isinstance(mutation.error, ConnectionError)


def test_mutation_runs_once():
    mutation = _mutation({})
    asyncio.run(mutation.run())
    with pytest.raises(RuntimeError):
        asyncio.run(mutation.run())
