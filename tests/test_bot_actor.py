import asyncio

import pytest

from hailstorm.behaviour import BotBehaviour, BotState, alive, enter_state
from hailstorm.bot_actor import ActionExecutionError, BotActor, OccupiedBotError
from hailstorm.scripted import ScriptedBot


def _make(calls, interval_ms=60_000, action=None):
    behaviour = BotBehaviour()
    behaviour.set_interval_millis(interval_ms)
    behaviour.register_action(
        alive(1.0), action if action is not None else (lambda inst: calls.append(("act", inst)))
    )
    behaviour.register_action(
        enter_state(BotState.STOPPING), lambda inst: calls.append(("stopping", inst))
    )
    return ScriptedBot(behaviour, "inst")


@pytest.mark.asyncio
async def test_do_action_runs_action_with_instance():
    calls = []
    actor = BotActor(7, lambda *_: None, _make(calls))
    await actor.do_action()
    assert calls == [("act", "inst")]


@pytest.mark.asyncio
async def test_action_error_is_wrapped_and_bot_restored():
    def failing(_inst):
        raise RuntimeError("boom")

    actor = BotActor(7, lambda *_: None, _make([], action=failing))
    with pytest.raises(ActionExecutionError, match="boom"):
        await actor.do_action()
    result = await actor.execute_handler(lambda inst, arg: f"{inst}-{arg}", "x")
    assert result == "inst-x"


@pytest.mark.asyncio
async def test_execute_handler_returns_result():
    actor = BotActor(7, lambda *_: None, _make([]))

    async def handler(inst, arg):
        return (inst, arg)

    assert await actor.execute_handler(handler, 3) == ("inst", 3)


@pytest.mark.asyncio
async def test_trigger_hook_runs_registered_hook_only():
    calls = []
    actor = BotActor(7, lambda *_: None, _make(calls))
    await actor.trigger_hook(BotState.RUNNING)
    assert calls == []
    await actor.trigger_hook(BotState.STOPPING)
    assert calls == [("stopping", "inst")]


@pytest.mark.asyncio
async def test_stop_runs_hook_and_reports_stopped():
    calls = []
    events = []
    actor = BotActor(7, lambda bot_id, state: events.append((bot_id, state)), _make(calls))
    await actor.stop()
    assert calls == [("stopping", "inst")]
    assert events == [(7, BotState.STOPPED)]
    assert actor.is_alive() is False


@pytest.mark.asyncio
async def test_stop_twice_reports_once():
    events = []
    actor = BotActor(7, lambda bot_id, state: events.append(state), _make([]))
    await actor.stop()
    await actor.stop()
    assert events == [BotState.STOPPED]


@pytest.mark.asyncio
async def test_stopped_actor_rejects_operations():
    actor = BotActor(7, lambda *_: None, _make([]))
    await actor.stop()
    with pytest.raises(ActionExecutionError):
        await actor.do_action()


@pytest.mark.asyncio
async def test_reentrant_call_reports_occupied_bot():
    actor = BotActor(7, lambda *_: None, _make([]))

    async def handler(_inst, _arg):
        try:
            await actor.do_action()
        except OccupiedBotError as err:
            return str(err)
        return "ran"

    assert await actor.execute_handler(handler, None) == "Bot is currently occupied"


@pytest.mark.asyncio
async def test_concurrent_operations_run_one_at_a_time():
    active = []
    overlaps = []

    async def handler(_inst, arg):
        active.append(arg)
        overlaps.append(len(active))
        await asyncio.sleep(0.01)
        active.remove(arg)
        return arg

    actor = BotActor(7, lambda *_: None, _make([]))
    results = await asyncio.gather(*(actor.execute_handler(handler, n) for n in range(3)))
    assert results == [0, 1, 2]
    assert max(overlaps) == 1


@pytest.mark.asyncio
async def test_started_actor_runs_periodic_actions():
    calls = []
    actor = BotActor(7, lambda *_: None, _make(calls, interval_ms=10))
    actor.start()
    await asyncio.sleep(0.12)
    await actor.stop()
    assert len([c for c in calls if c[0] == "act"]) >= 3


@pytest.mark.asyncio
async def test_start_twice_is_rejected():
    actor = BotActor(7, lambda *_: None, _make([]))
    actor.start()
    with pytest.raises(RuntimeError):
        actor.start()
    await actor.stop()
    assert actor.is_alive() is False