from datetime import timedelta

import pytest

from hailstorm.behaviour import BotBehaviour, BotState, alive, enter_state
from hailstorm.scripted import ScriptedBot


class Recorder:
    def __init__(self):
        self.calls = []

    def act(self):
        self.calls.append("act")

    async def act_async(self):
        self.calls.append("act_async")

    def fail(self):
        raise RuntimeError("boom")


def test_interval_follows_behaviour():
    behaviour = BotBehaviour()
    behaviour.set_interval_millis(250)
    bot = ScriptedBot(behaviour, Recorder())
    assert bot.interval() == timedelta(milliseconds=250)


def test_default_interval_is_five_seconds():
    bot = ScriptedBot(BotBehaviour(), Recorder())
    assert bot.interval() == timedelta(milliseconds=5_000)


@pytest.mark.asyncio
async def test_run_random_action_calls_sync_action_with_instance():
    behaviour = BotBehaviour()
    behaviour.register_action(alive(1.0), Recorder.act)
    instance = Recorder()
    bot = ScriptedBot(behaviour, instance)
    await bot.run_random_action()
    assert instance.calls == ["act"]


@pytest.mark.asyncio
async def test_run_random_action_awaits_async_action():
    behaviour = BotBehaviour()
    behaviour.register_action(alive(3.0), Recorder.act_async)
    instance = Recorder()
    bot = ScriptedBot(behaviour, instance)
    await bot.run_random_action()
    await bot.run_random_action()
    assert instance.calls == ["act_async", "act_async"]


@pytest.mark.asyncio
async def test_run_random_action_without_actions_raises():
    bot = ScriptedBot(BotBehaviour(), Recorder())
    with pytest.raises(ValueError):
        await bot.run_random_action()


@pytest.mark.asyncio
async def test_action_errors_propagate():
    behaviour = BotBehaviour()
    behaviour.register_action(alive(1.0), Recorder.fail)
    bot = ScriptedBot(behaviour, Recorder())
    with pytest.raises(RuntimeError, match="boom"):
        await bot.run_random_action()


@pytest.mark.asyncio
async def test_execute_handler_returns_result():
    instance = Recorder()
    bot = ScriptedBot(BotBehaviour(), instance)
    result = await bot.execute_handler(lambda inst, param: (inst, param), "payload")
    assert result == (instance, "payload")


@pytest.mark.asyncio
async def test_execute_handler_awaits_async_handler():
    async def handler(inst, param):
        inst.calls.append(param)
        return len(inst.calls)

    instance = Recorder()
    bot = ScriptedBot(BotBehaviour(), instance)
    assert await bot.execute_handler(handler, "first") == 1
    assert instance.calls == ["first"]


@pytest.mark.asyncio
async def test_trigger_hook_runs_registered_hook():
    behaviour = BotBehaviour()
    behaviour.register_action(enter_state(BotState.STOPPING), Recorder.act_async)
    instance = Recorder()
    bot = ScriptedBot(behaviour, instance)
    await bot.trigger_hook(BotState.STOPPING)
    assert instance.calls == ["act_async"]


@pytest.mark.asyncio
async def test_trigger_hook_without_hook_does_nothing():
    behaviour = BotBehaviour()
    behaviour.register_action(enter_state(BotState.custom(7)), Recorder.act)
    instance = Recorder()
    bot = ScriptedBot(behaviour, instance)
    await bot.trigger_hook(BotState.RUNNING)
    assert instance.calls == []
    await bot.trigger_hook(BotState.custom(7))
    assert instance.calls == ["act"]