# hailstorm

A load testing library built on asyncio. An agent runs a simulation of
many bots. Each model of bot follows a load shape, which is an expression
in `t`, the seconds since launch. The shape decides how many bots of that
model should be running. Each bot runs weighted random actions at a fixed
interval. It can also have hooks that run when it enters a state.

The package has no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Load shapes

`hailstorm.shape.parse_shape_fun` parses an expression of `t` into a
callable from float to float. The expression may use:

- the operators `+ - * / % ^`
- the constants `pi` and `e`
- the usual functions: `sqrt`, `exp`, `ln`, `abs`, the trigonometric and
  hyperbolic functions, `atan2`, `floor`, `ceil`, `round`, `signum`, `max`
  and `min`
- the shapes `rect`, `tri`, `step`, `trapz(x, b_low, b_sup)` and
  `costrapz(x, b_low, b_sup)`

An expression that cannot be parsed raises `SimulationError`.

```python
from hailstorm.shape import parse_shape_fun

shape = parse_shape_fun("100 * trapz(t - 60, 120, 60)")
shape(60.0)  # 100.0
```

## Bot types and the registry

A script is an object that holds bot types. It may be a module, a mapping
of names to types, or an iterable of named types such as classes. A bot
type is anything with two callables:

- `new(params)`, which builds an instance from a `BotParams`. `BotParams`
  carries `bot_id`, `internal_id` and `global_id`.
- `register_bot(bot)`, which registers actions on a `BotBehaviour`.

```python
from hailstorm.behaviour import BotState, alive, enter_state
from hailstorm.registry import BotRegistry

class Demo:
    @staticmethod
    def new(params):
        return Demo()

    @staticmethod
    def register_bot(bot):
        bot.set_interval_millis(1000)
        bot.register_action(alive(10.0), Demo.do_something)
        bot.register_action(enter_state(BotState.STOPPING), Demo.goodbye)

    async def do_something(self):
        ...

    def goodbye(self):
        ...

registry = BotRegistry()
registry.load_script([Demo])
registry.model_names()  # ['Demo']
```

Actions may be plain functions or coroutine functions.

- A type whose `register_bot` raises is skipped.
- `build_bot` and `BotModelFactory.new_bot` return `None` when the
  constructor fails.
- `load_script` raises `LoadScriptError` for objects that are not scripts,
  such as source text.

## Identifiers

- `hailstorm.compound_id.CompoundId` packs ids with the varint encoding of
  `hailstorm.varint` into 64-bit integers. `internal_id()` packs the model
  and bot ids. `global_id()` packs the agent, model and bot ids.
  `from_internal_id` decodes an internal id again.
- `hailstorm.sequential_id_generator.SequentialIdGenerator` hands out ids
  from 1. It reuses the smallest id that has been released.

## Storage and environment

`hailstorm.storage.storage_module` returns a `StorageRegistry`. Its
`get_bot_storage(name, bot_id)` gives a bot a key/value store.

- A value written to the store is seen by later storages of the same name
  and bot.
- A key that was never written falls back to the initializer.
  `CsvStorageInitializer(directory, agent_id)` reads
  `<name>-<agent_id>.csv` files, which have an `id` column.
  `EmptyInitializer` provides nothing.

```python
from hailstorm.initializer import CsvStorageInitializer
from hailstorm.storage import StorageModuleArgs, storage_module

registry = storage_module(
    StorageModuleArgs().with_initializer(CsvStorageInitializer("data", 1))
)
registry.get_bot_storage("bot_data", 13).read("name")
```

`hailstorm.env.env_module(EnvModuleConf().with_prefix("MYAPP")).read("HOST")`
reads the variable `MYAPP_HOST`. Without a prefix it reads `HOST`.

## Running a simulation

`hailstorm.simulation.SimulationActor` takes commands through
`apply_commands`:

- `LoadSimulation(model_shapes, script)`
- `LaunchSimulation(start_ts)`, where `start_ts` is in seconds since the
  epoch
- `UpdateAgentsCount(count)`
- `StopSimulation(reset)`

`start()` must be called inside a running event loop. It ticks on
wall-clock multiples of 1.5 seconds. On each tick the actor spawns or stops
bots so that each model follows its shape. The counts are split across
agents with `normalize_count` and limited by `SimulationParams(max_running,
max_rate)`. When the simulation is not launched, every bot is stopped.

```python
import asyncio, time
from hailstorm.registry import BotRegistry
from hailstorm.simulation import (
    LaunchSimulation, LoadSimulation, SimulationActor, SimulationParams,
)

async def main():
    actor = SimulationActor(0, SimulationParams(max_running=100), BotRegistry())
    actor.apply_commands([
        LoadSimulation({"Demo": "10 * step(t)"}, [Demo]),
        LaunchSimulation(time.time()),
    ])
    actor.start()
    await asyncio.sleep(10)
    print(actor.fetch_stats())
    actor.stop()

asyncio.run(main())
```

Other calls:

- `fetch_stats()` reports bot counts by `BotState` for each model, and the
  `SimulationState`: idle, ready, waiting or running.
- `invoke_handler(bot_id, handler, args)` runs a handler on one bot and
  returns its result.
- `hailstorm.facade.SimulationFacade` offers only state changes and handler
  calls.

Each bot runs in a `hailstorm.bot_actor.BotActor`, one operation at a time.
Failures there raise `ActionExecutionError`. `hailstorm.value.extract_status`
gives the numeric status of a handler result. `hailstorm.timers` holds the
periodic helpers `run_interval_weak`, `run_interval_synchro` and
`next_delay`.

## What this package does not do

It is a library with no command-line program. It does not talk to a
controller or to other agents: commands and agent counts must be passed in
by the caller. Action timings and outcomes are not collected as metrics.
Bot types are Python objects; there is no separate scripting language.