"""Cross-phase state and step outputs.

The CI runner carries state from the main phase to the post phase by reading
``NAME=value`` lines appended to the ``GITHUB_STATE`` file and exposing them
to the post phase as ``STATE_NAME`` environment variables. Step outputs work
the same way through ``GITHUB_OUTPUT``. Both are modelled as small protocols
so the orchestrator can run against in-memory stores in tests.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from remotecache.models import STATE_CACHE_HIT, RunState, flag


class StateStore(Protocol):
    def set(self, name: str, value: str) -> None:
        """Persist one state entry for the post phase."""

    def get(self, name: str) -> str | None:
        """Return a state entry written by the main phase."""


class OutputSink(Protocol):
    def set_output(self, name: str, value: str) -> None:
        """Emit one step output."""


@dataclass(slots=True)
class ActionsStateStore:
    state_file: Path | None = None
    environ: Mapping[str, str] = field(default_factory=lambda: os.environ)

    def set(self, name: str, value: str) -> None:
        if self.state_file is not None:
            _append_line(self.state_file, name, value)

    def get(self, name: str) -> str | None:
        return self.environ.get(f"STATE_{name}")


@dataclass(slots=True)
class ActionsOutputs:
    output_file: Path | None = None

    def set_output(self, name: str, value: str) -> None:
        if self.output_file is not None:
            _append_line(self.output_file, name, value)


@dataclass(slots=True)
class InMemoryStateStore:
    values: dict[str, str] = field(default_factory=dict)

    def set(self, name: str, value: str) -> None:
        self.values[name] = value

    def get(self, name: str) -> str | None:
        return self.values.get(name)


@dataclass(slots=True)
class InMemoryOutputs:
    values: dict[str, str] = field(default_factory=dict)

    def set_output(self, name: str, value: str) -> None:
        self.values[name] = value


def persist_state(store: StateStore, state: RunState) -> None:
    for name, value in state.to_pairs().items():
        store.set(name, value)


def persist_cache_hit(store: StateStore, hit: bool) -> None:
    store.set(STATE_CACHE_HIT, flag(hit))


def load_state(store: StateStore) -> RunState | None:
    return RunState.from_lookup(store.get)


def _append_line(path: Path, name: str, value: str) -> None:
    with path.open("a", encoding="utf-8") as handle:
        handle.write(f"{name}={value}\n")
