from pathlib import Path

from remotecache.models import RunState
from remotecache.state import (
    ActionsOutputs,
    ActionsStateStore,
    InMemoryStateStore,
    load_state,
    persist_cache_hit,
    persist_state,
)


def _state(tmp_path: Path) -> RunState:
    return RunState(
        cache_key="unity-cache-MyGame",
        version="abc",
        archive_path=tmp_path / "MyGame" / "Library",
        project_path=tmp_path / "MyGame",
        lookup_only=True,
    )


def test_state_file_receives_name_value_lines(tmp_path: Path) -> None:
    state_file = tmp_path / "state"
    store = ActionsStateStore(state_file=state_file, environ={})

    persist_state(store, _state(tmp_path))
    persist_cache_hit(store, False)

    assert state_file.read_text(encoding="utf-8").splitlines() == [
        "CACHE_KEY=unity-cache-MyGame",
        "CACHE_VERSION=abc",
        f"LIBRARY_PATH={tmp_path / 'MyGame' / 'Library'}",
        f"FULL_PROJECT_PATH={tmp_path / 'MyGame'}",
        "LOOKUP_ONLY=true",
        "CACHE_HIT=false",
    ]


def test_post_phase_reads_state_from_environment(tmp_path: Path) -> None:
    store = ActionsStateStore(
        environ={
            "STATE_CACHE_KEY": "unity-cache-MyGame",
            "STATE_CACHE_VERSION": "abc",
            "STATE_LIBRARY_PATH": str(tmp_path / "MyGame" / "Library"),
            "STATE_FULL_PROJECT_PATH": str(tmp_path / "MyGame"),
            "STATE_LOOKUP_ONLY": "true",
            "STATE_CACHE_HIT": "True",
        }
    )

    state = load_state(store)

    assert state == RunState(
        cache_key="unity-cache-MyGame",
        version="abc",
        archive_path=tmp_path / "MyGame" / "Library",
        project_path=tmp_path / "MyGame",
        lookup_only=True,
        cache_hit=True,
    )


def test_state_without_file_is_not_written(tmp_path: Path) -> None:
    store = ActionsStateStore(state_file=None, environ={})

    persist_state(store, _state(tmp_path))

    assert load_state(store) is None
    assert list(tmp_path.iterdir()) == []


def test_missing_required_field_yields_no_state(tmp_path: Path) -> None:
    store = InMemoryStateStore()
    persist_state(store, _state(tmp_path))
    del store.values["CACHE_VERSION"]

    assert load_state(store) is None


def test_missing_hit_flag_reads_as_miss(tmp_path: Path) -> None:
    store = InMemoryStateStore()
    persist_state(store, _state(tmp_path))

    state = load_state(store)

    assert state is not None
    assert state.cache_hit is False


def test_outputs_append_to_output_file(tmp_path: Path) -> None:
    output_file = tmp_path / "output"
    outputs = ActionsOutputs(output_file=output_file)

    outputs.set_output("cache-hit", "true")

    assert output_file.read_text(encoding="utf-8") == "cache-hit=true\n"
