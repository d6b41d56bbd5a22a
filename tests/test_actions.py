"""Tests for the gesture-to-action mapping system."""

import asyncio

import pytest
import yaml

from gesture_eye.actions import (
    Action,
    ActionExecutor,
    ActionMapper,
    ActionType,
    GestureMapping,
)
from gesture_eye.events import GestureEvent, GestureKind


def make_event(kind=GestureKind.RIGHT_WINK):
    return GestureEvent(kind=kind, timestamp=12.5, sequence=3)


class TestAction:
    def test_from_dict(self):
        action = Action.from_dict({"type": "log", "params": {"message": "hello"}})
        assert action.type == ActionType.LOG
        assert action.params["message"] == "hello"
        assert action.description == ""

    def test_roundtrip(self):
        action = Action(type=ActionType.SHELL, params={"command": "echo hi"}, description="say hi")
        restored = Action.from_dict(action.to_dict())
        assert restored == action

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            Action.from_dict({"type": "teleport"})


class TestActionExecutor:
    def test_log_action(self):
        executor = ActionExecutor()
        action = Action(ActionType.LOG, {"message": "winked"})
        assert asyncio.run(executor.execute(action, {"gesture": "right_wink"})) is True

    def test_empty_params_fail(self):
        executor = ActionExecutor()
        for kind in (ActionType.KEYBOARD, ActionType.SHELL, ActionType.WEBHOOK):
            assert asyncio.run(executor.execute(Action(kind))) is False

    def test_shell_exit_code(self):
        executor = ActionExecutor()
        ok = Action(ActionType.SHELL, {"command": "exit 0"})
        bad = Action(ActionType.SHELL, {"command": "exit 3"})
        assert asyncio.run(executor.execute(ok)) is True
        assert asyncio.run(executor.execute(bad)) is False

    def test_shell_timeout(self):
        executor = ActionExecutor()
        slow = Action(ActionType.SHELL, {"command": "sleep 5", "timeout": 0.05})
        assert asyncio.run(executor.execute(slow)) is False


class TestActionMapper:
    def test_on_gesture_runs_mapped_actions(self):
        mapper = ActionMapper()
        mapper.add_mapping(GestureMapping(GestureKind.RIGHT_WINK, [
            Action(ActionType.LOG, {"message": "next"}),
            Action(ActionType.SHELL, {"command": "exit 1"}),
        ]))
        assert asyncio.run(mapper.on_gesture(make_event())) == [True, False]

    def test_unmapped_and_disabled(self):
        mapper = ActionMapper()
        mapper.add_mapping(GestureMapping(
            GestureKind.HAND_PINCH, [Action(ActionType.LOG)], enabled=False,
        ))
        assert asyncio.run(mapper.on_gesture(make_event())) == []
        assert asyncio.run(mapper.on_gesture(make_event(GestureKind.HAND_PINCH))) == []

    def test_defaults(self):
        mapper = ActionMapper.with_defaults()
        assert set(mapper.triggers) == set(GestureKind)
        assert mapper.get_mapping(GestureKind.RIGHT_WINK).actions[0].params["keys"] == "XF86AudioNext"
        assert mapper.get_mapping(GestureKind.LEFT_WINK).actions[0].params["keys"] == "XF86AudioPrev"
        assert mapper.get_mapping(GestureKind.LONG_BLINK).actions[0].type == ActionType.LOG

    def test_yaml_roundtrip(self, tmp_path):
        path = tmp_path / "actions.yml"
        ActionMapper.with_defaults().to_yaml(path)

        data = yaml.safe_load(path.read_text())
        assert len(data["mappings"]) == 7

        mapper = ActionMapper.from_yaml(path)
        assert mapper.get_mapping(GestureKind.SLOW_BLINK).actions[0].params["keys"] == "XF86AudioPlay"

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "actions.yml"
        path.write_text(yaml.dump({"mappings": [{
            "trigger": "hand_swipe_left",
            "enabled": False,
            "actions": [{"type": "shell", "params": {"command": "playerctl previous"}}],
        }]}))

        mapping = ActionMapper.from_yaml(path).get_mapping(GestureKind.HAND_SWIPE_LEFT)
        assert not mapping.enabled
        assert mapping.actions[0].params["command"] == "playerctl previous"

    def test_close_without_session(self):
        asyncio.run(ActionMapper().close())
