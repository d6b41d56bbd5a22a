"""Gesture-to-action mapping.

Maps gesture kinds to actions:
- Keyboard shortcuts and media keys (via xdotool)
- Shell commands
- HTTP webhooks
- Log lines

The default mapping is hands-free media control: right wink or swipe right
skips forward, left wink or swipe left goes back, slow blink or pinch
toggles play/pause, long blink marks the current track.

Configuration via YAML file.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import aiohttp
import yaml

from gesture_eye.events import GestureEvent, GestureKind

logger = logging.getLogger("gesture_eye.actions")


class ActionType(Enum):
    KEYBOARD = "keyboard"
    SHELL = "shell"
    WEBHOOK = "webhook"
    LOG = "log"


@dataclass
class Action:
    """A single action to execute when a gesture fires."""
    type: ActionType
    params: dict[str, Any] = field(default_factory=dict)
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "params": self.params,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Action:
        return cls(
            type=ActionType(data["type"]),
            params=data.get("params", {}),
            description=data.get("description", ""),
        )


@dataclass
class GestureMapping:
    """Maps one gesture kind to one or more actions."""
    trigger: GestureKind
    actions: list[Action]
    enabled: bool = True


class ActionExecutor:
    """Executes actions. Failures are logged and reported as False, never raised."""

    def __init__(self):
        self._http_session: Optional[aiohttp.ClientSession] = None

    async def execute(self, action: Action, context: dict | None = None) -> bool:
        try:
            if action.type == ActionType.KEYBOARD:
                return await self._exec_keyboard(action.params)
            elif action.type == ActionType.SHELL:
                return await self._exec_shell(action.params)
            elif action.type == ActionType.WEBHOOK:
                return await self._exec_webhook(action.params, context)
            elif action.type == ActionType.LOG:
                logger.info(
                    "Action LOG: %s (context: %s)",
                    action.params.get("message", "gesture triggered"),
                    context,
                )
                return True
        except Exception as e:
            logger.warning("Action %s failed: %s", action.type.value, e)
            return False

        return False

    async def _exec_keyboard(self, params: dict) -> bool:
        keys = params.get("keys", "")
        if not keys:
            return False

        proc = await asyncio.create_subprocess_exec(
            "xdotool", "key", keys,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await proc.communicate()
        if proc.returncode != 0:
            logger.warning("xdotool failed: %s", stderr.decode().strip())
            return False
        return True

    async def _exec_shell(self, params: dict) -> bool:
        command = params.get("command", "")
        if not command:
            return False

        timeout = params.get("timeout", 10)
        proc = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.warning("Shell command timed out: %s", command)
            return False
        logger.debug("Shell [%s] -> rc=%d", command, proc.returncode)
        return proc.returncode == 0

    async def _exec_webhook(self, params: dict, context: dict | None) -> bool:
        url = params.get("url", "")
        if not url:
            return False

        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()

        payload = {**(params.get("body", {})), "context": context or {}}
        headers = params.get("headers", {"Content-Type": "application/json"})

        async with self._http_session.post(
            url, json=payload, headers=headers,
            timeout=aiohttp.ClientTimeout(total=params.get("timeout", 5)),
        ) as resp:
            return 200 <= resp.status < 300

    async def close(self):
        if self._http_session:
            await self._http_session.close()
            self._http_session = None


class ActionMapper:
    """Holds gesture-to-action mappings and runs them for each event.

    Load mappings from YAML:
        mapper = ActionMapper.from_yaml("actions.yml")

    Dispatch an event:
        await mapper.on_gesture(event)
    """

    def __init__(self):
        self._mappings: dict[GestureKind, GestureMapping] = {}
        self._executor = ActionExecutor()

    def add_mapping(self, mapping: GestureMapping):
        self._mappings[mapping.trigger] = mapping

    def get_mapping(self, kind: GestureKind) -> Optional[GestureMapping]:
        return self._mappings.get(kind)

    async def on_gesture(self, event: GestureEvent) -> list[bool]:
        """Run every action mapped to the event's kind. Returns per-action success."""
        mapping = self._mappings.get(event.kind)
        if not mapping or not mapping.enabled:
            return []

        ctx = {
            "gesture": event.kind.value,
            "timestamp": event.timestamp,
            "sequence": event.sequence,
        }
        results = []
        for action in mapping.actions:
            results.append(await self._executor.execute(action, ctx))
        return results

    @classmethod
    def from_yaml(cls, path: str | Path) -> ActionMapper:
        with open(path) as f:
            config = yaml.safe_load(f) or {}

        mapper = cls()
        for entry in config.get("mappings", []):
            mapper.add_mapping(GestureMapping(
                trigger=GestureKind(entry["trigger"]),
                actions=[Action.from_dict(a) for a in entry.get("actions", [])],
                enabled=entry.get("enabled", True),
            ))
        return mapper

    def to_yaml(self, path: str | Path):
        entries = []
        for mapping in self._mappings.values():
            entries.append({
                "trigger": mapping.trigger.value,
                "enabled": mapping.enabled,
                "actions": [a.to_dict() for a in mapping.actions],
            })

        with open(path, "w") as f:
            yaml.dump({"mappings": entries}, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def with_defaults(cls) -> ActionMapper:
        """Media control through the XF86 media keys."""
        mapper = cls()

        def media_key(keys: str, description: str) -> Action:
            return Action(ActionType.KEYBOARD, {"keys": keys}, description)

        next_track = media_key("XF86AudioNext", "Next track")
        prev_track = media_key("XF86AudioPrev", "Previous track")
        play_pause = media_key("XF86AudioPlay", "Play/pause")

        for kind in (GestureKind.RIGHT_WINK, GestureKind.HAND_SWIPE_RIGHT):
            mapper.add_mapping(GestureMapping(kind, [next_track]))
        for kind in (GestureKind.LEFT_WINK, GestureKind.HAND_SWIPE_LEFT):
            mapper.add_mapping(GestureMapping(kind, [prev_track]))
        for kind in (GestureKind.SLOW_BLINK, GestureKind.HAND_PINCH):
            mapper.add_mapping(GestureMapping(kind, [play_pause]))
        mapper.add_mapping(GestureMapping(GestureKind.LONG_BLINK, [
            Action(ActionType.LOG, {"message": "loved current track"}, "Love track"),
        ]))
        return mapper

    async def close(self):
        await self._executor.close()

    @property
    def triggers(self) -> list[GestureKind]:
        return list(self._mappings.keys())
