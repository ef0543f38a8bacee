"""Client for the Centrifugo server HTTP API."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Optional, Union

import requests

JsonData = Union[bytes, bytearray, str, Any]


class CentrifugoError(Exception):
    """An error from the Centrifugo API or its transport."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        self.code = code
        self.message = message
        super().__init__(message if code is None else f"{code}: {message}")


@dataclass
class CentrifugeAction:
    """An action name and its payload, as published on a channel."""

    action: str
    payload: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Return the action as a JSON-ready dictionary."""
        return asdict(self)


def _raw_json(data: JsonData) -> Any:
    """Decode JSON given as bytes or text; other values pass through as-is."""
    if isinstance(data, (bytes, bytearray)):
        return json.loads(bytes(data).decode("utf-8"))
    if isinstance(data, str):
        return json.loads(data)
    return data


class Pipe:
    """A batch of commands sent to the server in one request."""

    def __init__(self) -> None:
        self.commands: list[dict[str, Any]] = []

    def __len__(self) -> int:
        return len(self.commands)

    def reset(self) -> None:
        """Drop all queued commands."""
        self.commands.clear()

    def _add(self, method: str, params: Optional[dict[str, Any]] = None) -> None:
        command: dict[str, Any] = {"method": method}
        if params is not None:
            command["params"] = params
        self.commands.append(command)

    def add_publish(self, channel: str, data: JsonData) -> None:
        self._add("publish", {"channel": channel, "data": _raw_json(data)})

    def add_broadcast(self, channels: list[str], data: JsonData) -> None:
        self._add("broadcast", {"channels": list(channels), "data": _raw_json(data)})

    def add_unsubscribe(self, channel: str, user: str) -> None:
        self._add("unsubscribe", {"channel": channel, "user": user})

    def add_disconnect(self, user: str) -> None:
        self._add("disconnect", {"user": user})

    def add_presence(self, channel: str) -> None:
        self._add("presence", {"channel": channel})

    def add_presence_stats(self, channel: str) -> None:
        self._add("presence_stats", {"channel": channel})

    def add_history(self, channel: str) -> None:
        self._add("history", {"channel": channel})

    def add_history_remove(self, channel: str) -> None:
        self._add("history_remove", {"channel": channel})

    def add_channels(self) -> None:
        self._add("channels")

    def add_info(self) -> None:
        self._add("info")


class CentrifugoClient:
    """Calls the Centrifugo API at <base_url>/api with an API key."""

    def __init__(self, base_url: str, api_key: str) -> None:
        self.address = f"{base_url}/api"
        self._api_key = api_key
        self._session: Any = requests.Session()

    def set_http_client(self, session: Any) -> None:
        """Use session (anything with a requests-style post) for requests."""
        self._session = session

    def pipe(self) -> Pipe:
        """Return a new, empty pipe."""
        return Pipe()

    def send_pipe(self, pipe: Pipe) -> list[dict[str, Any]]:
        """Send every command in pipe and return one reply per command."""
        if not pipe.commands:
            raise CentrifugoError("no commands in pipe")
        try:
            body = "".join(json.dumps(command) + "\n" for command in pipe.commands)
            response = self._session.post(
                self.address,
                data=body.encode("utf-8"),
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"apikey {self._api_key}",
                },
            )
            if response.status_code != 200:
                raise CentrifugoError(
                    f"wrong status code: {response.status_code}"
                )
            replies = [
                json.loads(line)
                for line in response.content.decode("utf-8").splitlines()
                if line.strip()
            ]
            if len(replies) != len(pipe.commands):
                raise CentrifugoError(
                    f"expected {len(pipe.commands)} replies, got {len(replies)}"
                )
            return replies
        finally:
            pipe.reset()

    def _call(self, pipe: Pipe) -> dict[str, Any]:
        reply = self.send_pipe(pipe)[0]
        error = reply.get("error")
        if error:
            raise CentrifugoError(error.get("message", ""), error.get("code"))
        return reply.get("result") or {}

    def _single(self, method: str, *args: Any) -> dict[str, Any]:
        pipe = Pipe()
        getattr(pipe, f"add_{method}")(*args)
        return self._call(pipe)

    def publish_data(self, channel: str, data: JsonData) -> dict[str, Any]:
        """Publish data to channel and return the publish result."""
        return self._single("publish", channel, data)

    def broadcast(self, channels: list[str], data: JsonData) -> dict[str, Any]:
        """Publish data to several channels at once."""
        return self._single("broadcast", channels, data)

    def channels(self) -> dict[str, Any]:
        """Return the active channels."""
        return self._single("channels")

    def disconnect(self, user: str) -> None:
        """Disconnect every connection of user."""
        self._single("disconnect", user)

    def history(self, channel: str) -> dict[str, Any]:
        """Return the publication history of channel."""
        return self._single("history", channel)

    def history_remove(self, channel: str) -> None:
        """Remove the publication history of channel."""
        self._single("history_remove", channel)

    def info_node(self) -> dict[str, Any]:
        """Return information about the running server nodes."""
        return self._single("info")

    def presence(self, channel: str) -> dict[str, Any]:
        """Return the clients present in channel."""
        return self._single("presence", channel)

    def presence_stats(self, channel: str) -> dict[str, Any]:
        """Return client and user counts for channel."""
        return self._single("presence_stats", channel)

    def unsubscribe(self, channel: str, user: str) -> None:
        """Unsubscribe user from channel."""
        self._single("unsubscribe", channel, user)