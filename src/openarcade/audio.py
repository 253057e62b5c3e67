"""Audio-trigger collaborators.

The engine never plays sound itself. When a key is struck it calls
``trigger(key_index)`` on whatever AudioTrigger it was given and moves on;
the receiver owns voice allocation and playback.

Built-in triggers:
- NullAudioTrigger: does nothing
- LogAudioTrigger: logs each note
- OscAudioTrigger: sends an OSC message to a synth (e.g. SuperCollider, Pd)
- CallbackAudioTrigger: forwards to a plain function
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from pythonosc.udp_client import SimpleUDPClient

from openarcade.keys import NOTE_LABELS

logger = logging.getLogger("openarcade.audio")

# C4 D4 E4 F4 G4 A4 B4
KEY_MIDI_NOTES = [60, 62, 64, 65, 67, 69, 71]


class AudioTrigger(Protocol):
    def trigger(self, key_index: int) -> None:
        ...


class NullAudioTrigger:
    def trigger(self, key_index: int) -> None:
        pass


class LogAudioTrigger:
    def __init__(self, level: int = logging.INFO):
        self.level = level

    def trigger(self, key_index: int) -> None:
        logger.log(self.level, "Play key %d (%s)", key_index, NOTE_LABELS[key_index])


class CallbackAudioTrigger:
    def __init__(self, callback: Callable[[int], None]):
        self._callback = callback

    def trigger(self, key_index: int) -> None:
        self._callback(key_index)


class OscAudioTrigger:
    """Sends ``<address> <key_index> <midi_note> <label>`` over UDP.

    UDP sends do not wait for the receiver, so this never stalls the
    frame loop.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 9000,
        address: str = "/openarcade/key",
        client: Optional[SimpleUDPClient] = None,
    ):
        self.host = host
        self.port = port
        self.address = address
        self._client = client or SimpleUDPClient(host, port)

    def trigger(self, key_index: int) -> None:
        try:
            self._client.send_message(
                self.address,
                [key_index, KEY_MIDI_NOTES[key_index], NOTE_LABELS[key_index]],
            )
        except OSError as e:
            logger.warning("OSC send to %s:%d failed: %s", self.host, self.port, e)


def audio_trigger_from_config(data: Optional[dict]) -> AudioTrigger:
    """Build a trigger from a config mapping like ``{"type": "osc", "port": 57120}``."""
    data = dict(data or {})
    kind = data.pop("type", "log")
    if kind == "none":
        return NullAudioTrigger()
    if kind == "log":
        return LogAudioTrigger()
    if kind == "osc":
        return OscAudioTrigger(
            host=data.get("host", "127.0.0.1"),
            port=int(data.get("port", 9000)),
            address=data.get("address", "/openarcade/key"),
        )
    raise ValueError(f"Unknown audio trigger type: {kind!r}")
