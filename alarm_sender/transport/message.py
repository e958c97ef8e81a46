"""Outbound message: lo único que viaja al broker."""
from dataclasses import dataclass
from typing import Optional

QOS_LEVELS = (0, 1, 2)


@dataclass(frozen=True)
class OutboundMessage:
    """
    Mensaje a publicar (una sola vez, sin buffering).

    Attributes:
        destination: Topic (MQTT) o queue/routing key (AMQP)
        payload: Bytes opacos (texto UTF-8 en la práctica)
        qos: QoS MQTT (0/1/2) o None para AMQP
        retained: Retain flag MQTT
    """
    destination: str
    payload: bytes
    qos: Optional[int] = None
    retained: bool = False

    def __post_init__(self):
        if not self.destination:
            raise ValueError("destination must not be empty")
        if not isinstance(self.payload, (bytes, bytearray)):
            raise TypeError(f"payload must be bytes, got {type(self.payload).__name__}")
        if not self.payload:
            raise ValueError("payload must not be empty")
        if self.qos is not None and self.qos not in QOS_LEVELS:
            raise ValueError(f"qos must be one of {QOS_LEVELS}, got {self.qos}")

    @classmethod
    def from_text(
        cls,
        destination: str,
        text: str,
        qos: Optional[int] = None,
        retained: bool = False,
    ) -> 'OutboundMessage':
        return cls(destination, text.encode('utf-8'), qos=qos, retained=retained)

    @property
    def text(self) -> str:
        return self.payload.decode('utf-8', errors='replace')

    @property
    def size(self) -> int:
        return len(self.payload)
