"""
Publish Errors
==============

Taxonomía cerrada de fallos de un envío one-shot.

- ConnectFailure: broker inalcanzable, conexión rechazada o timeout
- AuthFailure: credenciales rechazadas por el broker
- PublishFailure: el broker no aceptó/confirmó el mensaje

Las transports envuelven las excepciones de paho-mqtt / pika en estas
clases (``raise ... from exc``); ``publish_once`` las convierte en un
``PublishResult``.
"""
from typing import Optional


class PublishError(Exception):
    """Fallo de un envío. Guarda la causa original de la librería."""

    kind = "publish_error"

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        broker: Optional[str] = None,
        destination: Optional[str] = None,
    ):
        super().__init__(message)
        self.cause = cause
        self.broker = broker
        self.destination = destination

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "message": str(self),
            "broker": self.broker,
            "destination": self.destination,
            "cause": repr(self.cause) if self.cause is not None else None,
        }


class ConnectFailure(PublishError):
    """No se pudo establecer la conexión con el broker."""

    kind = "connect_failure"


class AuthFailure(PublishError):
    """El broker rechazó usuario/contraseña."""

    kind = "auth_failure"


class PublishFailure(PublishError):
    """Conectado, pero el mensaje no fue aceptado por el broker."""

    kind = "publish_failure"


__all__ = [
    "PublishError",
    "ConnectFailure",
    "AuthFailure",
    "PublishFailure",
]
