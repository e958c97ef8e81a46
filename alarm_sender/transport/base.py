"""
Broker Transport (base)
=======================

Interfaz común de las transports MQTT y AMQP.

Responsabilidad: Infraestructura de broker
- connect / publish / disconnect
- Scoped resource: ``with transport:`` conecta y SIEMPRE desconecta,
  tanto si el envío funciona como si lanza excepción

Diseño:
- Transport = infraestructura (broker)
- Publishers = lógica de negocio (formateo de payloads)
"""
import logging
from abc import ABC, abstractmethod

from ..config.schemas import BrokerSettings
from .message import OutboundMessage

logger = logging.getLogger(__name__)


class BrokerTransport(ABC):
    """
    Conexión única a un broker.

    Estados: Disconnected (inicial) -> Connected -> Disconnected.

    Usage:
        with MQTTTransport(settings) as transport:
            transport.publish(OutboundMessage.from_text("JF/Alarm", "Alarm TLF!", qos=1))
    """

    protocol = "unknown"

    def __init__(self, settings: BrokerSettings):
        self.settings = settings

    @property
    def broker_address(self) -> str:
        return f"{self.protocol}://{self.settings.host}:{self.settings.port}"

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """True mientras la conexión está establecida."""

    @abstractmethod
    def connect(self) -> None:
        """
        Conecta al broker (bloquea hasta connect_timeout).

        Raises:
            ConnectFailure: broker inalcanzable / timeout / rechazo
            AuthFailure: credenciales rechazadas
        """

    @abstractmethod
    def publish(self, message: OutboundMessage) -> None:
        """
        Publica un mensaje en la conexión establecida.

        Raises:
            PublishFailure: el broker no aceptó el mensaje
        """

    @abstractmethod
    def disconnect(self) -> None:
        """Libera la conexión. Idempotente."""

    def __enter__(self) -> 'BrokerTransport':
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            self.disconnect()
        except Exception as e:
            # Un fallo al desconectar no debe tapar la excepción original
            if exc is None:
                raise
            logger.warning(
                f"⚠️ Error desconectando {self.broker_address}: {e}",
                extra={
                    "component": "transport",
                    "event": "disconnect_error",
                    "protocol": self.protocol,
                }
            )
        return False

    def __repr__(self) -> str:
        state = "connected" if self.is_connected else "disconnected"
        return f"{type(self).__name__}({self.broker_address}, {state})"
