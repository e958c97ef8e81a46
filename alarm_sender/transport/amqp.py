"""
AMQP Transport
==============

Transport AMQP 0-9-1 (RabbitMQ) sobre pika BlockingConnection.

- Default exchange ("") con routing key = nombre de la queue
- Sin declaración de queue salvo declare_queue=True (durable)
- Reintentos de conexión de la librería (connection_attempts/retry_delay)
"""
import logging
from typing import Optional

import pika
from pika.exceptions import (
    AMQPConnectionError,
    AMQPError,
    AuthenticationError,
    ProbableAccessDeniedError,
    ProbableAuthenticationError,
)

from ..config.schemas import BrokerSettings
from ..errors import AuthFailure, ConnectFailure, PublishFailure
from ..logging import log_broker_publish
from .base import BrokerTransport
from .message import OutboundMessage

logger = logging.getLogger(__name__)

DEFAULT_EXCHANGE = ""

AUTH_ERRORS = (
    AuthenticationError,
    ProbableAuthenticationError,
    ProbableAccessDeniedError,
)

CONNECTION_ATTEMPTS = 3
RETRY_DELAY = 1.0


class AMQPTransport(BrokerTransport):
    """
    Conexión AMQP one-shot (connection + channel).

    Usage:
        with AMQPTransport(settings) as transport:
            transport.publish(OutboundMessage.from_text("Alarm", "Alarm TLF!"))
    """

    protocol = "amqp"

    def __init__(self, settings: BrokerSettings, declare_queue: bool = False):
        super().__init__(settings)
        self.declare_queue = declare_queue
        self.parameters = self._build_parameters(settings)

        self._connection: Optional[pika.BlockingConnection] = None
        self._channel = None

    @staticmethod
    def _build_parameters(settings: BrokerSettings) -> pika.ConnectionParameters:
        kwargs = {
            "host": settings.host,
            "port": settings.port,
            "virtual_host": settings.virtual_host,
            "heartbeat": settings.keepalive,
            "socket_timeout": settings.connect_timeout,
            "stack_timeout": settings.connect_timeout,
            "blocked_connection_timeout": settings.connect_timeout,
            "connection_attempts": CONNECTION_ATTEMPTS if settings.auto_reconnect else 1,
            "retry_delay": RETRY_DELAY,
            "client_properties": {"connection_name": settings.client_id},
        }
        if settings.username:
            kwargs["credentials"] = pika.PlainCredentials(
                settings.username, settings.password or ""
            )
        return pika.ConnectionParameters(**kwargs)

    @property
    def is_connected(self) -> bool:
        return (
            self._connection is not None
            and self._connection.is_open
            and self._channel is not None
            and self._channel.is_open
        )

    def connect(self) -> None:
        logger.info(
            f"🔌 Conectando a {self.broker_address}",
            extra={
                "component": "amqp_transport",
                "event": "connecting",
                "broker_host": self.settings.host,
                "broker_port": self.settings.port,
                "virtual_host": self.settings.virtual_host,
                "authenticated": bool(self.settings.username),
                "timeout": self.settings.connect_timeout,
            }
        )

        try:
            self._connection = pika.BlockingConnection(self.parameters)
            self._channel = self._connection.channel()
        except AUTH_ERRORS as e:
            self.disconnect()
            raise AuthFailure(
                f"Broker {self.broker_address} rejected credentials: {e!r}",
                cause=e,
                broker=self.broker_address,
            ) from e
        except (AMQPError, OSError) as e:
            self.disconnect()
            raise ConnectFailure(
                f"Cannot connect to {self.broker_address}: {e!r}",
                cause=e,
                broker=self.broker_address,
            ) from e

        logger.info(
            "✅ Conectado a broker AMQP",
            extra={
                "component": "amqp_transport",
                "event": "connected",
                "broker_host": self.settings.host,
                "broker_port": self.settings.port,
            }
        )

    def publish(self, message: OutboundMessage) -> None:
        if not self.is_connected:
            raise PublishFailure(
                f"Not connected to {self.broker_address}",
                broker=self.broker_address,
                destination=message.destination,
            )

        try:
            if self.declare_queue:
                self._channel.queue_declare(queue=message.destination, durable=True)

            self._channel.basic_publish(
                exchange=DEFAULT_EXCHANGE,
                routing_key=message.destination,
                body=message.payload,
            )
        except AMQPError as e:
            log_broker_publish(
                logger,
                protocol=self.protocol,
                destination=message.destination,
                payload_size=message.size,
                success=False,
                component="amqp_transport",
            )
            raise PublishFailure(
                f"Publish to queue {message.destination} failed: {e!r}",
                cause=e,
                broker=self.broker_address,
                destination=message.destination,
            ) from e

        log_broker_publish(
            logger,
            protocol=self.protocol,
            destination=message.destination,
            payload_size=message.size,
            component="amqp_transport",
        )

    def disconnect(self) -> None:
        channel, connection = self._channel, self._connection
        self._channel = None
        self._connection = None
        if channel is None and connection is None:
            return

        if channel is not None and channel.is_open:
            try:
                channel.close()
            except AMQPError as e:
                logger.warning(
                    f"⚠️ Error cerrando channel: {e!r}",
                    extra={"component": "amqp_transport", "event": "channel_close_error"}
                )

        if connection is not None and connection.is_open:
            connection.close()

        logger.info(
            f"🔌 Desconectado de {self.broker_address}",
            extra={
                "component": "amqp_transport",
                "event": "disconnected",
                "broker_host": self.settings.host,
                "broker_port": self.settings.port,
            }
        )
