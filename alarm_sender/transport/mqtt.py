"""
MQTT Transport
==============

Transport MQTT sobre paho-mqtt (callback API v2).

- MQTT 3.1.1 por defecto (5 opcional), clean session / clean start
- Auto-reconnect de la librería vía network loop (loop_start)
- connect() bloquea hasta CONNACK o connect_timeout
- publish() con QoS >= 1 espera el ACK del broker (PUBACK/PUBCOMP)
"""
import logging
from threading import Event
from typing import Optional

import paho.mqtt.client as mqtt

from ..config.schemas import BrokerSettings
from ..errors import AuthFailure, ConnectFailure, PublishFailure
from ..logging import log_broker_publish, log_error_with_context
from .base import BrokerTransport
from .message import OutboundMessage

logger = logging.getLogger(__name__)

# CONNACK: 4/5 en MQTT 3.1.1, 134/135 como reason codes (MQTT 5 y paho v2)
AUTH_REASON_CODES = frozenset({4, 5, 134, 135})

RECONNECT_MIN_DELAY = 1


def _reason_value(reason_code) -> int:
    """ReasonCode de paho (o int) -> int"""
    return int(getattr(reason_code, "value", reason_code))


class MQTTTransport(BrokerTransport):
    """
    Conexión MQTT one-shot.

    Usage:
        with MQTTTransport(settings) as transport:
            transport.publish(message)
    """

    protocol = "mqtt"

    def __init__(self, settings: BrokerSettings):
        super().__init__(settings)

        self._is_v5 = settings.mqtt_version == '5'
        client_kwargs = {
            "client_id": settings.client_id,
            "protocol": mqtt.MQTTv5 if self._is_v5 else mqtt.MQTTv311,
        }
        if not self._is_v5:
            client_kwargs["clean_session"] = settings.clean_session

        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, **client_kwargs)
        self.client.connect_timeout = settings.connect_timeout

        if settings.username:
            self.client.username_pw_set(settings.username, settings.password)

        if settings.auto_reconnect:
            self.client.reconnect_delay_set(
                min_delay=RECONNECT_MIN_DELAY,
                max_delay=max(RECONNECT_MIN_DELAY, int(settings.connect_timeout)),
            )

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        self._connected = Event()
        self._connack = Event()
        self._connack_rc: Optional[int] = None
        self._connack_reason: Optional[str] = None
        self._open = False
        self._closing = False

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback CONNACK (éxito o rechazo)"""
        rc = _reason_value(reason_code)
        self._connack_rc = rc
        self._connack_reason = str(reason_code)
        if rc == 0:
            logger.info(
                "✅ Conectado a broker MQTT",
                extra={
                    "component": "mqtt_transport",
                    "event": "connected",
                    "broker_host": self.settings.host,
                    "broker_port": self.settings.port,
                    "client_id": self.settings.client_id,
                }
            )
            self._connected.set()
        else:
            logger.error(
                f"❌ Broker MQTT rechazó la conexión: {reason_code}",
                extra={
                    "component": "mqtt_transport",
                    "event": "connection_refused",
                    "broker_host": self.settings.host,
                    "broker_port": self.settings.port,
                    "return_code": rc,
                }
            )
        self._connack.set()

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        """Callback cuando se desconecta del broker"""
        self._connected.clear()
        if self._closing:
            return
        logger.warning(
            "⚠️ Desconectado del broker MQTT",
            extra={
                "component": "mqtt_transport",
                "event": "disconnected",
                "return_code": _reason_value(reason_code),
            }
        )

    def connect(self) -> None:
        timeout = self.settings.connect_timeout
        logger.info(
            f"🔌 Conectando a {self.broker_address}",
            extra={
                "component": "mqtt_transport",
                "event": "connecting",
                "broker_host": self.settings.host,
                "broker_port": self.settings.port,
                "mqtt_version": self.settings.mqtt_version,
                "authenticated": bool(self.settings.username),
                "timeout": timeout,
            }
        )

        connect_kwargs = {"keepalive": self.settings.keepalive}
        if self._is_v5:
            connect_kwargs["clean_start"] = self.settings.clean_session

        self._open = True
        try:
            self.client.connect(self.settings.host, self.settings.port, **connect_kwargs)
        except (OSError, ValueError) as e:
            self.disconnect()
            raise ConnectFailure(
                f"Cannot connect to {self.broker_address}: {e}",
                cause=e,
                broker=self.broker_address,
            ) from e

        self.client.loop_start()

        if not self._connack.wait(timeout=timeout):
            self.disconnect()
            raise ConnectFailure(
                f"No CONNACK from {self.broker_address} within {timeout}s",
                broker=self.broker_address,
            )

        if not self._connected.is_set():
            rc = self._connack_rc
            self.disconnect()
            reason = f"{self._connack_reason} (rc={rc})"
            if rc in AUTH_REASON_CODES:
                raise AuthFailure(
                    f"Broker {self.broker_address} rejected credentials: {reason}",
                    broker=self.broker_address,
                )
            raise ConnectFailure(
                f"Broker {self.broker_address} refused connection: {reason}",
                broker=self.broker_address,
            )

    def publish(self, message: OutboundMessage) -> None:
        qos = message.qos if message.qos is not None else 0

        if not self._connected.is_set():
            raise PublishFailure(
                f"Not connected to {self.broker_address}",
                broker=self.broker_address,
                destination=message.destination,
            )

        try:
            info = self.client.publish(
                message.destination,
                message.payload,
                qos=qos,
                retain=message.retained,
            )
        except ValueError as e:
            # topic inválido, payload demasiado grande, etc.
            raise PublishFailure(
                f"Invalid publish to {message.destination}: {e}",
                cause=e,
                broker=self.broker_address,
                destination=message.destination,
            ) from e

        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            log_broker_publish(
                logger,
                protocol=self.protocol,
                destination=message.destination,
                payload_size=message.size,
                qos=qos,
                retained=message.retained,
                success=False,
                error_code=int(info.rc),
                component="mqtt_transport",
            )
            raise PublishFailure(
                f"Publish to {message.destination} failed: {mqtt.error_string(info.rc)}",
                broker=self.broker_address,
                destination=message.destination,
            )

        # QoS 0: retorna al escribir en el socket; QoS 1/2: espera ACK del broker
        try:
            info.wait_for_publish(timeout=self.settings.connect_timeout)
            published = info.is_published()
        except (RuntimeError, ValueError) as e:
            raise PublishFailure(
                f"Publish to {message.destination} not completed: {e}",
                cause=e,
                broker=self.broker_address,
                destination=message.destination,
            ) from e

        if not published:
            raise PublishFailure(
                f"Publish to {message.destination} not acknowledged within "
                f"{self.settings.connect_timeout}s (qos={qos})",
                broker=self.broker_address,
                destination=message.destination,
            )

        log_broker_publish(
            logger,
            protocol=self.protocol,
            destination=message.destination,
            payload_size=message.size,
            qos=qos,
            retained=message.retained,
            component="mqtt_transport",
        )

    def disconnect(self) -> None:
        if not self._open:
            return
        self._open = False
        self._closing = True

        try:
            # Sin CONNACK el socket TCP puede seguir abierto
            if self._connected.is_set() or self.client.socket() is not None:
                self.client.disconnect()
        except Exception as e:
            log_error_with_context(
                logger,
                message="❌ Error enviando DISCONNECT",
                exception=e,
                component="mqtt_transport",
                event="disconnect_error",
                broker_host=self.settings.host,
            )
        finally:
            self.client.loop_stop()
            self._connected.clear()
            sock = self.client.socket()
            if sock is not None:
                # DISCONNECT encolado pero no escrito por el network loop
                sock.close()

        logger.info(
            f"🔌 Desconectado de {self.broker_address}",
            extra={
                "component": "mqtt_transport",
                "event": "disconnected",
                "broker_host": self.settings.host,
                "broker_port": self.settings.port,
            }
        )
