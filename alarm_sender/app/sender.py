"""
One-Shot Sender
===============

connect -> publish -> log -> disconnect, una sola vez.

- La conexión se libera en todos los caminos (éxito, fallo esperado,
  excepción inesperada) vía el context manager de la transport
- Los fallos del broker vuelven como PublishResult (tagged result)
- Sin retry a nivel aplicación y sin deduplicación: cada llamada es un
  mensaje nuevo
"""
import logging
from dataclasses import dataclass
from typing import Optional

from ..config.schemas import SenderConfig
from ..errors import PublishError
from ..logging import generate_trace_id, log_error_with_context, trace_context
from ..transport import OutboundMessage, TransportRegistry, default_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishResult:
    """Resultado de publish_once (ok o error de la taxonomía)."""
    ok: bool
    protocol: str
    broker: str
    destination: str
    payload: str
    trace_id: str
    error: Optional[PublishError] = None

    @property
    def kind(self) -> str:
        """ok | connect_failure | auth_failure | publish_failure"""
        return "ok" if self.ok else self.error.kind


def build_message(config: SenderConfig) -> OutboundMessage:
    """OutboundMessage desde la config (qos/retain solo aplican a MQTT)."""
    msg = config.message
    if config.broker.protocol == 'mqtt':
        return OutboundMessage.from_text(
            msg.destination, msg.payload, qos=msg.qos, retained=msg.retained
        )
    return OutboundMessage.from_text(msg.destination, msg.payload)


def publish_once(
    config: SenderConfig,
    registry: Optional[TransportRegistry] = None,
) -> PublishResult:
    """
    Publica exactamente un mensaje y cierra la conexión.

    Args:
        config: Configuración validada (broker + message)
        registry: Registry de transports (default: MQTT + AMQP)

    Returns:
        PublishResult con ok=True, o ok=False y error
        (ConnectFailure, AuthFailure, PublishFailure)

    Raises:
        ProtocolNotAvailableError: protocolo sin transport registrada
        Cualquier excepción no prevista (tras liberar la conexión)
    """
    registry = registry or default_registry()
    protocol = config.broker.protocol
    destination = config.message.destination
    payload = config.message.payload

    with trace_context(generate_trace_id(prefix=f"pub-{protocol}")) as trace_id:
        transport = registry.create(config)

        def result(error: Optional[PublishError] = None) -> PublishResult:
            return PublishResult(
                ok=error is None,
                protocol=protocol,
                broker=transport.broker_address,
                destination=destination,
                payload=payload,
                trace_id=trace_id,
                error=error,
            )

        try:
            with transport:
                message = build_message(config)
                transport.publish(message)
                logger.info(
                    f"📤 Mensaje enviado: '{message.text}'",
                    extra={
                        "component": "sender",
                        "event": "message_sent",
                        "protocol": protocol,
                        "destination": destination,
                        "qos": message.qos,
                        "retained": message.retained,
                        "payload_size_bytes": message.size,
                    }
                )
        except PublishError as e:
            log_error_with_context(
                logger,
                message=f"❌ Envío fallido ({e.kind})",
                exception=e,
                component="sender",
                event=e.kind,
                broker=transport.broker_address,
                destination=destination,
                error=e.to_dict(),
            )
            return result(e)

        logger.info(
            f"👋 Desconectado de {transport.broker_address}",
            extra={
                "component": "sender",
                "event": "sender_done",
                "protocol": protocol,
            }
        )
        return result()
