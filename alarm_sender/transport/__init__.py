"""
Transports - conexión one-shot a brokers MQTT / AMQP
"""
from .message import OutboundMessage
from .base import BrokerTransport
from .mqtt import MQTTTransport
from .amqp import AMQPTransport
from .registry import TransportRegistry, ProtocolNotAvailableError, default_registry

__all__ = [
    "OutboundMessage",
    "BrokerTransport",
    "MQTTTransport",
    "AMQPTransport",
    "TransportRegistry",
    "ProtocolNotAvailableError",
    "default_registry",
]
