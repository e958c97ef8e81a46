"""
Alarm Sender - One-Shot MQTT / AMQP Publisher
==============================================

Publica un único mensaje de alarma en un broker (MQTT o RabbitMQ/AMQP),
loguea el resultado y termina.

Public API:
- SenderConfig: Configuración (presets, YAML, entorno)
- publish_once: connect -> publish -> disconnect
- PublishResult: resultado (ok / ConnectFailure / AuthFailure / PublishFailure)
- MQTTTransport / AMQPTransport: transports de broker

Usage:
    # CLI
    python -m alarm_sender mqtt-alarm

    # Programmatically
    from alarm_sender import SenderConfig, publish_once

    config = SenderConfig.from_preset("amqp-alarm")
    result = publish_once(config)
"""

__version__ = "1.0.0"

from .config import SenderConfig
from .errors import PublishError, ConnectFailure, AuthFailure, PublishFailure
from .transport import OutboundMessage, MQTTTransport, AMQPTransport
from .app import PublishResult, publish_once, main

__all__ = [
    # Config
    "SenderConfig",
    # Errors
    "PublishError",
    "ConnectFailure",
    "AuthFailure",
    "PublishFailure",
    # Transports
    "OutboundMessage",
    "MQTTTransport",
    "AMQPTransport",
    # App
    "PublishResult",
    "publish_once",
    "main",
]
