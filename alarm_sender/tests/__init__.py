"""
Alarm Sender Test Suite
=======================

Tests de invariantes críticos del envío one-shot.

Philosophy:
- Focus on invariants (properties that must always be true)
- Mock-based: paho-mqtt y pika mockeados, no requiere broker real
- NOT 100% coverage - only key behaviors

Modules:
- test_config_validation: SenderConfig, presets, credenciales de entorno
- test_message: OutboundMessage
- test_alarm_publisher: formatos de payload de alarma
- test_mqtt_transport: MQTTTransport (connect/publish/disconnect)
- test_amqp_transport: AMQPTransport
- test_publish_once: flujo completo y liberación de la conexión
- test_cli: línea de comandos y exit codes
- test_logging: JSON logging y trace context
"""
