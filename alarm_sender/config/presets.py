"""
Presets
=======

Configuraciones listas para los tres emisores originales:

- amqp-alarm: RabbitMQ, queue "Alarm", payload "Alarm TLF!"
- mqtt-alarm: MQTT con usuario alarm/alarm, payload de alarma delimitado con ###
- mqtt-hello: MQTT sin credenciales, payload de prueba
"""
import copy
from typing import Any, Dict, List

DEFAULT_PRESET = "mqtt-alarm"

ALARM_DELIMITER = "###"

PRESETS: Dict[str, Dict[str, Any]] = {
    "amqp-alarm": {
        "broker": {
            "protocol": "amqp",
            "host": "localhost",
            "port": 5672,
            "username": "user",
            "password": "password",
        },
        "message": {
            "destination": "Alarm",
            "payload": "Alarm TLF!",
        },
    },
    "mqtt-alarm": {
        "broker": {
            "protocol": "mqtt",
            "host": "localhost",
            "port": 1883,
            "username": "alarm",
            "password": "alarm",
            "client_id": "JavaPublisher",
        },
        "message": {
            "destination": "JF/Alarm",
            "payload": ALARM_DELIMITER.join([
                "Brand 3",
                "Hauptstrasse 12, 66346 Püttlingen (Köllerbach)",
                "Keine Person in Wohnung",
            ]),
            "qos": 1,
            "retained": False,
        },
    },
    "mqtt-hello": {
        "broker": {
            "protocol": "mqtt",
            "host": "localhost",
            "port": 1883,
            "client_id": "JavaPublisher",
        },
        "message": {
            "destination": "JF/Alarm",
            "payload": "Hallo vom Java-MQTT-Client!",
            "qos": 1,
            "retained": False,
        },
    },
}


def get_preset(name: str) -> Dict[str, Any]:
    """Copia (deep) del preset; KeyError con los disponibles si no existe."""
    if name not in PRESETS:
        available = ', '.join(available_presets())
        raise KeyError(f"Preset '{name}' not available. Available presets: {available}")
    return copy.deepcopy(PRESETS[name])


def available_presets() -> List[str]:
    return sorted(PRESETS)
