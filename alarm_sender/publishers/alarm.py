"""
Alarm Publisher
===============

Publisher especializado en formatear payloads de alarma.

Responsabilidad:
- Conoce la estructura de una alarma (stichwort, dirección, info)
- Formato delimitado "Brand 3###Hauptstrasse 12, ...###Keine Person in Wohnung"
- Formato JSON del frontend web (date, time, alarmstichwort, info, sentAt)

Diseño:
- Lógica de negocio separada de la infraestructura de broker
- NO conoce MQTT ni AMQP (eso es de las transports)
"""
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from ..config.presets import ALARM_DELIMITER


@dataclass
class AlarmMessage:
    """Alarma de la central (Alarmstichwort + dirección + info)."""
    keyword: str
    address: str = ""
    info: str = ""
    sent_at: datetime = field(default_factory=lambda: datetime.now().astimezone())

    def __post_init__(self):
        if not self.keyword.strip():
            raise ValueError("alarm keyword must not be empty")


class AlarmPublisher:
    """
    Publisher de alarmas.

    Formatea AlarmMessage en payloads de texto listos para publicar.
    """

    def __init__(self, delimiter: str = ALARM_DELIMITER):
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self.delimiter = delimiter
        self._message_count = 0

    @property
    def message_count(self) -> int:
        return self._message_count

    def format_delimited(self, alarm: AlarmMessage) -> str:
        """
        Formato "{keyword}###{address}###{info}".

        Campos vacíos se mantienen (siempre 3 campos).

        Raises:
            ValueError: Si algún campo contiene el delimitador
        """
        fields = [alarm.keyword, alarm.address, alarm.info]
        for value in fields:
            if self.delimiter in value:
                raise ValueError(
                    f"alarm field must not contain delimiter {self.delimiter!r}: {value!r}"
                )
        self._message_count += 1
        return self.delimiter.join(fields)

    def format_json(self, alarm: AlarmMessage) -> str:
        """Envelope JSON del frontend web (UTF-8 sin escapar)."""
        self._message_count += 1
        return json.dumps(self._build_envelope(alarm), ensure_ascii=False)

    def _build_envelope(self, alarm: AlarmMessage) -> Dict[str, Any]:
        sent_at = alarm.sent_at
        return {
            "date": sent_at.strftime("%Y-%m-%d"),
            "time": sent_at.strftime("%H:%M"),
            "alarmstichwort": alarm.keyword,
            "info": alarm.info,
            "address": alarm.address,
            "sentAt": sent_at.isoformat(),
        }

    def parse_delimited(self, payload: str) -> AlarmMessage:
        """Inverso de format_delimited (para verificación en tests/monitores)."""
        parts = payload.split(self.delimiter)
        if len(parts) != 3:
            raise ValueError(
                f"expected 3 fields separated by {self.delimiter!r}, got {len(parts)}"
            )
        keyword, address, info = parts
        return AlarmMessage(keyword=keyword, address=address, info=info)
