"""
CLI Tests
=========

Invariantes testeadas:
1. Exit code 0 si el mensaje se publicó, 1 si falló
2. Flags pisan al preset / YAML
3. --keyword arma el payload de alarma (### o JSON)
4. Config inválida -> mensaje claro + exit 1 sin conectar
"""
import json
from unittest.mock import patch

import pytest

from alarm_sender.app import cli
from alarm_sender.app.sender import PublishResult
from alarm_sender.errors import ConnectFailure


def ok_result(config):
    return PublishResult(
        ok=True,
        protocol=config.broker.protocol,
        broker=f"{config.broker.protocol}://{config.broker.address}",
        destination=config.message.destination,
        payload=config.message.payload,
        trace_id="pub-test",
    )


def failed_result(config):
    return PublishResult(
        ok=False,
        protocol=config.broker.protocol,
        broker=f"{config.broker.protocol}://{config.broker.address}",
        destination=config.message.destination,
        payload=config.message.payload,
        trace_id="pub-test",
        error=ConnectFailure("Connection refused"),
    )


@pytest.fixture
def publish_once():
    with patch('alarm_sender.app.cli.publish_once', side_effect=ok_result) as mock_publish, \
            patch('alarm_sender.app.cli.setup_logging'), \
            patch('alarm_sender.app.cli.load_dotenv'):
        yield mock_publish


def sent_config(mock_publish):
    mock_publish.assert_called_once()
    return mock_publish.call_args.args[0]


@pytest.mark.unit
class TestCliPresets:

    def test_default_preset_is_mqtt_alarm(self, publish_once):
        assert cli.main([]) == 0

        config = sent_config(publish_once)
        assert config.broker.protocol == 'mqtt'
        assert config.broker.username == 'alarm'
        assert config.message.destination == 'JF/Alarm'

    def test_amqp_preset(self, publish_once):
        assert cli.main(['amqp-alarm']) == 0

        config = sent_config(publish_once)
        assert config.broker.protocol == 'amqp'
        assert config.message.destination == 'Alarm'
        assert config.message.payload == 'Alarm TLF!'

    def test_unknown_preset_exits(self, publish_once):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(['kafka-alarm'])

        assert exc_info.value.code == 2
        publish_once.assert_not_called()

    def test_list_presets(self, publish_once, capsys):
        assert cli.main(['--list-presets']) == 0

        out = capsys.readouterr().out
        assert 'amqp-alarm' in out
        assert 'mqtt-hello' in out
        publish_once.assert_not_called()


@pytest.mark.unit
class TestCliOverrides:

    def test_broker_and_message_overrides(self, publish_once):
        cli.main([
            'mqtt-hello',
            '--host', 'broker.lan',
            '--port', '1884',
            '--destination', 'JF/Test',
            '--payload', 'Probealarm',
            '--qos', '0',
            '--retain',
            '--timeout', '2.5',
        ])

        config = sent_config(publish_once)
        assert config.broker.address == 'broker.lan:1884'
        assert config.broker.connect_timeout == 2.5
        assert config.message.destination == 'JF/Test'
        assert config.message.payload == 'Probealarm'
        assert config.message.qos == 0
        assert config.message.retained is True

    def test_preset_values_kept_without_flags(self, publish_once):
        cli.main(['mqtt-alarm'])

        config = sent_config(publish_once)
        assert config.message.retained is False
        assert config.message.qos == 1

    def test_credentials_flags(self, publish_once):
        cli.main(['mqtt-hello', '--username', 'alarm', '--password', 'alarm'])

        config = sent_config(publish_once)
        assert config.broker.username == 'alarm'
        assert config.broker.password == 'alarm'

    def test_env_credentials(self, publish_once, monkeypatch):
        monkeypatch.setenv('MQTT_USERNAME', 'leitstelle')
        monkeypatch.setenv('MQTT_PASSWORD', 'geheim')

        cli.main(['mqtt-hello'])

        config = sent_config(publish_once)
        assert config.broker.username == 'leitstelle'

    def test_no_env_flag(self, publish_once, monkeypatch):
        monkeypatch.setenv('MQTT_USERNAME', 'leitstelle')

        cli.main(['mqtt-hello', '--no-env'])

        assert sent_config(publish_once).broker.username is None

    def test_protocol_switch_uses_protocol_port(self, publish_once):
        cli.main(['mqtt-hello', '--protocol', 'amqp', '--destination', 'Alarm'])

        config = sent_config(publish_once)
        assert config.broker.protocol == 'amqp'
        assert config.broker.port == 5672

    def test_config_file(self, publish_once, tmp_path):
        config_file = tmp_path / 'config.yaml'
        config_file.write_text(
            "broker:\n  protocol: amqp\n  host: rabbit\n"
            "message:\n  destination: Alarm\n  payload: Alarm TLF!\n",
            encoding='utf-8',
        )

        assert cli.main(['--config', str(config_file)]) == 0

        config = sent_config(publish_once)
        assert config.broker.address == 'rabbit:5672'


@pytest.mark.unit
class TestCliProtocolSwitch:
    """--protocol: credenciales y puerto del protocolo final"""

    def test_switch_uses_env_credentials_of_new_protocol(self, publish_once, monkeypatch):
        """
        Invariante: mqtt-alarm --protocol amqp usa AMQP_*, no alarm/alarm del preset.
        """
        monkeypatch.setenv('AMQP_USERNAME', 'amqpuser')
        monkeypatch.setenv('AMQP_PASSWORD', 'amqppass')
        monkeypatch.setenv('MQTT_USERNAME', 'mqttuser')

        cli.main(['mqtt-alarm', '--protocol', 'amqp', '--destination', 'Alarm'])

        config = sent_config(publish_once)
        assert config.broker.protocol == 'amqp'
        assert config.broker.port == 5672
        assert config.broker.username == 'amqpuser'
        assert config.broker.password == 'amqppass'

    def test_switch_drops_preset_credentials(self, publish_once):
        cli.main(['mqtt-alarm', '--protocol', 'amqp', '--destination', 'Alarm'])

        config = sent_config(publish_once)
        assert config.broker.username is None
        assert config.broker.password is None

    def test_flags_win_over_env_after_switch(self, publish_once, monkeypatch):
        """
        Invariante: flag > entorno > preset, también al cambiar de protocolo.
        """
        monkeypatch.setenv('AMQP_USERNAME', 'amqpuser')
        monkeypatch.setenv('AMQP_PASSWORD', 'amqppass')

        cli.main([
            'mqtt-alarm', '--protocol', 'amqp', '--destination', 'Alarm',
            '--username', 'cli', '--password', 'clipass',
        ])

        config = sent_config(publish_once)
        assert config.broker.username == 'cli'
        assert config.broker.password == 'clipass'

    def test_env_wins_over_preset_without_switch(self, publish_once, monkeypatch):
        monkeypatch.setenv('MQTT_USERNAME', 'leitstelle')
        monkeypatch.setenv('MQTT_PASSWORD', 'geheim')

        cli.main(['mqtt-alarm'])

        config = sent_config(publish_once)
        assert config.broker.username == 'leitstelle'
        assert config.broker.password == 'geheim'

    def test_list_protocols(self, publish_once, capsys):
        assert cli.main(['--list-protocols']) == 0

        out = capsys.readouterr().out
        assert 'paho-mqtt' in out
        assert 'pika' in out
        publish_once.assert_not_called()


@pytest.mark.unit
class TestCliAlarmPayload:

    def test_keyword_builds_delimited_payload(self, publish_once):
        cli.main([
            'mqtt-alarm',
            '--keyword', 'Brand 3',
            '--address', 'Hauptstrasse 12, 66346 Püttlingen (Köllerbach)',
            '--info', 'Keine Person in Wohnung',
        ])

        config = sent_config(publish_once)
        assert config.message.payload == (
            'Brand 3###Hauptstrasse 12, 66346 Püttlingen (Köllerbach)###Keine Person in Wohnung'
        )

    def test_keyword_json_payload(self, publish_once):
        cli.main(['mqtt-alarm', '--keyword', 'THL 1', '--info', 'Ölspur', '--json'])

        data = json.loads(sent_config(publish_once).message.payload)
        assert data['alarmstichwort'] == 'THL 1'
        assert data['info'] == 'Ölspur'
        assert 'sentAt' in data

    def test_payload_and_keyword_are_exclusive(self, publish_once):
        with pytest.raises(SystemExit):
            cli.main(['--payload', 'x', '--keyword', 'y'])

    def test_invalid_keyword_exits_1(self, publish_once, capsys):
        assert cli.main(['--keyword', 'Brand###3']) == 1

        assert 'Error loading config' in capsys.readouterr().out
        publish_once.assert_not_called()


@pytest.mark.unit
class TestCliExitCodes:

    def test_publish_failure_exits_1(self, publish_once, capsys):
        publish_once.side_effect = failed_result

        assert cli.main(['mqtt-alarm']) == 1

        err = capsys.readouterr().err
        assert 'connect_failure' in err
        assert 'Connection refused' in err

    def test_invalid_config_exits_1(self, publish_once, capsys):
        assert cli.main(['--port', '70000']) == 1

        out = capsys.readouterr().out
        assert 'Invalid configuration' in out
        assert 'port' in out
        publish_once.assert_not_called()

    def test_missing_config_file_exits_1(self, publish_once, tmp_path, capsys):
        assert cli.main(['--config', str(tmp_path / 'missing.yaml')]) == 1

        assert 'not found' in capsys.readouterr().out
        publish_once.assert_not_called()

    def test_malformed_yaml_exits_1(self, publish_once, tmp_path, capsys):
        config_file = tmp_path / 'config.yaml'
        config_file.write_text("broker: [unclosed\n", encoding='utf-8')

        assert cli.main(['--config', str(config_file)]) == 1

        assert 'Error loading config' in capsys.readouterr().out
        publish_once.assert_not_called()

    def test_yaml_without_mapping_exits_1(self, publish_once, tmp_path, capsys):
        config_file = tmp_path / 'config.yaml'
        config_file.write_text("- mqtt\n- amqp\n", encoding='utf-8')

        assert cli.main(['--config', str(config_file)]) == 1

        assert 'mapping' in capsys.readouterr().out
        publish_once.assert_not_called()

    def test_run_calls_sys_exit(self):
        with patch('alarm_sender.app.cli.main', return_value=1):
            with pytest.raises(SystemExit) as exc_info:
                cli.run()

        assert exc_info.value.code == 1
