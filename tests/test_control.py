"""
Tests for the command registry and the MQTT control plane dispatch.
"""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from isotherm_control import (
    CommandNotAvailableError,
    CommandParameterError,
    CommandRegistry,
    MQTTControlPlane,
)


@pytest.mark.unit
class TestCommandRegistry:

    def test_execute_passes_payload_and_returns_result(self):
        registry = CommandRegistry()
        handler = MagicMock(return_value=True)
        registry.register('timeline_click', handler, "Click the track", params=('fraction',))

        result = registry.execute('timeline_click', {'command': 'timeline_click', 'fraction': 0.5})

        assert result is True
        handler.assert_called_once_with({'command': 'timeline_click', 'fraction': 0.5})

    def test_missing_parameter(self):
        registry = CommandRegistry()
        handler = MagicMock()
        registry.register('assign_source', handler, "Assign", params=('polygon_id', 'source_id'))

        with pytest.raises(CommandParameterError, match="source_id"):
            registry.execute('assign_source', {'polygon_id': 'p1'})
        handler.assert_not_called()

    def test_unknown_command(self):
        registry = CommandRegistry()
        registry.register('timeline_now', MagicMock(), "Now")

        with pytest.raises(CommandNotAvailableError, match="timeline_now"):
            registry.execute('timeline_later')

    def test_duplicate_registration(self):
        registry = CommandRegistry()
        registry.register('timeline_now', MagicMock(), "Now")

        with pytest.raises(ValueError):
            registry.register('timeline_now', MagicMock(), "Again")

    def test_no_payload_defaults_to_empty_dict(self):
        registry = CommandRegistry()
        handler = MagicMock()
        registry.register('timeline_today', handler, "Today")

        registry.execute('timeline_today')

        handler.assert_called_once_with({})

    def test_help_lists_params(self):
        registry = CommandRegistry()
        registry.register('timeline_mode', MagicMock(), "Switch mode", params=('mode',))
        registry.register('timeline_now', MagicMock(), "Jump to now")

        assert registry.get_help() == {
            'timeline_mode': "Switch mode (params: mode)",
            'timeline_now': "Jump to now",
        }
        assert registry.available_commands == {'timeline_mode', 'timeline_now'}
        assert registry.count() == 2
        assert registry.is_available('timeline_mode')


@pytest.mark.unit
class TestMQTTControlPlane:

    @pytest.fixture
    def plane(self):
        plane = MQTTControlPlane(
            broker_host="localhost",
            broker_port=1883,
            command_topic="isotherm/control/map-1/commands",
            status_topic="isotherm/control/map-1/status",
            client_id="isotherm_map-1",
        )
        plane.client = MagicMock()
        return plane

    @staticmethod
    def _message(payload):
        if not isinstance(payload, bytes):
            payload = json.dumps(payload).encode('utf-8')
        return SimpleNamespace(topic="isotherm/control/map-1/commands", payload=payload)

    def _statuses(self, plane):
        return [json.loads(c.args[1]) for c in plane.client.publish.call_args_list]

    def test_dispatches_lowercased_command(self, plane):
        handler = MagicMock()
        plane.command_registry.register('timeline_now', handler, "Now")

        plane._on_message(None, None, self._message({'command': 'TIMELINE_NOW'}))

        handler.assert_called_once_with({'command': 'TIMELINE_NOW'})

    def test_bad_parameters_publish_rejection(self, plane):
        plane.command_registry.register('timeline_click', MagicMock(), "Click", params=('fraction',))

        plane._on_message(None, None, self._message({'command': 'timeline_click'}))

        status = self._statuses(plane)[-1]
        assert status['status'] == "command_rejected"
        assert status['command'] == "timeline_click"
        assert "fraction" in status['error']

    def test_handler_value_error_publishes_rejection(self, plane):
        plane.command_registry.register(
            'timeline_mode', MagicMock(side_effect=ValueError("'week' is not a valid Mode")), "Mode"
        )

        plane._on_message(None, None, self._message({'command': 'timeline_mode', 'mode': 'week'}))

        assert self._statuses(plane)[-1]['status'] == "command_rejected"

    @pytest.mark.parametrize("payload", [
        b"\xff\xfe",
        b"{oops",
        [1, 2],
        {'command': ''},
        {'command': 'unknown_command'},
    ])
    def test_ignored_payloads(self, plane, payload):
        plane._on_message(None, None, self._message(payload))

        plane.client.publish.assert_not_called()

    def test_unexpected_handler_error_is_contained(self, plane):
        plane.command_registry.register('list_polygons', MagicMock(side_effect=RuntimeError("x")), "List")

        plane._on_message(None, None, self._message({'command': 'list_polygons'}))

        plane.client.publish.assert_not_called()

    def test_publish_status_retained_qos1(self, plane):
        plane.publish_status("running", {'polygons': 2})

        args, kwargs = plane.client.publish.call_args
        assert args[0] == "isotherm/control/map-1/status"
        assert kwargs == {'qos': 1, 'retain': True}
        message = json.loads(args[1])
        assert message['status'] == "running"
        assert message['polygons'] == 2
        assert message['client_id'] == "isotherm_map-1"

    def test_on_connect_subscribes(self, plane):
        client = MagicMock()

        plane._on_connect(client, None, {}, 0, None)

        client.subscribe.assert_called_once_with("isotherm/control/map-1/commands", qos=1)
        assert plane.is_connected()
