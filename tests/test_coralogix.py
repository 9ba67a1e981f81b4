# tests/test_coralogix.py
from unittest.mock import MagicMock, call, patch

import pytest
import requests
from pydantic import ValidationError

from coralogix import CoralogixLogger
from errors import ConfigurationError, DeliveryError
from models import LoggerOptions, RawLogEvent

TIMESTAMP = 1668084827204


def response(status_code: int, text: str = "") -> MagicMock:
    mock = MagicMock()
    mock.status_code = status_code
    mock.text = text
    return mock


def extracted(event: str) -> RawLogEvent:
    return RawLogEvent(timestamp=TIMESTAMP, extracted_fields={"event": event})


@pytest.fixture
def mock_post():
    # This patch intercepts every requests.post made by the logger
    with patch('coralogix.requests.post') as post:
        yield post


@pytest.fixture
def sleep() -> MagicMock:
    return MagicMock()


def test_sends_to_custom_backend_url(mock_post, sleep):
    mock_post.return_value = response(200)
    logger = CoralogixLogger('foo-id', '/services/func/v1', 'app', options=LoggerOptions(
        api_url='https://www.example.com/',
        computer_name='host-1',
    ), sleep=sleep)

    sent = logger.send_entries([
        extracted('BLEEP\tthis should end up as INFO message\n'),
        extracted('DEBUG\tthis should not be visible\n'),
    ])

    assert sent == 1
    mock_post.assert_called_once()
    assert mock_post.call_args.args[0] == 'https://www.example.com/logs'
    assert mock_post.call_args.kwargs['json'] == {
        'privateKey': 'foo-id',
        'applicationName': 'app',
        'subsystemName': 'services',
        'computerName': 'host-1',
        'logEntries': [{
            'severity': 3,
            'text': '{"inv":{"invocationId":"n/a","functionName":"/services/func/v1"},'
                    '"message":"this should end up as INFO message","level":"bleep"}',
            'timestamp': TIMESTAMP,
        }],
    }
    sleep.assert_not_called()


def test_default_endpoint_and_unknown_configured_level(mock_post):
    mock_post.return_value = response(200)
    logger = CoralogixLogger('foo-id', '/services/func/v1', 'app', options=LoggerOptions(level='chatty'))

    logger.send_entries([
        extracted('INFO\tthis should be visible\n'),
        extracted('DEBUG\tthis should not be visible\n'),
    ])

    assert mock_post.call_args.args[0] == 'https://api.coralogix.com/api/v1/logs'
    entries = mock_post.call_args.kwargs['json']['logEntries']
    assert [e['severity'] for e in entries] == [3]


def test_nothing_sent_when_all_entries_are_filtered(mock_post):
    logger = CoralogixLogger('foo-id', '/services/func/v1', 'app', options=LoggerOptions(level='info'))

    sent = logger.send_entries([extracted('DEBUG\tthis should not be visible\n')])

    assert sent == 0
    mock_post.assert_not_called()


def test_nothing_sent_for_empty_event_list(mock_post):
    logger = CoralogixLogger('foo-id', '/services/func/v1', 'app')

    assert logger.send_entries([]) == 0
    mock_post.assert_not_called()


def test_retries_as_many_times_as_we_have_delays_and_stops_when_successful(mock_post, sleep):
    mock_post.side_effect = [requests.exceptions.ConnectionError('that went wrong'), response(200)]
    logger = CoralogixLogger('foo-id', '/services/func/v1', 'app', options=LoggerOptions(retry_delays=(1,)), sleep=sleep)

    assert logger.send_entries([extracted('INFO\tmessage\n')]) == 1

    assert mock_post.call_count == 2
    sleep.assert_called_once_with(1)


def test_forwards_error_when_posting_throws_as_many_times_as_we_have_delays(mock_post, sleep):
    error = requests.exceptions.ConnectionError('that went wrong')
    mock_post.side_effect = error
    logger = CoralogixLogger('foo-id', '/services/func/v1', 'app', options=LoggerOptions(retry_delays=(1,)), sleep=sleep)

    with pytest.raises(requests.exceptions.ConnectionError, match='that went wrong') as exc_info:
        logger.send_entries([extracted('INFO\tmessage\n')])

    assert exc_info.value is error
    assert mock_post.call_count == 2


def test_retry_waits_use_configured_delays_in_order(mock_post, sleep):
    mock_post.side_effect = requests.exceptions.Timeout('read timed out')
    logger = CoralogixLogger('foo-id', 'f', 'app', options=LoggerOptions(retry_delays=(0.1, 0.5, 2.0)), sleep=sleep)

    with pytest.raises(requests.exceptions.Timeout):
        logger.send_entries([extracted('INFO\tmessage\n')])

    assert mock_post.call_count == 4
    assert sleep.call_args_list == [call(0.1), call(0.5), call(2.0)]


def test_empty_retry_delays_means_single_attempt(mock_post, sleep):
    mock_post.side_effect = requests.exceptions.ConnectionError('refused')
    logger = CoralogixLogger('foo-id', 'f', 'app', options=LoggerOptions(retry_delays=()), sleep=sleep)

    with pytest.raises(requests.exceptions.ConnectionError):
        logger.send_entries([extracted('INFO\tmessage\n')])

    assert mock_post.call_count == 1
    sleep.assert_not_called()


def test_throws_when_posting_returns_a_bad_status_code(mock_post, sleep):
    mock_post.return_value = response(400, 'input malformed')
    logger = CoralogixLogger('foo-id', '/services/func/v1', 'app', sleep=sleep)

    with pytest.raises(DeliveryError, match='Failed to send logs with status 400: input malformed') as exc_info:
        logger.send_entries([extracted('INFO\tmessage\n')])

    assert exc_info.value.status_code == 400
    # HTTP rejections are never retried
    assert mock_post.call_count == 1
    sleep.assert_not_called()


def test_subsystem_and_computer_name_options(mock_post):
    mock_post.return_value = response(204)
    logger = CoralogixLogger('foo-id', 'indexer', 'app', options=LoggerOptions(
        subsystem_name='helix-services',
        computer_name=None,
    ))

    logger.send_entries([extracted('ERROR\tboom\n')])

    body = mock_post.call_args.kwargs['json']
    assert body['subsystemName'] == 'helix-services'
    assert 'computerName' not in body


def test_computer_name_defaults_to_host_name():
    with patch('socket.gethostname', return_value='lambda-host'):
        options = LoggerOptions()

    assert options.computer_name == 'lambda-host'


@pytest.mark.parametrize("api_key, app", [("", "app"), ("foo-id", "")])
def test_missing_credentials_are_rejected(api_key, app):
    with pytest.raises(ConfigurationError):
        CoralogixLogger(api_key, 'f', app)


@pytest.mark.parametrize("error", [
    requests.exceptions.MissingSchema("Invalid URL 'logs': No scheme supplied"),
    requests.exceptions.InvalidURL("Failed to parse: https://[::1/logs"),
])
def test_request_errors_other_than_transport_failures_are_not_retried(mock_post, sleep, error):
    mock_post.side_effect = error
    logger = CoralogixLogger('foo-id', 'f', 'app', options=LoggerOptions(retry_delays=(1, 2)), sleep=sleep)

    with pytest.raises(type(error)) as exc_info:
        logger.send_entries([extracted('INFO\tmessage\n')])

    assert exc_info.value is error
    assert mock_post.call_count == 1
    sleep.assert_not_called()


@pytest.mark.parametrize("api_url", ["api.coralogix.com/api/v1", "ftp://api.coralogix.com/", ""])
def test_api_url_must_be_an_http_url(api_url):
    with pytest.raises(ValidationError):
        LoggerOptions(api_url=api_url)
