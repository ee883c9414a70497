"""
Tests for configuration, structured logging and error types.
"""

import json
import logging
import unittest
from pathlib import Path
from unittest.mock import patch

from config_logging import (
    DEFAULT_MEDIA_PREFIXES,
    InvalidArgumentError,
    JsonFormatter,
    LinkCheckConfig,
    ProcessingError,
    StructuredLogger,
    ValidationError,
    get_config,
    handle_errors,
    require_argument,
    reset_config,
)


class TestLinkCheckConfig(unittest.TestCase):
    """Environment loading and validation."""

    def tearDown(self):
        reset_config()

    def test_defaults(self):
        """Test default configuration values."""
        config = LinkCheckConfig()
        self.assertEqual(config.server_url, "")
        self.assertEqual(config.media_prefixes, DEFAULT_MEDIA_PREFIXES)
        self.assertEqual(config.routing_prefix, "~/link.aspx?")
        self.assertEqual(config.validate(), (True, []))

    def test_from_env(self):
        """Test loading configuration from the environment."""
        env = {
            'RTL_SERVER_URL': 'https://cms.example.com',
            'RTL_MEDIA_PREFIXES': '-/media/, /assets/',
            'RTL_LOG_FORMAT': 'text',
            'RTL_HTML_PARSER': 'html.parser',
        }
        with patch.dict('os.environ', env):
            config = LinkCheckConfig.from_env()
        self.assertEqual(config.server_url, 'https://cms.example.com')
        self.assertEqual(config.media_prefixes, ('-/media/', '/assets/'))
        self.assertEqual(config.html_parser, 'html.parser')
        self.assertTrue(config.validate()[0])

    def test_validate_rejects_bad_values(self):
        """Test validation of bad values."""
        config = LinkCheckConfig(server_url='cms.example.com', media_prefixes=(),
                                 html_parser='regex', log_format='xml')
        valid, errors = config.validate()
        self.assertFalse(valid)
        self.assertEqual(len(errors), 4)

    def test_global_config_cached_until_reset(self):
        """Test the cached global configuration."""
        first = get_config()
        self.assertIs(get_config(), first)
        reset_config()
        self.assertIsNot(get_config(), first)

    def test_production_raises_log_level(self):
        """Test that production forces WARNING."""
        with patch.dict('os.environ', {'RTL_ENV': 'production'}):
            self.assertEqual(LinkCheckConfig().log_level, 'WARNING')


class TestErrors(unittest.TestCase):
    """Error types and the error-handling decorator."""

    def test_require_argument(self):
        """Test required argument checking."""
        self.assertEqual(require_argument('x', 'name'), 'x')
        with self.assertRaises(InvalidArgumentError) as ctx:
            require_argument(None, 'result')
        self.assertEqual(ctx.exception.details['argument'], 'result')
        self.assertIsInstance(ctx.exception, ValueError)

    def test_to_dict(self):
        """Test error serialisation."""
        data = InvalidArgumentError("missing", argument='result').to_dict()
        self.assertFalse(data['success'])
        self.assertEqual(data['error']['code'], 'INVALID_ARGUMENT')

    def test_handle_errors_wraps_unexpected(self):
        """Test wrapping of unexpected exceptions."""
        @handle_errors()
        def explode():
            raise KeyError('x')

        with self.assertRaises(ProcessingError):
            explode()

    def test_handle_errors_maps_value_error(self):
        """Test mapping of ValueError."""
        @handle_errors()
        def bad_value():
            raise ValueError('nope')

        with self.assertRaises(ValidationError):
            bad_value()


class TestStructuredLogger(unittest.TestCase):
    """Structured logging output."""

    def setUp(self):
        self.config = LinkCheckConfig(log_format='json', log_level='DEBUG', log_to_console=False)
        self.logger = StructuredLogger('richtext_links.test', self.config)
        self.records = []

        class _Capture(logging.Handler):
            def emit(handler, record):
                self.records.append(record)

        self.logger.logger.addHandler(_Capture())

    def test_json_record(self):
        """Test JSON log record content."""
        self.logger.info("hello", url="-/media/x")
        payload = json.loads(self.records[0].getMessage())
        self.assertEqual(payload['message'], 'hello')
        self.assertEqual(payload['url'], '-/media/x')
        self.assertIn('correlation_id', payload)

    def test_formatter_keeps_structured_payload(self):
        """Test that the formatter keeps structured fields."""
        self.logger.warning("careful", target_path='/a')
        formatted = json.loads(JsonFormatter().format(self.records[0]))
        self.assertEqual(formatted['target_path'], '/a')

    def test_log_operation_reraises(self):
        """Test that a failed operation is logged and re-raised."""
        with self.assertRaises(RuntimeError):
            with self.logger.log_operation('validate_links'):
                raise RuntimeError('boom')
        statuses = [json.loads(r.getMessage())['status'] for r in self.records]
        self.assertEqual(statuses, ['started', 'failed'])

    def test_file_logging(self):
        """Test logging to a file."""
        import tempfile
        with tempfile.TemporaryDirectory() as tmp:
            config = LinkCheckConfig(log_to_file=True, log_to_console=False, log_dir=Path(tmp))
            logger = StructuredLogger('rtl_file_test', config)
            logger.info("to file")
            for handler in logger.logger.handlers:
                handler.flush()
                handler.close()
            self.assertTrue((Path(tmp) / 'rtl_file_test.log').exists())


if __name__ == '__main__':
    unittest.main()
