import io
import json
import logging
import unittest

from casino_client.core.logger import (
    JsonFormatter,
    TokenRedactingFilter,
    get_logger,
    redact,
    setup_logger,
)


class TestRedaction(unittest.TestCase):
    def test_bearer_header_masked(self):
        self.assertEqual(redact("Authorization: Bearer abc.def-123"), "Authorization: Bearer ***")

    def test_token_fields_masked(self):
        line = redact('{"access": "eyJ.abc", "refresh": "eyJ.xyz"}')
        self.assertNotIn("eyJ", line)
        self.assertIn('"access": "***', line)

    def test_plain_text_untouched(self):
        self.assertEqual(redact("Balance updated to 900"), "Balance updated to 900")

    def test_unquoted_words_untouched(self):
        for line in ("access: denied", "refresh=later", "Access token refreshed"):
            self.assertEqual(redact(line), line)

    def test_stored_key_names_masked(self):
        line = redact("{'accessToken': 'abc', 'refreshToken': 'xyz'}")
        self.assertEqual(line, "{'accessToken': '***', 'refreshToken': '***'}")

    def test_handler_output_redacted(self):
        stream = io.StringIO()
        logger = logging.getLogger("casino-client-test-redaction")
        handler = logging.StreamHandler(stream)
        handler.addFilter(TokenRedactingFilter())
        logger.addHandler(handler)
        self.addCleanup(logger.removeHandler, handler)

        logger.warning("sending %s", "Bearer secret-token")
        self.assertNotIn("secret-token", stream.getvalue())


class TestLoggerSetup(unittest.TestCase):
    def test_setup_does_not_stack_handlers(self):
        logger = setup_logger(name="casino-client-test-setup")
        logger = setup_logger(name="casino-client-test-setup")
        self.assertEqual(len(logger.handlers), 1)
        self.assertFalse(logger.propagate)

    def test_child_loggers(self):
        self.assertTrue(get_logger("transport").name.endswith(".transport"))

    def test_json_formatter_merges_extra(self):
        record = logging.LogRecord("casino-client", logging.INFO, __file__, 1, "spin", None, None)
        record.game = "roulette"
        data = json.loads(JsonFormatter().format(record))
        self.assertEqual(data["message"], "spin")
        self.assertEqual(data["game"], "roulette")


if __name__ == "__main__":
    unittest.main()
