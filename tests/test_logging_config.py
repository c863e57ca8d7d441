import logging

from logging_config import _NAMESPACES, setup_logging


class TestSetupLogging:
    """Tests for setup_logging()."""

    def setup_method(self):
        self.saved = {
            name: (logging.getLogger(name).level, list(logging.getLogger(name).handlers),
                   logging.getLogger(name).propagate)
            for name in _NAMESPACES
        }

    def teardown_method(self):
        for name, (level, handlers, propagate) in self.saved.items():
            logger = logging.getLogger(name)
            for handler in logger.handlers:
                handler.close()
            logger.handlers[:] = handlers
            logger.setLevel(level)
            logger.propagate = propagate

    def test_configures_every_namespace(self):
        setup_logging(logging.DEBUG)
        for name in _NAMESPACES:
            logger = logging.getLogger(name)
            assert logger.level == logging.DEBUG
            assert len(logger.handlers) == 1
            assert logger.propagate is False

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(logging.INFO)
        setup_logging(logging.INFO)
        assert len(logging.getLogger("exporter").handlers) == 1

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "pipeline.log"
        setup_logging(logging.INFO, str(log_file))
        logging.getLogger("exporter.bundle").info("bundle written")
        for handler in logging.getLogger("exporter").handlers:
            handler.flush()
        assert "bundle written" in log_file.read_text(encoding="utf-8")
