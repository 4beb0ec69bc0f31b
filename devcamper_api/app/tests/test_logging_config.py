import logging

from devcamper_api.app.core.logging_config import NOISY_LOGGERS, setup_logging


def test_setup_logging_adds_handlers_once(tmp_path, monkeypatch) -> None:
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    for name in NOISY_LOGGERS:
        monkeypatch.setattr(logging.getLogger(name), "level", logging.NOTSET)
    logfile = tmp_path / "logs" / "api.log"

    setup_logging("info", str(logfile))
    setup_logging("debug", str(logfile))

    try:
        assert len(root.handlers) == 2
        assert root.level == logging.INFO
        assert logging.getLogger("urllib3").level == logging.WARNING
        logging.getLogger("devcamper").info("bootcamp created")
        root.handlers[1].flush()
        assert "[INFO] devcamper: bootcamp created" in logfile.read_text(encoding="utf-8")
    finally:
        for handler in root.handlers:
            handler.close()


def test_debug_level_keeps_library_loggers(monkeypatch) -> None:
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    monkeypatch.setattr(logging.getLogger("urllib3"), "level", logging.NOTSET)

    setup_logging("DEBUG")

    assert root.level == logging.DEBUG
    assert logging.getLogger("urllib3").level == logging.NOTSET
