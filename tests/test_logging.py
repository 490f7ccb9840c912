import logging


def _flush_all():
    for handler in logging.getLogger().handlers:
        handler.flush()
    for handler in logging.getLogger("gymcoach.jobs").handlers:
        handler.flush()


def test_scheduler_records_get_their_own_file(tmp_path):
    from gymcoach.core.logging_config import setup_logging

    setup_logging(enable_console=False, enable_file=True, log_dir=tmp_path)
    try:
        logging.getLogger("gymcoach.jobs.broadcast_dispatch").info("dispatch pass complete")
        logging.getLogger("gymcoach.api.routes.auth").info("unrelated request")
        _flush_all()

        scheduler_log = (tmp_path / "gymcoach_scheduler.log").read_text()
        main_log = (tmp_path / "gymcoach.log").read_text()
        assert "dispatch pass complete" in scheduler_log
        assert "unrelated request" not in scheduler_log
        assert "dispatch pass complete" in main_log
        assert "unrelated request" in main_log
    finally:
        setup_logging(enable_console=True, enable_file=False)

    assert logging.getLogger("gymcoach.jobs").handlers == []


def test_request_logger_levels(caplog):
    from gymcoach.core.logging_config import RequestLogger

    request_logger = RequestLogger(logging.getLogger("gymcoach.requests"))
    with caplog.at_level(logging.INFO, logger="gymcoach.requests"):
        request_logger.log_request("GET", "/health", 200, 1.5)
        request_logger.log_request("POST", "/api/auth/login", 401, 3.0, client_ip="10.0.0.1")
        request_logger.log_request("GET", "/boom", 500, 9.0, user_id="u-1")

    records = [r for r in caplog.records if r.name == "gymcoach.requests"]
    levels = [r.levelno for r in records]
    assert levels == [logging.INFO, logging.WARNING, logging.ERROR]
    assert "ip=10.0.0.1" in records[1].getMessage()
