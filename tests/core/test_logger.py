"""Tests for loguru sink configuration."""

from loguru import logger

from clinic.core.logger import setup_logger


def test_file_sink_writes_structured_events(tmp_path) -> None:
    log_file = tmp_path / "logs" / "clinic.log"

    setup_logger(level="DEBUG", log_file=str(log_file))
    logger.info("Treatment record created", treatment_record_id=123)
    logger.remove()

    content = log_file.read_text(encoding="utf-8")
    assert "Treatment record created" in content
    assert "treatment_record_id" in content


def test_level_filters_file_sink(tmp_path) -> None:
    log_file = tmp_path / "clinic.log"

    setup_logger(level="WARNING", log_file=str(log_file))
    logger.info("hidden event")
    logger.warning("visible event")
    logger.remove()

    content = log_file.read_text(encoding="utf-8")
    assert "hidden event" not in content
    assert "visible event" in content
