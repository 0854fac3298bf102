from __future__ import annotations

import logging
import random

import numpy as np
import pytest

from dfars.utils.logging_utils import Timer, progress_bar, setup_logging
from dfars.utils.seed import as_generator, seed_everything


def test_setup_logging_configures_package_logger(tmp_path):
    log_file = tmp_path / "logs" / "ars.log"
    logger = setup_logging(logging.DEBUG, log_file=str(log_file))
    try:
        assert logger.name == "dfars"
        assert len(logger.handlers) == 2
        logging.getLogger("dfars.inference.samplers").info("hello from the sampler")
        for handler in logger.handlers:
            handler.flush()
        assert "hello from the sampler" in log_file.read_text()
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
        logger.propagate = True


def test_setup_logging_accepts_level_names_and_plain_console():
    logger = setup_logging("warning", use_rich=False)
    try:
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert type(logger.handlers[0]) is logging.StreamHandler
        # a second call replaces the handlers
        setup_logging("DEBUG", use_rich=False)
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
        logger.propagate = True


def test_setup_logging_rejects_unknown_level_name():
    with pytest.raises(ValueError, match="Unknown logging level"):
        setup_logging("chatty")


def test_timer_measures_elapsed_time():
    with Timer("work") as timer:
        sum(range(1000))
    assert timer.elapsed >= 0.0


def test_progress_bar_can_be_disabled():
    assert progress_bar(10, enabled=False) is None
    bar = progress_bar(3, desc="test")
    if bar is not None:
        bar.update(3)
        bar.close()


def test_as_generator_variants():
    assert isinstance(as_generator(None), np.random.Generator)
    assert as_generator(5).random() == np.random.default_rng(5).random()

    rng = np.random.default_rng(1)
    assert as_generator(rng) is rng

    source = random.Random(2)
    assert as_generator(source) is source

    with pytest.raises(TypeError):
        as_generator(object())


def test_seed_everything_is_repeatable():
    seed_everything(3)
    first = (random.random(), np.random.rand())
    seed_everything(3)
    assert (random.random(), np.random.rand()) == first
