import logging
import os
import random

import numpy as np
import pytest
from lensum import Lensum, ShearStyle


@pytest.fixture(autouse=True)
def seed_rng() -> None:
    random.seed(0)
    np.random.seed(0)
    os.environ["PYTHONHASHSEED"] = "0"


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers installed by setup_logging so caplog sees package records."""
    yield
    logger = logging.getLogger("lensum")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def _fill_random(lensum: Lensum, rng: np.random.Generator) -> Lensum:
    lensum.zindex = int(rng.integers(0, 1000))
    lensum.weight = float(rng.random() * 100)
    lensum.totpairs = int(rng.integers(0, 10**9))
    lensum.npair[:] = rng.integers(0, 10**6, size=lensum.nbin)
    for name in lensum.array_fields[1:]:
        getattr(lensum, name)[:] = rng.normal(scale=1e3, size=lensum.nbin)
    return lensum


@pytest.fixture()
def rng() -> np.random.Generator:
    return np.random.default_rng(12345)


@pytest.fixture()
def fill(rng):
    """Give every field of a lensum arbitrary finite values."""
    return lambda lensum: _fill_random(lensum, rng)


@pytest.fixture(params=[ShearStyle.REDUCED, ShearStyle.LENSFIT], ids=["reduced", "lensfit"])
def shear_style(request) -> ShearStyle:
    return request.param
