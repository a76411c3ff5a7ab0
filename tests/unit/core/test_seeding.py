import numpy as np

from survey_stats.seeding import determinism_banner, make_rng, seed_everything


def test_make_rng_passthrough_and_seeded():
    rng = np.random.default_rng(1)
    assert make_rng(rng) is rng
    assert make_rng(5).random() == make_rng(5).random()


def test_seed_everything_and_banner():
    seed_everything(123)
    banner = determinism_banner(123)
    assert banner["seeded"] is True
    assert banner["pythonhashseed"] == "123"
    assert determinism_banner(None)["seeded"] is False


def test_annotations_are_deferred():
    # PEP 604 unions in signatures must not be evaluated at import time on 3.9
    assert seed_everything.__annotations__["seed"] == "int | None"
    assert make_rng.__annotations__["return"] == "np.random.Generator"
