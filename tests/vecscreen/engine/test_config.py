import pytest

from vecscreen.engine.config import ScreeningConfig
from vecscreen.engine.exceptions.screening import ConfigError
from vecscreen.engine.structures.alignment import ScoringScheme


def test_defaults_are_valid():
    config = ScreeningConfig()
    assert 16 <= config.seed_k <= 20
    assert config.workers >= 1


@pytest.mark.parametrize("overrides,parameter", [
    ({"seed_k": 0}, "seed_k"),
    ({"workers": 0}, "workers"),
    ({"max_candidates": 0}, "max_candidates"),
    ({"seed_stride": 0}, "seed_stride"),
    ({"batch_size": -1}, "batch_size"),
    ({"band_width": -1}, "band_width"),
    ({"min_score": 0}, "min_score"),
    ({"scoring": ScoringScheme(match=0)}, "match"),
    ({"scoring": ScoringScheme(mismatch=1)}, "mismatch"),
    ({"scoring": ScoringScheme(gap_open=0)}, "gap_open"),
    ({"scoring": ScoringScheme(gap_extend=2)}, "gap_extend"),
    ({"scoring": ScoringScheme(jump_strand_flip=1)}, "jump_strand_flip"),
])
def test_invalid_configuration_raises_config_error(overrides, parameter):
    with pytest.raises(ConfigError) as error:
        ScreeningConfig(**overrides)
    assert error.value.parameter == parameter


def test_unbanded_configuration_allowed():
    assert ScreeningConfig(band_width=None).band_width is None
