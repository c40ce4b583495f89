import pytest

from subspace_stream.config.parameters import ExperimentConfig, StreamConfig
from subspace_stream.core.errors import ConfigurationError


def test_defaults_are_valid():
    config = StreamConfig()
    assert config.offline_epsilon == pytest.approx(1.0)
    assert config.offline_mu == config.mu
    assert config.offline_tau == config.pi


@pytest.mark.parametrize(
    "option",
    [
        {"epsilon": 0.0},
        {"mu": 0.5},
        {"beta": 0.0},
        {"beta": 1.5},
        {"decay_rate": 0.0},
        {"pi": 0},
        {"kappa": 1.0},
        {"delta": 0.0},
        {"offline_factor": 0.5},
        {"mu_offline": 0.5},
        {"tau": 0},
        {"init_points": -1},
        {"processing_speed": 0},
        {"t_span": 0},
        {"dimensions": 0},
    ],
)
def test_out_of_range_option_fails_fast(option):
    with pytest.raises(ConfigurationError):
        StreamConfig(**option)


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        StreamConfig(epsilon=-1.0)


def test_pruning_period_is_derived_from_decay():
    config = StreamConfig(mu=10.0, beta=0.5, decay_rate=0.1)
    assert config.pruning_period() == 4


def test_pruning_period_every_tick_when_bound_undefined():
    assert StreamConfig(mu=1.0, beta=1.0).pruning_period() == 1


def test_configured_pruning_period_wins():
    assert StreamConfig(t_span=7).pruning_period() == 7


def test_offline_overrides():
    config = StreamConfig(epsilon=0.2, offline_factor=3.0, mu_offline=4.0, tau=2)
    assert config.offline_epsilon == pytest.approx(0.6)
    assert config.offline_mu == 4.0
    assert config.offline_tau == 2


def test_dict_round_trip_ignores_unknown_keys():
    config = StreamConfig(epsilon=0.3, init_points=0, t_span=5)
    data = config.to_dict()
    data["unknown"] = 1
    assert StreamConfig.from_dict(data) == config


def test_projection_params():
    params = StreamConfig(epsilon=0.3, pi=4).projection_params()
    assert params["epsilon"] == 0.3
    assert params["pi"] == 4
    assert set(params) == {"epsilon", "mu", "beta", "delta", "kappa", "pi"}


def test_experiment_config_defaults():
    exp = ExperimentConfig(dataset_path="stream.csv")
    assert exp.evaluation_interval == 1000
    assert isinstance(exp.base_config, StreamConfig)
