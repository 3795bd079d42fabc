import pytest

from basket_pricing.config import (
    IntegrationConfig,
    MCConfig,
    NumericsConfig,
    RandomConfig,
)


def test_defaults():
    n = NumericsConfig()
    assert n.cholesky_eps == 1e-14
    assert IntegrationConfig().steps == 200
    cfg = MCConfig()
    assert cfg.random == RandomConfig(seed=0, rng_type="pcg64")


@pytest.mark.parametrize(
    "factory",
    [
        lambda: NumericsConfig(cholesky_eps=0.0),
        lambda: NumericsConfig(var_floor=-1.0),
        lambda: NumericsConfig(moment_rel_eps=0.0),
        lambda: NumericsConfig(control_var_tol=-1e-20),
        lambda: IntegrationConfig(steps=0),
        lambda: MCConfig(n_paths=0),
        lambda: MCConfig(batch_size=-1),
    ],
)
def test_invalid_configs(factory):
    with pytest.raises(ValueError):
        factory()


def test_configs_are_frozen():
    cfg = MCConfig()
    with pytest.raises(AttributeError):
        cfg.n_paths = 10  # type: ignore[misc]
