import pytest

from meshflood.config import Config, MeshConfig


def test_defaults_are_valid():
    config = Config()
    config.validate()

    assert config.mesh.max_ttl == 10
    assert config.mesh.relay_probability == 0.8
    assert config.mesh.beacon_interval == 30.0
    assert config.mesh.route_timeout == 60.0
    assert config.mesh.cache_capacity == 1000


def test_missing_file_yields_defaults(tmp_path):
    path = tmp_path / "absent.toml"
    config = Config.load(path)

    assert config.config_path == path
    assert config.mesh == MeshConfig()


def test_load_from_toml(tmp_path):
    path = tmp_path / "meshflood.toml"
    path.write_text(
        'log_level = "debug"\n'
        "\n"
        "[mesh]\n"
        "max_ttl = 4\n"
        "relay_probability = 0.5\n"
        "route_timeout = 90\n"
        "\n"
        "[medium]\n"
        "loss_probability = 0.1\n"
        "\n"
        "[simulation]\n"
        "seed = 7\n"
        'topology = "Ring"\n'
        "\n"
        "[topology]\n"
        'A = ["B"]\n'
        'B = ["A"]\n'
    )

    config = Config.load(path)
    config.validate()

    assert config.log_level == "DEBUG"
    assert config.mesh.max_ttl == 4
    assert config.mesh.relay_probability == 0.5
    assert config.mesh.route_timeout == 90.0
    assert config.medium.loss_probability == 0.1
    assert config.simulation.seed == 7
    assert config.simulation.topology == "ring"
    assert config.simulation.neighbors == {"A": ["B"], "B": ["A"]}


def test_unparseable_file(tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("[mesh\nmax_ttl = ")
    with pytest.raises(ValueError, match="Cannot parse"):
        Config.load(path)


def test_wrong_typed_value(tmp_path):
    path = tmp_path / "typed.toml"
    path.write_text('[mesh]\nmax_ttl = "many"\n')
    with pytest.raises(ValueError, match="Invalid configuration value"):
        Config.load(path)


@pytest.mark.parametrize("field,value", [
    ("max_ttl", 0),
    ("relay_probability", 1.2),
    ("relay_probability", -0.1),
    ("beacon_interval", 0),
    ("route_timeout", -5),
    ("cache_capacity", 0),
    ("heartbeat_jitter", 10),
    ("data_probability", 2.0),
    ("tx_delay_min", 0.5),
])
def test_out_of_range_mesh_values_rejected(field, value):
    config = MeshConfig()
    setattr(config, field, value)
    with pytest.raises(ValueError):
        config.validate()


def test_bad_simulation_values_rejected():
    config = Config()
    config.simulation.topology = "star"
    with pytest.raises(ValueError, match="Unknown topology"):
        config.validate()

    config = Config()
    config.medium.corruption_probability = 1.5
    with pytest.raises(ValueError):
        config.validate()


def test_neighbor_table_checked():
    config = Config()
    config.simulation.neighbors = {"A": ["B"], "B": ["C"]}
    with pytest.raises(ValueError, match="unknown neighbor"):
        config.validate()

    config.simulation.neighbors = {"A": ["A"]}
    with pytest.raises(ValueError, match="itself"):
        config.validate()


def test_topology_must_be_a_table(tmp_path):
    path = tmp_path / "flat.toml"
    path.write_text('topology = "grid"\n')
    with pytest.raises(ValueError, match="must be a table"):
        Config.load(path)
