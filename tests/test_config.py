import pytest

from httptunnel.adapters.config.loader import ConfigLoader
from httptunnel.adapters.config.settings import TunnelSettings
from httptunnel.core.exceptions import ConfigError


def test_env_maps_proxy_variables():
    loader = ConfigLoader(environ={
        "PROXY_HOST": "proxy.local",
        "PROXY_PORT": "3128",
        "PROXY_AUTH": "1234:5678",
        "PROXY_TIMEOUT": "2.5",
        "UNRELATED": "x",
    })

    assert loader.load_env() == {
        "proxy": {"host": "proxy.local", "port": 3128, "auth": "1234:5678", "timeout": 2.5},
    }


def test_empty_env_values_are_ignored():
    assert ConfigLoader(environ={"PROXY_HOST": ""}).load_env() == {}


def test_numeric_looking_host_stays_a_string():
    loader = ConfigLoader(environ={"PROXY_HOST": "1234", "PROXY_PORT": "3128"})

    cfg = loader.load_env()

    assert cfg == {"proxy": {"host": "1234", "port": 3128}}
    assert TunnelSettings.from_config(cfg).proxy.host == "1234"


def test_priority_cli_over_env_over_toml(tmp_path):
    toml = tmp_path / "tunnel.toml"
    toml.write_text('[proxy]\nhost = "from-toml"\nport = 1\ntimeout = 9\n', encoding="utf-8")
    loader = ConfigLoader(environ={"PROXY_HOST": "from-env", "PROXY_PORT": "2"})

    cfg = loader.load(toml_path=toml, cli_overrides={"proxy": {"host": "from-cli", "port": None}})

    assert cfg == {"proxy": {"host": "from-cli", "port": 2, "timeout": 9}}


def test_use_env_false():
    loader = ConfigLoader(environ={"PROXY_HOST": "from-env"})

    assert loader.load(use_env=False) == {}


def test_missing_toml(tmp_path):
    with pytest.raises(ConfigError):
        ConfigLoader(environ={}).load(toml_path=tmp_path / "missing.toml")


def test_invalid_toml(tmp_path):
    toml = tmp_path / "bad.toml"
    toml.write_text("[proxy\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        ConfigLoader(environ={}).load_toml(toml)


def test_settings_defaults():
    settings = TunnelSettings.from_config({"proxy": {"host": "proxy.local"}})

    assert settings.proxy.address == ("proxy.local", 80)
    assert settings.proxy.credential is None
    assert settings.timeout == 30.0


def test_settings_full():
    settings = TunnelSettings.from_config({
        "proxy": {"host": "proxy.local", "port": "3128", "auth": "u:p", "timeout": 5},
    })

    assert settings.proxy.address == ("proxy.local", 3128)
    assert settings.proxy.credential == "u:p"
    assert settings.timeout == 5.0


def test_settings_port_inside_host():
    settings = TunnelSettings.from_config({"proxy": {"host": "proxy.local:8080"}})

    assert settings.proxy.port == 8080


def test_settings_empty_auth_means_no_credential():
    settings = TunnelSettings.from_config({"proxy": {"host": "p", "auth": ""}})

    assert settings.proxy.credential is None


@pytest.mark.parametrize("section", [
    {},
    {"host": ""},
    {"host": 10},
    {"host": "p", "port": "http"},
    {"host": "p", "port": 0},
    {"host": "p", "timeout": "soon"},
    {"host": "p", "timeout": 0},
])
def test_settings_errors(section):
    with pytest.raises(ConfigError):
        TunnelSettings.from_config({"proxy": section})
