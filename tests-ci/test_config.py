"""
Tests pour alerts/config.py
Chargement YAML, valeurs par défaut, validation
"""
import pytest
import yaml

from alerts.config import AlertsConfig, load_config, write_config
from alerts.errors import ConfigError
from alerts.rate_limiter import MIN_REQUEST_INTERVAL


@pytest.mark.unit
class TestAlertsConfig:
    """AlertsConfig.from_dict / validate"""

    def test_from_dict(self, config_dict):
        """Lecture des trois sections"""
        config = AlertsConfig.from_dict(config_dict)
        assert config.streamers == ["Alice", "bob"]
        assert config.cycle_delay == 2.5
        assert config.recheck_interval == 45.0
        assert config.helix_timeout == 5.0
        assert config.client_id == "test_client_id_mock"
        assert config.client_secret == "test_client_secret_mock"
        assert config.token is None
        assert config.db_path is None
        assert config.min_interval == MIN_REQUEST_INTERVAL

    def test_defaults_from_empty_file(self):
        """Fichier vide = valeurs par défaut"""
        config = AlertsConfig.from_dict(None)
        assert config.streamers == []
        assert config.cycle_delay == 1.0
        assert config.recheck_interval == 30.0

    def test_cycle_delay_raised_to_floor(self, config_dict):
        """cycle_delay relevé au plancher de 80ms"""
        config_dict["alerts"]["cycle_delay"] = 0.01
        assert AlertsConfig.from_dict(config_dict).cycle_delay == MIN_REQUEST_INTERVAL

    def test_streamers_must_be_a_list(self, config_dict):
        """streamers doit être une liste"""
        config_dict["alerts"]["streamers"] = "alice"
        with pytest.raises(ConfigError):
            AlertsConfig.from_dict(config_dict)

    @pytest.mark.parametrize("login", ["", "   ", None, True, {"id": "alice"}])
    def test_invalid_streamer_entry(self, config_dict, login):
        """Login vide, null ou non textuel -> ConfigError"""
        config_dict["alerts"]["streamers"] = ["alice", login]
        with pytest.raises(ConfigError, match=r"alerts.streamers\[1\]"):
            AlertsConfig.from_dict(config_dict)

    def test_numeric_login_kept_as_text(self, config_dict):
        """Un login numérique lu comme int par YAML reste un login"""
        config_dict["alerts"]["streamers"] = [1234, " Bob "]
        assert AlertsConfig.from_dict(config_dict).streamers == ["1234", "Bob"]

    def test_bad_timing_value(self, config_dict):
        """Valeur de timing invalide -> ConfigError"""
        config_dict["alerts"]["recheck_interval"] = "soon"
        with pytest.raises(ConfigError):
            AlertsConfig.from_dict(config_dict)

    def test_validate_requires_credentials(self, config_dict):
        """validate() exige client_id et secret ou token"""
        AlertsConfig.from_dict(config_dict).validate()

        config_dict["twitch"]["client_secret"] = ""
        with pytest.raises(ConfigError, match="client_secret or twitch.token"):
            AlertsConfig.from_dict(config_dict).validate()

        config_dict["twitch"]["token"] = "user_token_mock"
        AlertsConfig.from_dict(config_dict).validate()

        config_dict["twitch"]["client_id"] = ""
        with pytest.raises(ConfigError, match="client_id"):
            AlertsConfig.from_dict(config_dict).validate()


@pytest.mark.integration
class TestConfigFile:
    """load_config / write_config sur disque"""

    def test_missing_file_written_with_defaults(self, tmp_path):
        """Fichier absent : écrit avec les valeurs par défaut"""
        path = tmp_path / "config" / "alerts.yaml"
        config = load_config(str(path))

        assert path.exists()
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert set(data) == {"twitch", "alerts", "storage"}
        assert config.streamers == []

    def test_round_trip(self, tmp_path, config_dict):
        """write_config puis load_config"""
        path = tmp_path / "alerts.yaml"
        write_config(AlertsConfig.from_dict(config_dict), str(path))
        assert load_config(str(path)) == AlertsConfig.from_dict(config_dict)

    def test_invalid_yaml(self, tmp_path):
        """YAML invalide -> ConfigError"""
        path = tmp_path / "alerts.yaml"
        path.write_text("alerts: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_non_mapping_root(self, tmp_path):
        """Racine non-mapping -> ConfigError"""
        path = tmp_path / "alerts.yaml"
        path.write_text("- alice\n- bob\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(path))
