"""
Conversion configuration tests.
"""

import json

import pytest

from merise.config import ConversionConfig, load_config
from merise.constants import ConversionDefaults, InheritanceStrategy, SqlDialect
from merise.shared.validation import ConfigError


@pytest.mark.unit
class TestConversionConfig:

    def test_defaults(self, default_config):
        assert default_config.inheritance_strategy is InheritanceStrategy.TABLE_PER_CLASS
        assert default_config.sql_dialect is SqlDialect.MARIADB
        assert default_config.default_varchar_length == ConversionDefaults.DEFAULT_VARCHAR_LENGTH

    def test_from_flat_dict(self):
        config = ConversionConfig.from_dict({"sql_dialect": "PostgreSQL", "default_varchar_length": "80"})
        assert config.sql_dialect is SqlDialect.POSTGRESQL
        assert config.default_varchar_length == 80

    def test_from_sectioned_dict(self):
        config = ConversionConfig.from_dict({
            "conversion": {"inheritance_strategy": "single_table"},
            "logging": {"level": "DEBUG"},
        })
        assert config.inheritance_strategy is InheritanceStrategy.SINGLE_TABLE
        assert config.log_settings == {"level": "DEBUG"}

    def test_to_dict_round_trip(self, postgres_config):
        assert ConversionConfig.from_dict(postgres_config.to_dict()) == postgres_config

    @pytest.mark.parametrize("data", [
        {"inheritance_strategy": "joined"},
        {"sql_dialect": "oracle"},
        {"default_varchar_length": 0},
        {"default_varchar_length": "long"},
        {"conversion": []},
        {"logging": "verbose"},
        [],
    ])
    def test_invalid_values(self, data):
        with pytest.raises(ConfigError):
            ConversionConfig.from_dict(data)

    def test_invalid_length_in_constructor(self):
        with pytest.raises(ConfigError):
            ConversionConfig(default_varchar_length=-5)

    def test_with_overrides(self, default_config):
        config = default_config.with_overrides(sql_dialect="mysql", default_varchar_length=100)
        assert config.sql_dialect is SqlDialect.MYSQL
        assert config.default_varchar_length == 100
        assert config.inheritance_strategy is default_config.inheritance_strategy
        assert default_config.sql_dialect is SqlDialect.MARIADB

    def test_none_overrides_keep_values(self, single_table_config):
        assert single_table_config.with_overrides() == single_table_config

    def test_config_is_immutable(self, default_config):
        with pytest.raises(AttributeError):
            default_config.sql_dialect = SqlDialect.MYSQL


@pytest.mark.unit
class TestLoadConfig:

    def test_load_file(self, tmp_path):
        path = tmp_path / "merise.json"
        path.write_text(json.dumps({"conversion": {"sql_dialect": "postgresql"}}), encoding="utf-8")
        assert load_config(path).sql_dialect is SqlDialect.POSTGRESQL

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError) as exc_info:
            load_config(path)
        assert "line 1" in str(exc_info.value)
