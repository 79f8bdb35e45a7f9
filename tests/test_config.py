import pytest
from pydantic import ValidationError as ConfigError

from shortlink_app.config import MAX_SHORT_CODE_LENGTH, Settings, ShortenerConfig


class TestShortenerConfig:

    @pytest.mark.parametrize("length", [0, -1, MAX_SHORT_CODE_LENGTH + 1])
    def test_code_length_out_of_range(self, length):
        with pytest.raises(ConfigError):
            ShortenerConfig(short_code_length=length)

    def test_attempts_must_be_positive(self):
        with pytest.raises(ConfigError):
            ShortenerConfig(max_generation_attempts=0)

    def test_bad_settings_fail_at_load(self, monkeypatch):
        monkeypatch.setenv("SHORT_CODE_LENGTH", "0")
        with pytest.raises(ConfigError):
            Settings(_env_file=None)

    def test_from_settings_strips_trailing_slash(self):
        source = Settings(_env_file=None, base_url="http://sho.rt/", short_code_length=MAX_SHORT_CODE_LENGTH)
        config = ShortenerConfig.from_settings(source)

        assert config.base_url == "http://sho.rt"
        assert config.short_code_length == MAX_SHORT_CODE_LENGTH
