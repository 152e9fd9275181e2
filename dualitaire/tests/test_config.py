"""Tests for configuration loading."""

from dualitaire.config import Config, load_config


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults(self):
        """Test the default match settings."""
        config = load_config(None)
        assert config.match.duration_sec == 180
        assert config.match.max_rounds == 3
        assert config.scoring.foundation_points == 100
        assert config.scoring.recycle_points == -50
        assert config.scoring.flip_points == 5
        assert config.scoring.combo_window_ms == 3000
        assert config.disruption.freeze_ms == 5000
        assert not config.match_log.enabled

    def test_missing_file(self, tmp_path):
        """Test a missing file falls back to defaults."""
        assert load_config(tmp_path / "missing.yaml") == Config()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == Config()

    def test_overrides(self, tmp_path):
        """Test YAML values override defaults section by section."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "match:\n"
            "  duration_sec: 60\n"
            "  max_rounds: 1\n"
            "scoring:\n"
            "  combo_step: 0.5\n"
            "logging:\n"
            "  level: DEBUG\n"
            "match_log:\n"
            "  enabled: true\n"
            "  output_path: logs/match.jsonl\n"
        )
        config = load_config(path)
        assert config.match.duration_sec == 60
        assert config.match.max_rounds == 1
        assert config.match.countdown_steps == 3
        assert config.scoring.combo_step == 0.5
        assert config.scoring.foundation_points == 100
        assert config.logging.level == "DEBUG"
        assert config.match_log.enabled
        assert config.match_log.output_path == "logs/match.jsonl"
