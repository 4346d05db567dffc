import pytest
import yaml
from pydantic import ValidationError

from ainews.config import (
    AIGateConfig,
    Config,
    ConfigModel,
    PipelineConfig,
    RankingWeights,
    load_config,
    save_config,
)


class TestRankingWeights:
    def test_defaults_sum_to_one(self):
        weights = RankingWeights()

        assert sum(weights.model_dump().values()) == pytest.approx(1.0)

    def test_rejects_bad_sum(self):
        with pytest.raises(ValidationError):
            RankingWeights(content_quality=0.5)

    def test_accepts_rebalanced_weights(self):
        weights = RankingWeights(content_quality=0.05, topic_relevance=0.25)

        assert weights.topic_relevance == 0.25


class TestPipelineConfig:
    def test_defaults(self):
        config = PipelineConfig()

        assert config.batch_size == 10
        assert config.max_processing_time == 30.0
        assert config.ai_gate.mode == "threshold"
        assert config.enable_summarization

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(batch_sise=5)

    def test_frozen(self):
        config = PipelineConfig()

        with pytest.raises(ValidationError):
            config.batch_size = 5

    def test_invalid_values_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(batch_size=0)
        with pytest.raises(ValidationError):
            PipelineConfig(max_processing_time=-1)
        with pytest.raises(ValidationError):
            PipelineConfig(ai_provider="llama")

    def test_blank_interests_dropped(self):
        config = PipelineConfig(user_interests=[" ai ", "", "  "])

        assert config.user_interests == ["ai"]

    def test_api_key_follows_provider(self):
        config = PipelineConfig(gemini_api_key="g", openai_api_key="o")

        assert config.ai_api_key == "g"
        assert config.model_copy(update={"ai_provider": "openai"}).ai_api_key == "o"
        assert config.model_copy(update={"ai_provider": "mock"}).ai_api_key is None

    def test_redacted(self):
        config = PipelineConfig(gemini_api_key="secret")

        data = config.redacted()

        assert data["gemini_api_key"] == "***"
        assert data["openai_api_key"] is None

    def test_gate_accepts_dict(self):
        config = PipelineConfig(ai_gate={"mode": "always"})

        assert config.ai_gate == AIGateConfig(mode="always")


class TestConfigFiles:
    def test_save_and_load(self, tmp_path):
        path = tmp_path / "config" / "config.yaml"
        original = ConfigModel(
            output_dir=str(tmp_path / "runs"),
            pipeline=PipelineConfig(user_id="reader", user_interests=["science"], batch_size=4),
        )

        save_config(original, path)
        loaded = load_config(path)

        assert loaded == original

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("pipeline: [unclosed")

        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(path)

    def test_invalid_settings(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"pipeline": {"batch_size": -3}}))

        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(path)

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert load_config(path) == ConfigModel()


class TestConfigManager:
    @pytest.fixture(autouse=True)
    def setup(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        self.path = tmp_path / "config.yaml"
        self.tmp_path = tmp_path

    def _write(self, **pipeline):
        save_config(ConfigModel(output_dir=str(self.tmp_path / "runs"), pipeline=PipelineConfig(**pipeline)), self.path)
        return Config(self.path)

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        config = self._write()

        assert config.get_pipeline_config().gemini_api_key == "env-key"

    def test_file_key_wins(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        config = self._write(gemini_api_key="file-key")

        assert config.get_pipeline_config().gemini_api_key == "file-key"

    def test_no_key(self):
        assert self._write().get_pipeline_config().gemini_api_key is None

    def test_run_dir_created(self):
        run_dir = self._write().get_run_dir("run-1")

        assert run_dir.is_dir()
        assert run_dir.parent == self.tmp_path / "runs"
