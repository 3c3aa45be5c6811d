"""
Tests for per-stage model selection.
"""

from banquet.llm.model_router import DEFAULT_CONFIG, get_stage_config


class TestGetStageConfig:
    def test_recipe_selection_is_small_and_cool(self):
        config = get_stage_config("recipe_selection")
        assert config["model"] == "gpt-4o-mini"
        assert config["temperature"] == 0.3
        assert config["max_tokens"] == 1000

    def test_analysis_stages_use_default(self):
        for stage in ("dietary", "dietary_refinement", "budget"):
            assert get_stage_config(stage) == DEFAULT_CONFIG

    def test_unknown_stage_falls_back(self):
        assert get_stage_config("nonexistent") == DEFAULT_CONFIG

    def test_returns_copy(self):
        config = get_stage_config("dietary")
        config["model"] = "changed"
        assert get_stage_config("dietary")["model"] == "gpt-4"
