"""Basic health check tests."""


def test_import_banquet():
    """Test that banquet package can be imported."""
    import banquet
    assert banquet.__version__ == "1.0.0"


def test_import_state():
    """Test that state models can be imported."""
    from banquet.workflow.state import WorkflowResult, WorkflowStep

    step = WorkflowStep(step_name="Dietary Analysis", agent_type="dietary")
    assert step.status == "pending"
    assert step.retry_count == 0

    result = WorkflowResult(success=True, meal_plan_id="p", execution_time_ms=5, steps=[step])
    assert result.completed_steps == 0


def test_settings_defaults():
    from banquet.config import Settings

    settings = Settings(supabase_url=None, supabase_key=None)
    assert settings.has_supabase is False
    assert settings.refinement_confidence_threshold == 0.7
    assert settings.variety_threshold == 0.6
    assert settings.budget_overrun_threshold == 0.15
