"""
Banquet - Prompt Logger.

Writes every reasoning call (prompts plus structured response) to a markdown
file under prompt_logs/<session>/. Enabled via BANQUET_LOG_PROMPTS=1 or the
--log-prompts CLI flag.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from banquet.config import settings

LOG_DIR = Path("prompt_logs")

# None means "follow settings"
_enabled_override: bool | None = None
_session_id: str | None = None
_call_counter: int = 0


def enable_prompt_logging(enabled: bool = True) -> None:
    global _enabled_override
    _enabled_override = enabled


def is_enabled() -> bool:
    if _enabled_override is not None:
        return _enabled_override
    return bool(settings.banquet_log_prompts)


def _get_session_dir() -> Path:
    global _session_id
    if _session_id is None:
        _session_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_dir = LOG_DIR / _session_id
    session_dir.mkdir(parents=True, exist_ok=True)
    return session_dir


def _format_response(response: Any) -> str:
    if hasattr(response, "model_dump"):
        response = response.model_dump()
    try:
        return f"```json\n{json.dumps(response, indent=2, default=str)}\n```\n"
    except (TypeError, ValueError) as e:
        return f"```\n{response}\n```\n\n(Serialization error: {e})\n"


def log_prompt(
    *,
    stage: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
    response_model: str,
    response: Any = None,
    error: str | None = None,
    attempt: int = 0,
) -> Path | None:
    """
    Log a prompt and response to a file.

    Returns:
        Path to the log file, or None if logging is disabled
    """
    if not is_enabled():
        return None

    global _call_counter
    _call_counter += 1

    filepath = _get_session_dir() / f"{_call_counter:02d}_{stage}.md"

    content = f"""# Reasoning Call: {stage}

**Time:** {datetime.now().isoformat()}
**Model:** {model}
**Response Model:** {response_model}
**Attempt:** {attempt + 1}

---

## System Prompt

```
{system_prompt}
```

---

## User Prompt

```
{user_prompt}
```

---

## Response

"""

    if error:
        content += f"**ERROR:** {error}\n"
    elif response is not None:
        content += _format_response(response)
    else:
        content += "(No response)\n"

    filepath.write_text(content, encoding="utf-8")
    return filepath


def reset_session() -> None:
    """Reset the session (for tests)."""
    global _session_id, _call_counter
    _session_id = None
    _call_counter = 0
