"""Runtime configuration read from the environment."""

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_BASE_URL = "https://api.friendli.ai/serverless/v1"
DEFAULT_MODEL = "LGAI-EXAONE/K-EXAONE-236B-A23B"

DEFAULT_SYSTEM_PROMPT = """You are K-EXAONE, a helpful, harmless, and honest AI assistant developed by LG AI Research. You provide accurate, thoughtful, and detailed responses while maintaining a friendly and professional tone.

When responding:
- Be clear and concise while being thorough
- Use markdown formatting when appropriate
- Break down complex topics into digestible parts
- Acknowledge uncertainty when you don't know something
- Provide examples when helpful"""

# Client-side state lives here unless EXAONE_DATA_DIR is set
DATA_DIR = Path(os.getenv("EXAONE_DATA_DIR", str(Path.home() / ".exaone-chat")))


@dataclass(frozen=True)
class RelaySettings:
    """Settings for talking to the completion provider."""

    api_token: str = ""
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    connect_timeout: float = 10.0
    extra_body: dict = field(
        default_factory=lambda: {
            "parse_reasoning": True,
            "chat_template_kwargs": {"enable_thinking": True},
        }
    )

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    @classmethod
    def from_env(cls) -> "RelaySettings":
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            api_token=os.getenv("FRIENDLI_TOKEN", ""),
            base_url=os.getenv("FRIENDLI_BASE_URL", DEFAULT_BASE_URL),
            model=os.getenv("EXAONE_MODEL", DEFAULT_MODEL),
            system_prompt=os.getenv("EXAONE_SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT),
            connect_timeout=float(os.getenv("EXAONE_CONNECT_TIMEOUT", "10")),
        )
