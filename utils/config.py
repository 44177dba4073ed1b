import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_MODEL = "gemini-2.5-flash-lite"  # Cost effective model


class Settings(BaseModel):
    """Runtime settings for the grading service."""

    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    temperature: float = 0.2
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load settings from the process environment.
        A .env file in the working directory is read first if present.
        """
        load_dotenv()

        return cls(
            api_key=os.getenv("GOOGLE_API_KEY") or None,
            model=os.getenv("GRADER_MODEL", DEFAULT_MODEL),
            temperature=float(os.getenv("GRADER_TEMPERATURE", "0.2")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
        )
