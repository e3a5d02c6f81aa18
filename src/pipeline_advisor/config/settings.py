"""Central configuration via Pydantic Settings. All values driven by env vars."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Zero-shot classifier (Hugging Face Inference API)
    hf_token: str = ""
    classifier_model: str = "facebook/bart-large-mnli"
    classifier_base_url: str = "https://api-inference.huggingface.co/models"
    classifier_timeout_s: float = 30.0
    classifier_heuristic_fallback: bool = True
    classifier_cache_db_path: str = "data/classifier_cache.db"

    # Parameter override model (empty param_model disables the phase)
    param_provider: Literal["huggingface", "gemini", "openai"] = "huggingface"
    param_model: str = ""
    param_api_key: str = ""
    param_temperature: float = 0.2
    param_max_new_tokens: int = 600
    param_timeout_s: float = 30.0

    # Rule engine
    polyglot_threshold_pct: float = 20.0
    monorepo_file_count: int = 200
    summary_max_files: int = 30
    summary_max_languages: int = 8

    # Merge policy
    rule_dominant_threshold: float = 0.97
    merge_threshold: float = 0.5
    multi_template: bool = False

    # Storage
    trace_db_path: str = "data/traces.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True

    model_config = {"env_file": ".env", "env_prefix": "ADVISOR_"}

    @property
    def classifier_enabled(self) -> bool:
        return bool(self.hf_token and self.classifier_model)

    @property
    def override_enabled(self) -> bool:
        if not self.param_model:
            return False
        if self.param_provider == "huggingface":
            return bool(self.hf_token)
        return bool(self.param_api_key)
