# ai/config.py
import os
from dataclasses import dataclass
import yaml


@dataclass
class AIConfig:
    """Configuration for the generative model client"""

    # Ollama-compatible chat endpoint
    base_url: str = "http://localhost:11434"
    model: str = "llama3.1:8b"
    timeout: float = 60.0

    # Retry policy
    max_retries: int = 3
    base_delay: float = 1.0
    rate_limit_base_delay: float = 3.0
    backoff_multiplier: float = 3.0

    # Generation parameters per feature
    salary_temperature: float = 0.3
    salary_max_tokens: int = 256
    match_temperature: float = 0.3
    match_max_tokens: int = 2048
    connect_temperature: float = 0.7
    connect_max_tokens: int = 512

    @classmethod
    def from_yaml(cls, path: str):
        """Load configuration from YAML file"""
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return cls(**data.get('ai', {}))


def get_config() -> AIConfig:
    """Get AI configuration"""
    config_path = os.getenv('AI_CONFIG', 'config/ai.yaml')

    if os.path.exists(config_path):
        config = AIConfig.from_yaml(config_path)
    else:
        config = AIConfig()

    config.base_url = os.getenv('OLLAMA_HOST', config.base_url)
    config.model = os.getenv('OLLAMA_MODEL', config.model)
    return config
