"""
Model configuration and switching for quiz generation.
Quiz generation runs under a tight wall-clock budget, so only fast,
inexpensive models are listed here.
"""

from typing import Dict, Any, Optional
from enum import Enum


class ModelProvider(str, Enum):
    OPENAI = "openai"
    GROQ = "groq"


# Model configurations
MODEL_CONFIGS: Dict[str, Dict[str, Any]] = {
    "gpt-4o-mini": {
        "provider": ModelProvider.OPENAI,
        "model": "gpt-4o-mini",
        "max_tokens": 1500
    },
    "gpt-5-mini": {
        "provider": ModelProvider.OPENAI,
        "model": "gpt-5-mini",
        "max_tokens": 1500
    },
    "llama-3.1-8b": {
        "provider": ModelProvider.GROQ,
        "model": "llama-3.1-8b-instant",
        "max_tokens": 1500
    },
    "llama-4-scout": {
        "provider": ModelProvider.GROQ,
        "model": "meta-llama/llama-4-scout-17b-16e-instruct",
        "max_tokens": 1500
    }
}

DEFAULT_MODEL = "gpt-4o-mini"


class ModelConfig:
    """Model configuration manager"""

    @staticmethod
    def get_config(model_key: Optional[str] = None) -> Dict[str, Any]:
        """Get configuration for specified model or default"""
        key = model_key or DEFAULT_MODEL

        if key not in MODEL_CONFIGS:
            raise ValueError(f"Unknown model: {key}. Available: {list(MODEL_CONFIGS.keys())}")

        return MODEL_CONFIGS[key]

    @staticmethod
    def get_available_models() -> list:
        """List all available models"""
        return list(MODEL_CONFIGS.keys())

    @staticmethod
    def get_provider(model_key: Optional[str] = None) -> ModelProvider:
        return ModelConfig.get_config(model_key)["provider"]
