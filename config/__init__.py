"""Configuration package for the interview session service."""
from .app_config import AppConfig, LlmRoute, load_app_registry, load_config, resolve_registry
from .registry import EVAL_KEY, QUESTION_KEY, REPORT_KEY, bind_model, get_model, unbind_model
from .settings import InterviewPolicy, Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_app_registry",
    "load_config",
    "resolve_registry",
    "EVAL_KEY",
    "QUESTION_KEY",
    "REPORT_KEY",
    "bind_model",
    "get_model",
    "unbind_model",
    "InterviewPolicy",
    "Settings",
    "settings",
]
