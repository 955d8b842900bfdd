__all__ = ["LoadRunner", "run_load", "LoadConfig", "build_config", "RunResult", "ConfigurationError", "render_report"]


from .core import LoadRunner, run_load
from .config import LoadConfig, build_config
from .models import RunResult
from .errors import ConfigurationError
from .rendering import render_report
