from adapters.web.startup import create_app, run_web_host

__all__ = [
    "create_app",
    "run_web_host",
]
