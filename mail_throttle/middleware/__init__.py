from .pipeline import Middleware, ThrottlesMail, run_pipeline
from .throttle_mail import GateOutcome, ThrottleMail, get_default_store, set_default_store

__all__ = [
    "GateOutcome",
    "Middleware",
    "ThrottleMail",
    "ThrottlesMail",
    "get_default_store",
    "run_pipeline",
    "set_default_store",
]
