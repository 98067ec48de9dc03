"""HTTP synthesis service."""

from supertonic_tts.srv.config import SrvConfig, load_srv_config
from supertonic_tts.srv.app import create_app

__all__ = ["create_app", "SrvConfig", "load_srv_config"]
