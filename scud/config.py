"""Configuration management for Go Lambda builds and deployments."""

import logging
import os
from typing import Dict, Mapping, Optional

from .deployment_config import AWS_CONFIG, BUILD_CONFIG, PASSTHROUGH_ENV_VARS
from .errors import ConfigurationError
from .models import Strategy

logger = logging.getLogger(__name__)


class Config:
    """Build settings resolved once from the process environment.

    Operations never read ``os.environ`` themselves: they receive a Config
    (or fall back to ``get_config()``).
    """

    def __init__(self, build_root: str = BUILD_CONFIG["build_root"],
                 cache_dir: str = BUILD_CONFIG["host_cache"],
                 target_os: str = BUILD_CONFIG["target_os"],
                 target_arch: str = BUILD_CONFIG["target_arch"],
                 image: str = BUILD_CONFIG["image"],
                 strategy: Strategy = Strategy.AUTO,
                 aws_region: str = AWS_CONFIG["region"],
                 host_environ: Optional[Dict[str, str]] = None):
        self.build_root = build_root
        self.cache_dir = cache_dir
        self.target_os = target_os
        self.target_arch = target_arch
        self.image = image
        self.strategy = Strategy(strategy)
        self.aws_region = aws_region
        self.host_environ = dict(host_environ or {})

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Load settings from environment variables."""
        env = os.environ if environ is None else environ

        # GOPATH may list several workspaces, the first one is the build root
        gopath = env.get('GOPATH', '')
        build_root = gopath.split(os.pathsep)[0] if gopath else BUILD_CONFIG["build_root"]

        # CI runners restore GOCACHE between jobs, keep it there
        cache_dir = BUILD_CONFIG["host_cache"]
        if env.get('GITHUB_ACTION') and env.get('GOCACHE'):
            cache_dir = env['GOCACHE']

        strategy_name = env.get('SCUD_BUILD_STRATEGY', Strategy.AUTO.value).strip().lower()
        try:
            strategy = Strategy(strategy_name)
        except ValueError:
            raise ConfigurationError(
                f"SCUD_BUILD_STRATEGY must be one of {[s.value for s in Strategy]}, got '{strategy_name}'"
            )

        aws_region = env.get('AWS_REGION') or env.get('AWS_DEFAULT_REGION') or AWS_CONFIG["region"]

        host_environ = {name: env[name] for name in PASSTHROUGH_ENV_VARS if name in env}

        return cls(
            build_root=build_root,
            cache_dir=cache_dir,
            target_os=env.get('SCUD_TARGET_OS', BUILD_CONFIG["target_os"]),
            target_arch=env.get('SCUD_TARGET_ARCH', BUILD_CONFIG["target_arch"]),
            image=env.get('SCUD_BUILD_IMAGE', BUILD_CONFIG["image"]),
            strategy=strategy,
            aws_region=aws_region,
            host_environ=host_environ,
        )

    def __repr__(self):
        return (f"Config(build_root={self.build_root}, strategy={self.strategy.value}, "
                f"target={self.target_os}/{self.target_arch})")


_config: Optional[Config] = None


def get_config() -> Config:
    """Process wide settings, read from the environment on first use."""
    global _config
    if _config is None:
        _config = Config.from_environ()
    return _config
