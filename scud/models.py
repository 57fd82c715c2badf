"""Data models for the Go Lambda build pipeline."""

import os
from enum import Enum
from typing import Dict, List, Optional


class Strategy(str, Enum):
    """Where the compiler runs."""
    AUTO = "auto"            # host toolchain first, container as fallback
    LOCAL = "local"
    CONTAINER = "container"


class Volume:
    """Bind mount handed to the container runtime."""

    def __init__(self, host_path: str, container_path: str):
        self.host_path = host_path
        self.container_path = container_path

    def to_docker_arg(self) -> str:
        return f"{self.host_path}:{self.container_path}"

    def to_dict(self) -> Dict[str, str]:
        return {"host_path": self.host_path, "container_path": self.container_path}

    def __eq__(self, other):
        if not isinstance(other, Volume):
            return NotImplemented
        return (self.host_path, self.container_path) == (other.host_path, other.container_path)

    def __repr__(self):
        return f"Volume({self.host_path} -> {self.container_path})"


class BuildSpec:
    """Resolved parameters of a single compiler invocation.

    The same command shape is used for both execution strategies. Only the
    cache directory and the output location differ between the host and the
    container.
    """

    def __init__(self, source_code: str, working_directory: str,
                 environment: Dict[str, str], cache_dir: str,
                 container_cache_dir: str, image: str, volumes: List[Volume],
                 user: str = "root", compiler: str = "go",
                 output_name: str = "main", ldflags: Optional[List[str]] = None):
        self.source_code = source_code
        self.working_directory = working_directory
        self.environment = dict(environment)
        self.cache_dir = cache_dir
        self.container_cache_dir = container_cache_dir
        self.image = image
        self.volumes = list(volumes)
        self.user = user
        self.compiler = compiler
        self.output_name = output_name
        self.ldflags = list(ldflags or [])

    def build_args(self, output_dir: str) -> List[str]:
        """Compiler arguments writing the binary into output_dir."""
        args = ["build"]
        if self.ldflags:
            args += ["-ldflags", " ".join(self.ldflags)]
        args += ["-o", f"{output_dir.rstrip('/')}/{self.output_name}"]
        return args

    def local_environment(self) -> Dict[str, str]:
        return {**self.environment, "GOCACHE": self.cache_dir}

    def container_environment(self) -> Dict[str, str]:
        return {**self.environment, "GOCACHE": self.container_cache_dir}

    def artifact_path(self, output_dir: str) -> str:
        return os.path.join(output_dir, self.output_name)

    def to_dict(self) -> Dict[str, object]:
        """Plain representation used by the command line."""
        return {
            "source_code": self.source_code,
            "working_directory": self.working_directory,
            "environment": self.environment,
            "cache_dir": self.cache_dir,
            "container_cache_dir": self.container_cache_dir,
            "image": self.image,
            "volumes": [v.to_dict() for v in self.volumes],
            "user": self.user,
            "compiler": self.compiler,
            "output_name": self.output_name,
            "ldflags": self.ldflags,
        }

    def __repr__(self):
        return f"BuildSpec(source_code={self.source_code}, working_directory={self.working_directory})"
