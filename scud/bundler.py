"""Build planning and compiler execution for Go Lambda functions.

A build runs either with the toolchain installed on the host or inside the
``golang`` container image. Both strategies run the same ``go build``
command; they differ only in the sandbox.
"""

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Tuple, Union

from .config import Config, get_config
from .deployment_config import BUILD_CONFIG
from .errors import CompilerError, ConfigurationError
from .hasher import compute_fingerprint
from .models import BuildSpec, Strategy, Volume

logger = logging.getLogger(__name__)


def container_path(path: str, build_root: str,
                   container_root: str = BUILD_CONFIG["container_root"]) -> str:
    """Translate a host path under build_root into its in-container form.

    Paths outside build_root are returned unchanged.
    """
    host_path = Path(os.path.abspath(path))
    root = Path(os.path.abspath(build_root))
    try:
        relative = host_path.relative_to(root)
    except ValueError:
        return str(host_path)

    if relative == Path("."):
        return container_root
    return str(PurePosixPath(container_root, relative.as_posix()))


def _ldflags(version: Optional[str], go_vars: Optional[Dict[str, str]]) -> List[str]:
    flags = []
    if version:
        flags.append(f"-X main.version={version}")
    for name, value in sorted((go_vars or {}).items()):
        flags.append(f"-X {name}={value}")
    return flags


def plan_build(source_root: Union[str, Path], entry_point: str = ".",
               config: Optional[Config] = None, version: Optional[str] = None,
               go_vars: Optional[Dict[str, str]] = None,
               go_env: Optional[Dict[str, str]] = None) -> BuildSpec:
    """Resolve the compiler invocation for one buildable unit of a source tree.

    Args:
        source_root: Root of the Go module
        entry_point: Package directory relative to source_root
        config: Build settings, the module level config when omitted
        version: Stamped into the binary as ``main.version``
        go_vars: Extra ``-X name=value`` linker variables
        go_env: Environment overrides for the compiler (GOARCH, CGO_ENABLED, ...)

    Raises:
        ConfigurationError: The entry point cannot be resolved to a directory
    """
    config = config or get_config()

    if os.path.isabs(entry_point):
        raise ConfigurationError(f"Entry point must be relative to the source root: {entry_point}")

    root = os.path.abspath(os.fspath(source_root))
    source_code = os.path.normpath(os.path.join(root, entry_point))
    if os.path.commonpath([root, source_code]) != root:
        raise ConfigurationError(f"Entry point {entry_point} escapes the source root {root}")

    if not os.path.isdir(source_code):
        raise ConfigurationError(f"Unable to resolve working directory: {source_code} is not a directory")

    environment = {
        "GOOS": config.target_os,
        "GOARCH": config.target_arch,
    }
    environment.update(go_env or {})

    spec = BuildSpec(
        source_code=source_code,
        working_directory=container_path(source_code, config.build_root),
        environment=environment,
        cache_dir=config.cache_dir,
        container_cache_dir=BUILD_CONFIG["container_cache"],
        image=config.image,
        volumes=[Volume(os.path.join(config.build_root, "src"), BUILD_CONFIG["container_src"])],
        user=BUILD_CONFIG["container_user"],
        compiler=BUILD_CONFIG["compiler"],
        output_name=BUILD_CONFIG["output_name"],
        ldflags=_ldflags(version, go_vars),
    )
    logger.debug(f"Planned build {spec}")
    return spec


def prepare(source_root: Union[str, Path], entry_point: str = ".",
            config: Optional[Config] = None, version: Optional[str] = None,
            go_vars: Optional[Dict[str, str]] = None,
            go_env: Optional[Dict[str, str]] = None) -> Tuple[str, BuildSpec]:
    """Fingerprint a source tree and plan the build of one of its entry points."""
    spec = plan_build(source_root, entry_point, config, version, go_vars, go_env)
    header = f"package: {Path(entry_point).as_posix()}"
    if version:
        header += f"@{version}"
    fingerprint = compute_fingerprint(source_root, header=header)
    return fingerprint, spec


def _discard_artifact(spec: BuildSpec, output_dir: str):
    artifact = spec.artifact_path(output_dir)
    if os.path.exists(artifact):
        logger.warning(f"Removing partial artifact {artifact}")
        os.remove(artifact)


def _run(cmd: List[str], description: str, spec: BuildSpec, output_dir: str,
         cwd: Optional[str] = None, env: Optional[Dict[str, str]] = None):
    """Run a command, turning a non-zero exit into CompilerError."""
    started = time.monotonic()
    logger.info(f"==> {description}")
    logger.debug(f"Command: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, cwd=cwd, env=env, capture_output=True, text=True)
    except OSError as e:
        _discard_artifact(spec, output_dir)
        raise CompilerError(f"{description} failed: {e}", command=cmd) from e

    if result.returncode != 0:
        _discard_artifact(spec, output_dir)
        logger.error(f"{description} failed with exit status {result.returncode}")
        raise CompilerError(f"{description} failed", command=cmd,
                            returncode=result.returncode, stderr=result.stderr)

    logger.info(f"==> {description} ({time.monotonic() - started:.1f}s)")


class LocalStrategy:
    """Compile with the toolchain installed on the host."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()

    def environment(self, spec: BuildSpec) -> Dict[str, str]:
        return {**self.config.host_environ, **spec.local_environment()}

    def command(self, spec: BuildSpec, output_dir: str, compiler: str) -> List[str]:
        return [compiler] + spec.build_args(output_dir) + [spec.source_code]

    def run(self, spec: BuildSpec, output_dir: str) -> bool:
        """Build on the host.

        Returns:
            False when the host cannot build (no working directory or no
            toolchain on PATH), True once the binary is written

        Raises:
            CompilerError: The compiler exited with a non-zero status
        """
        if not spec.working_directory:
            return False

        env = self.environment(spec)
        compiler = shutil.which(spec.compiler, path=env.get("PATH"))
        if compiler is None:
            logger.info(f"{spec.compiler} not found on PATH, skipping local build")
            return False

        output_dir = os.path.abspath(output_dir)
        cmd = self.command(spec, output_dir, compiler)
        _run(cmd, f"go build {spec.working_directory}", spec, output_dir,
             cwd=spec.source_code, env=env)
        return True


class ContainerStrategy:
    """Compile inside the toolchain container image."""

    def __init__(self, config: Optional[Config] = None,
                 runtime: str = BUILD_CONFIG["container_runtime"]):
        self.config = config or get_config()
        self.runtime = runtime

    def command(self, spec: BuildSpec, output_dir: str, runtime: str) -> List[str]:
        container_output = BUILD_CONFIG["output_dir"]
        cmd = [runtime, "run", "--rm", "-u", spec.user]
        for volume in spec.volumes:
            cmd += ["-v", volume.to_docker_arg()]
        cmd += ["-v", f"{output_dir}:{container_output}"]
        cmd += ["-w", spec.working_directory]
        for name, value in sorted(spec.container_environment().items()):
            cmd += ["-e", f"{name}={value}"]
        cmd += [spec.image, spec.compiler] + spec.build_args(container_output)
        return cmd

    def run(self, spec: BuildSpec, output_dir: str) -> bool:
        """Build inside the container.

        Raises:
            CompilerError: The container runtime is missing or the build failed
        """
        runtime = shutil.which(self.runtime, path=self.config.host_environ.get("PATH"))
        if runtime is None:
            raise CompilerError(f"Container runtime '{self.runtime}' not found on PATH")

        output_dir = os.path.abspath(output_dir)
        cmd = self.command(spec, output_dir, runtime)
        _run(cmd, f"{spec.image} go build {spec.working_directory}", spec, output_dir)
        return True


class Bundler:
    """Produce the Lambda binary for a BuildSpec."""

    def __init__(self, config: Optional[Config] = None,
                 local: Optional[LocalStrategy] = None,
                 container: Optional[ContainerStrategy] = None):
        self.config = config or get_config()
        self.local = local or LocalStrategy(self.config)
        self.container = container or ContainerStrategy(self.config)

    def bundle(self, spec: BuildSpec, output_dir: Union[str, Path],
               strategy: Optional[Strategy] = None) -> str:
        """Compile spec into output_dir and return the artifact path.

        Raises:
            CompilerError: The build failed or produced no binary
        """
        strategy = Strategy(strategy or self.config.strategy)
        output_dir = os.path.abspath(os.fspath(output_dir))
        os.makedirs(output_dir, exist_ok=True)

        built = False
        if strategy in (Strategy.AUTO, Strategy.LOCAL):
            built = self.local.run(spec, output_dir)
            if not built and strategy is Strategy.LOCAL:
                raise CompilerError(f"Local toolchain '{spec.compiler}' is not available")

        if not built:
            logger.info(f"Falling back to container build with image {spec.image}")
            self.container.run(spec, output_dir)

        artifact = spec.artifact_path(output_dir)
        if not os.path.isfile(artifact):
            raise CompilerError(f"Build finished without producing {artifact}")

        logger.info(f"Built {artifact}")
        return artifact
