#!/usr/bin/env python3
"""
Simple test script to verify imports work correctly.
"""

import os
import sys

# Add parent directory to Python path so we can import scud modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


def test_imports():
    """Test that all our modules import correctly."""
    print("Testing imports...")

    print("✓ Testing config import...")
    from scud.config import get_config
    config = get_config()
    print(f"  - Build root: {config.build_root}")
    print(f"  - Strategy: {config.strategy.value}")

    print("✓ Testing hasher import...")
    from scud.hasher import compute_fingerprint

    print("✓ Testing bundler import...")
    from scud.bundler import Bundler, plan_build, prepare

    print("✓ Testing runtime import...")
    from scud.runtime import asset_code_go

    print("✓ Testing handler import...")
    from scud.handler import Lambda, go

    print("✓ Testing gateway import...")
    from scud.gateway import gateway, mk_service

    print("✓ Testing command line import...")
    from bundle import main

    print("\n🎉 All imports successful!")


def test_basic_functionality(tmp_path):
    """Test basic functionality without AWS or a Go toolchain."""
    print("\nTesting basic functionality...")

    from scud.bundler import prepare
    from scud.config import Config

    (tmp_path / "main.go").write_text("package main\n")
    fingerprint, spec = prepare(tmp_path, ".", Config(build_root="/go"))

    print(f"✓ Fingerprint: {fingerprint}")
    print(f"✓ Build spec: {spec}")
    assert len(fingerprint) == 64
    assert spec.build_args("/asset-output")[-1] == "/asset-output/main"


if __name__ == "__main__":
    test_imports()
