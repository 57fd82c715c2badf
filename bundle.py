#!/usr/bin/env python3
"""
Fingerprint and build tool for Go Lambda functions.

This script runs the same pipeline CDK runs while synthesizing a stack:
1. Computes the content fingerprint of the Go source tree
2. Plans the compiler invocation (host paths, container paths, environment)
3. Builds the Lambda binary with the host toolchain or the golang image

Usage:
  python bundle.py ~/go/src/github.com/acme/api                    # Print fingerprint
  python bundle.py ~/go/src/github.com/acme/api --entry cmd/users --plan
  python bundle.py ~/go/src/github.com/acme/api --entry cmd/users --build
  python bundle.py SOURCE --build --strategy container --output dist/users
  python bundle.py SOURCE --test-aws                               # Check AWS credentials
"""

import argparse
import json
import logging
import os
import sys

from scud.bundler import Bundler, prepare
from scud.config import Config
from scud.deployment_config import BUILD_CONFIG
from scud.errors import ScudError
from scud.models import Strategy


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Fingerprint and build Go Lambda functions",
        epilog="Examples:\n"
               "  python bundle.py SOURCE                       # Fingerprint\n"
               "  python bundle.py SOURCE --entry cmd/users --plan\n"
               "  python bundle.py SOURCE --entry cmd/users --build",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument("source", help="Root of the Go module")
    parser.add_argument("--entry", default=".",
                        help="Lambda main package relative to SOURCE (default: SOURCE itself)")
    parser.add_argument("--version", dest="app_version",
                        help="Version stamped into main.version")

    # Actions
    parser.add_argument("--plan", action="store_true",
                        help="Print the resolved build plan as JSON")
    parser.add_argument("--build", action="store_true",
                        help="Build the Lambda binary")
    parser.add_argument("--test-aws", action="store_true",
                        help="Test AWS credentials")

    # Build options
    parser.add_argument("--output",
                        help=f"Output directory (default: {BUILD_CONFIG['local_output_root']}/<entry>)")
    parser.add_argument("--strategy", choices=[s.value for s in Strategy],
                        help="Where the compiler runs (default: SCUD_BUILD_STRATEGY or auto)")
    parser.add_argument("--verbose", action="store_true",
                        help="Show debug logs")

    return parser.parse_args(argv)


def default_output_dir(source, entry):
    """Output directory used when --output is not given."""
    name = os.path.basename(os.path.normpath(os.path.join(os.path.abspath(source), entry)))
    return os.path.join(BUILD_CONFIG["local_output_root"], name)


def test_aws_credentials(config):
    """Test AWS credentials."""
    from scud.aws_utils import AWSManager

    print(f"🔧 Testing AWS credentials in {config.aws_region}...")
    if AWSManager(region=config.aws_region).check_aws_credentials():
        print("✅ AWS credentials are working")
        return True

    print("❌ AWS credentials are not working")
    print("🔧 Check your AWS CLI configuration:")
    print("   aws configure list")
    print("   aws sts get-caller-identity")
    return False


def main(argv=None):
    """Fingerprint, plan or build a Go Lambda function."""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = Config.from_environ()

        if args.test_aws:
            return 0 if test_aws_credentials(config) else 1

        fingerprint, spec = prepare(args.source, args.entry, config, version=args.app_version)
        print(f"🔐 Fingerprint: {fingerprint}")

        if args.plan:
            print(json.dumps(spec.to_dict(), indent=2, sort_keys=True))

        if args.build:
            output_dir = args.output or default_output_dir(args.source, args.entry)
            strategy = Strategy(args.strategy) if args.strategy else None
            print(f"🔄 Building {spec.source_code}...")
            artifact = Bundler(config).bundle(spec, output_dir, strategy)
            size = os.path.getsize(artifact) / (1024 * 1024)
            print("✅ Build completed successfully!")
            print(f"📦 Artifact: {artifact}")
            print(f"📏 Size: {size:.1f} MB")

        return 0

    except ScudError as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\n🛑 Build cancelled by user.")
        sys.exit(1)
