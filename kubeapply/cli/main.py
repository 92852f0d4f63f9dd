"""kubeapply CLI - Command-line interface for applying manifests.

This module provides the main CLI entrypoint for kubeapply, applying the
documents named in an instruction file to a Kubernetes API server.
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from kubeapply import __version__
from kubeapply.core.config import (
    ApplyConfig,
    as_bool,
    as_kinds,
    get_config_value,
    load_config,
)
from kubeapply.core.controller import run
from kubeapply.core.errors import ConfigurationError, InstructionError
from kubeapply.core.reporter import Reporter
from kubeapply.k8s.reconciler import Reconciler
from kubeapply.k8s.transport import KubeTransport, build_client, read_token

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="kubeapply",
        description="kubeapply - apply Kubernetes manifests from an instruction list",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Apply instructions against a cluster
  kubeapply https://127.0.0.1:6443 token.txt demo instructions.json --ca-cert ca.crt

  # Stop at the first failed document
  kubeapply https://127.0.0.1:6443 token.txt demo instructions.json --abort-on-error

Instruction file format:
  [
    {"uri": "file:///path/to/namespace.yaml", "action": "create"},
    {"uri": "https://host/pod.yaml", "action": "replace"}
  ]

Note:
  Settings may also come from kubeapply.json (or $KUBEAPPLY_CONFIG), e.g.
  {"k8s": {"ca_cert": "ca.crt"}, "apply": {"abort_on_error": true}},
  or from environment variables such as K8S_CA_CERT and APPLY_ABORT_ON_ERROR.
"""
    )
    parser.add_argument("api_server", help="API server base URL, e.g. https://127.0.0.1:6443")
    parser.add_argument("token_file", help="File holding the bearer token")
    parser.add_argument("default_namespace", help="Namespace forced onto namespaced resources")
    parser.add_argument("instructions", help="JSON instruction list")
    parser.add_argument(
        "--ca-cert",
        help="PEM CA bundle for the API server (default: from config or system trust)"
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Disable TLS verification (testing only)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: from config or 30)"
    )
    parser.add_argument(
        "--abort-on-error",
        action="store_true",
        help="Stop at the first failed document"
    )
    parser.add_argument(
        "--delete-wait-timeout",
        type=float,
        default=None,
        help="Seconds to wait for a deleted pod to disappear before recreating it "
             "(default: from config or 30, 0 disables)"
    )
    parser.add_argument(
        "--config",
        help="Path to JSON config file (default: $KUBEAPPLY_CONFIG or kubeapply.json)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument("--version", action="version", version=f"kubeapply {__version__}")
    return parser


def build_config(args: argparse.Namespace, token: str, config: Dict[str, Any]) -> ApplyConfig:
    """Merge CLI arguments with config file and environment values.

    CLI flags win over the config file, which wins over environment variables.
    """
    abort_on_error = args.abort_on_error or as_bool(
        get_config_value(["apply", "abort_on_error"], default=False, config=config)
    )
    delete_wait_timeout = args.delete_wait_timeout
    if delete_wait_timeout is None:
        delete_wait_timeout = get_config_value(
            ["apply", "delete_wait_timeout"], default=30.0, config=config
        )
    poll_interval = get_config_value(
        ["apply", "delete_poll_interval"], default=1.0, config=config
    )
    cluster_scoped = get_config_value(["apply", "cluster_scoped_kinds"], config=config)

    try:
        return ApplyConfig(
            api_server=args.api_server,
            token=token,
            default_namespace=args.default_namespace,
            abort_on_error=abort_on_error,
            delete_wait_timeout=float(delete_wait_timeout),
            delete_poll_interval=float(poll_interval),
            cluster_scoped_kinds=as_kinds(cluster_scoped),
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint for kubeapply."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s')

    load_dotenv()
    config_file = load_config(args.config)

    try:
        token = read_token(args.token_file)
        config = build_config(args, token, config_file)
        ca_cert = args.ca_cert or get_config_value(["k8s", "ca_cert"], config=config_file)
        insecure = args.insecure or as_bool(
            get_config_value(["k8s", "insecure"], default=False, config=config_file)
        )
        timeout = args.timeout
        if timeout is None:
            timeout = float(get_config_value(["k8s", "timeout"], default=30.0, config=config_file))
        client = build_client(ca_cert=ca_cert, insecure=insecure, timeout=timeout)
    except (ConfigurationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"API: {config.api_server}")
    print(f"Namespace: {config.default_namespace}")
    print(f"Instructions: {args.instructions}")

    try:
        reconciler = Reconciler(KubeTransport(client, config.token), config, reporter=Reporter())
        results, metadata = run(args.instructions, reconciler)
    except InstructionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        client.close()

    summary = metadata["summary"]
    print(f"\nDocuments: {summary['total']}")
    print(f"Succeeded: {summary['succeeded']}")
    print(f"Failed: {summary['failed']}")
    for outcome, count in sorted(summary["by_outcome"].items()):
        print(f"  {outcome}: {count}")
    for label in summary["failures"]:
        print(f"  ✗ {label}")

    if metadata["aborted"]:
        print("\n❌ Aborted after first failure (--abort-on-error)")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
