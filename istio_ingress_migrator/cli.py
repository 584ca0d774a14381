"""
Command line entry point: migrate one Ingress to an Istio VirtualService.
"""

import argparse
import logging
import os
import sys
from typing import Any, List, Optional

from kubernetes.client import ApiClient

from istio_ingress_migrator.errors import MigrationError
from istio_ingress_migrator.kube import (
    KubeIngressSource,
    KubeVirtualServiceSink,
    load_api_client,
)
from istio_ingress_migrator.manifests import FileIngressSource, ManifestSink
from istio_ingress_migrator.migrator import IngressMigrator
from istio_ingress_migrator.models import VirtualServiceSpec

logger = logging.getLogger("istio_ingress_migrator")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="istio-ingress-migrator",
        description="Create an Istio VirtualService from a Kubernetes Ingress.",
    )
    parser.add_argument(
        "-n", "--namespace", default="default", help="Kubernetes namespace"
    )
    parser.add_argument(
        "-i", "--ingressname", default="", help="Name of the Ingress resource"
    )
    parser.add_argument(
        "--kubeconfig",
        default=os.environ.get("KUBECONFIG"),
        help="Path to a kubeconfig file (default: $KUBECONFIG)",
    )
    parser.add_argument("--context", default=None, help="Kubeconfig context")
    parser.add_argument(
        "-f",
        "--file",
        default=None,
        help="Read the Ingress from a YAML/JSON manifest instead of the cluster",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the VirtualService manifest instead of creating it",
    )
    parser.add_argument(
        "-o",
        "--output",
        choices=("yaml", "json"),
        default="yaml",
        help="Manifest format for --dry-run",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.namespace or not args.ingressname:
        parser.error("--namespace and --ingressname must not be empty")

    level: int = logging.DEBUG if args.verbose else logging.INFO
    try:
        api_client: Optional[ApiClient] = None
        if not (args.file and args.dry_run):
            api_client = load_api_client(args.kubeconfig, args.context)
        source: Any = (
            FileIngressSource(args.file) if args.file else KubeIngressSource(api_client)
        )
        sink: Any = (
            ManifestSink(sys.stdout, args.output)
            if args.dry_run
            else KubeVirtualServiceSink(api_client)
        )
        migrator = IngressMigrator(source, sink, level=level)
        virtual_service: VirtualServiceSpec = migrator.migrate(
            args.namespace, args.ingressname
        )
    except MigrationError as exc:
        logger.critical(
            "Error migrating Ingress %s/%s: %s", args.namespace, args.ingressname, exc
        )
        return 1

    if not args.dry_run:
        print(
            f"Successfully created VirtualService {virtual_service.name} "
            f"in namespace {virtual_service.namespace}"
        )
    return 0
