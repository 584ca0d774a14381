"""
This module is used for migrating a Kubernetes Ingress
over to an Istio VirtualService.
"""
import sys

from istio_ingress_migrator.cli import main

if __name__ == "__main__":
    sys.exit(main())
