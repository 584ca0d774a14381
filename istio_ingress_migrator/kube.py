"""
Cluster-facing source and sink built on the official kubernetes client.
"""

import logging
from typing import Any, Dict, Optional

import urllib3
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException

from istio_ingress_migrator.errors import (
    ConflictError,
    KubeConfigError,
    MigrationError,
    NotFoundError,
    TransportError,
)
from istio_ingress_migrator.models import IngressSpec, VirtualServiceSpec

ISTIO_GROUP: str = "networking.istio.io"
ISTIO_VERSION: str = "v1alpha3"
VIRTUAL_SERVICE_PLURAL: str = "virtualservices"

logger = logging.getLogger(__name__)


def load_api_client(
    kubeconfig: Optional[str] = None, context: Optional[str] = None
) -> client.ApiClient:
    """
    Resolve the cluster configuration and return an ApiClient.
    An explicit kubeconfig or context wins; otherwise the in-cluster
    configuration is tried before the default kubeconfig.
    :param kubeconfig: Path to a kubeconfig file.
    :param context: The kubeconfig context to use.
    :return: client.ApiClient
    """
    try:
        if kubeconfig or context:
            config.load_kube_config(config_file=kubeconfig, context=context)
            logger.debug("Using kubeconfig %s (context %s)", kubeconfig, context)
        else:
            try:
                config.load_incluster_config()
                logger.debug("Using in-cluster Kubernetes configuration")
            except ConfigException:
                config.load_kube_config()
                logger.debug("Using default kubeconfig")
    except (ConfigException, OSError) as exc:
        raise KubeConfigError(f"Error getting Kubernetes config: {exc}") from exc
    return client.ApiClient()


def _translate(exc: ApiException, what: str) -> MigrationError:
    if exc.status == 404:
        return NotFoundError(f"{what} not found: {exc.reason}")
    if exc.status == 409:
        return ConflictError(f"{what} already exists: {exc.reason}")
    return TransportError(f"{what}: API returned {exc.status} {exc.reason}")


class KubeIngressSource:
    """
    Reads networking.k8s.io/v1 Ingresses from the cluster.
    """

    def __init__(self, api_client: client.ApiClient) -> None:
        self.api_client: client.ApiClient = api_client
        self.networking_api: client.NetworkingV1Api = client.NetworkingV1Api(api_client)

    def get(self, namespace: str, name: str) -> IngressSpec:
        what: str = f"Ingress {namespace}/{name}"
        try:
            ingress: Any = self.networking_api.read_namespaced_ingress(
                name=name, namespace=namespace
            )
        except ApiException as exc:
            raise _translate(exc, what) from exc
        except urllib3.exceptions.HTTPError as exc:
            raise TransportError(f"Error getting {what}: {exc}") from exc
        item: Dict[str, Any] = self.api_client.sanitize_for_serialization(ingress)
        return IngressSpec.from_dict(item)


class KubeVirtualServiceSink:
    """
    Creates Istio VirtualServices. Existing objects are never overwritten.
    """

    def __init__(self, api_client: client.ApiClient) -> None:
        self.custom_api: client.CustomObjectsApi = client.CustomObjectsApi(api_client)

    def create(self, spec: VirtualServiceSpec) -> dict:
        what: str = f"VirtualService {spec.namespace}/{spec.name}"
        try:
            created: dict = self.custom_api.create_namespaced_custom_object(
                group=ISTIO_GROUP,
                version=ISTIO_VERSION,
                namespace=spec.namespace,
                plural=VIRTUAL_SERVICE_PLURAL,
                body=spec.to_dict(),
            )
        except ApiException as exc:
            raise _translate(exc, what) from exc
        except urllib3.exceptions.HTTPError as exc:
            raise TransportError(f"Error creating {what}: {exc}") from exc
        logger.info("Created %s", what)
        return created
