"""
This module is used for migrating a Kubernetes Ingress
over to an Istio VirtualService.
"""

import logging
from typing import Any, List, Optional

from istio_ingress_migrator.errors import MalformedInputError, UnsupportedBackendError
from istio_ingress_migrator.models import (
    HTTPRoute,
    IngressPathRule,
    IngressSpec,
    VirtualServiceSpec,
)

LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

REDIRECT_ROUTE_NAME: str = "http-to-https"
PROXY_ROUTE_NAME: str = "pos-bff-service"
HTTP_PORT: int = 80
HTTPS_PORT: int = 443
GATEWAY_NAME: str = "ingressgateway"
MAX_PORT: int = 2**32 - 1

logger = logging.getLogger(__name__)


class IngressMigrator:
    """
    A class that represent a IngressMigrator.

    The source must offer `get(namespace, name) -> IngressSpec` and the sink
    `create(spec: VirtualServiceSpec)`. Both are only touched by `migrate`;
    `map` is a pure function of its input.
    """

    def __init__(self, source: Any, sink: Any, level: int = logging.INFO) -> None:
        """
        Class constructor.
        :param source: Where the Ingress is read from.
        :param sink: Where the VirtualService is created.
        :param level: The log level. Default: logging.INFO
        """
        logging.basicConfig(format=LOG_FORMAT, level=level)
        self.log_level: int = level
        self.source: Any = source
        self.sink: Any = sink

    @staticmethod
    def _get_hosts(ingress: IngressSpec) -> List[str]:
        """
        Only the host of the first rule is carried over.
        :param ingress: The Ingress being migrated.
        :return: list
        """
        if not ingress.rules:
            raise MalformedInputError("spec.rules")
        host: Optional[str] = ingress.rules[0].host
        if not host:
            raise MalformedInputError("spec.rules[0].host")
        for index, rule in enumerate(ingress.rules[1:], start=1):
            if rule.host and rule.host != host:
                logger.warning(
                    "Ingress %s/%s: host '%s' of spec.rules[%d] is not added to the "
                    "VirtualService hosts",
                    ingress.namespace,
                    ingress.name,
                    rule.host,
                    index,
                )
        return [host]

    @staticmethod
    def _get_redirect_route() -> HTTPRoute:
        return HTTPRoute.redirect(REDIRECT_ROUTE_NAME, HTTP_PORT, "https")

    @staticmethod
    def _get_proxy_route(path: IngressPathRule, location: str) -> HTTPRoute:
        """
        Turn an Ingress path into a route forwarding HTTPS traffic to its service.
        :param path: The path rule.
        :param location: Where the path sits in the Ingress, used in errors.
        :return: HTTPRoute
        """
        if path.resource_backend is not None:
            raise UnsupportedBackendError(
                location, f"resource backend of kind '{path.resource_backend}'"
            )
        if not path.backend_service_name:
            raise UnsupportedBackendError(location, "no backend service name")
        port: Optional[int] = path.backend_service_port
        if port is None:
            if path.backend_port_name:
                raise UnsupportedBackendError(
                    location, f"named port '{path.backend_port_name}' has no number"
                )
            raise UnsupportedBackendError(location, "no backend service port")
        if not 0 < port <= MAX_PORT:
            raise UnsupportedBackendError(location, f"port {port} is out of range")
        logger.debug(
            "%s: path %s (%s) -> %s:%d",
            location,
            path.path or "/",
            path.path_type or "ImplementationSpecific",
            path.backend_service_name,
            port,
        )
        return HTTPRoute.proxy(
            PROXY_ROUTE_NAME, HTTPS_PORT, path.backend_service_name, port
        )

    @classmethod
    def _get_routes(cls, ingress: IngressSpec) -> List[HTTPRoute]:
        """
        The redirect route goes first, followed by one route per path of every
        rule, flattened in input order.
        :param ingress: The Ingress being migrated.
        :return: list
        """
        routes: List[HTTPRoute] = [cls._get_redirect_route()]
        for rule_index, rule in enumerate(ingress.rules):
            for path_index, path in enumerate(rule.paths):
                location: str = f"spec.rules[{rule_index}].http.paths[{path_index}]"
                routes.append(cls._get_proxy_route(path, location))
        return routes

    @classmethod
    def map(cls, ingress: IngressSpec) -> VirtualServiceSpec:
        """
        Build the VirtualService for an Ingress. No I/O happens here.
        :param ingress: The Ingress being migrated.
        :return: VirtualServiceSpec
        """
        hosts: List[str] = cls._get_hosts(ingress)
        gateways: List[str] = [f"{ingress.namespace}/{GATEWAY_NAME}"]
        routes: List[HTTPRoute] = cls._get_routes(ingress)
        return VirtualServiceSpec(
            name=ingress.name,
            namespace=ingress.namespace,
            hosts=tuple(hosts),
            gateways=tuple(gateways),
            http_routes=tuple(routes),
        )

    def migrate(self, namespace: str, name: str) -> VirtualServiceSpec:
        """
        Fetch one Ingress, map it and create the VirtualService.
        Errors from the source, the mapping and the sink are not caught here.
        :param namespace: The namespace of the Ingress.
        :param name: The name of the Ingress.
        :return: VirtualServiceSpec
        """
        logger.info("Reading Ingress %s/%s", namespace, name)
        ingress: IngressSpec = self.source.get(namespace, name)
        virtual_service: VirtualServiceSpec = self.map(ingress)
        logger.debug(
            "Mapped %d path(s) to %d route(s)",
            ingress.path_count,
            len(virtual_service.http_routes),
        )
        self.sink.create(virtual_service)
        return virtual_service


def map_ingress(ingress: IngressSpec) -> VirtualServiceSpec:
    return IngressMigrator.map(ingress)
