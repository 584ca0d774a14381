"""
Plain data views of the Ingress we read and the VirtualService we produce.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from istio_ingress_migrator.errors import MalformedInputError

ISTIO_API_VERSION: str = "networking.istio.io/v1alpha3"
VIRTUAL_SERVICE_KIND: str = "VirtualService"


def _mapping(value: Any, location: str) -> Dict[str, Any]:
    """
    Return a serialized object node, treating a missing node as empty.
    :param value: The node read from the manifest.
    :param location: Field path of the node, used in errors.
    :return: dict
    """
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedInputError(
            location,
            f"Ingress field '{location}' must be a mapping, "
            f"got {type(value).__name__}",
        )
    return value


def _sequence(value: Any, location: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedInputError(
            location,
            f"Ingress field '{location}' must be a list, got {type(value).__name__}",
        )
    return value


@dataclass(frozen=True)
class IngressPathRule:
    """
    One path entry of an Ingress rule, reduced to what the mapping needs.
    """

    backend_service_name: Optional[str] = None
    backend_service_port: Optional[int] = None
    backend_port_name: Optional[str] = None
    resource_backend: Optional[str] = None
    path: Optional[str] = None
    path_type: Optional[str] = None

    @classmethod
    def from_dict(cls, path: Any, location: str = "path") -> "IngressPathRule":
        """
        Build a path rule from a serialized Ingress path.
        Both networking.k8s.io/v1 and the legacy v1beta1 backend layout are read.
        :param path: A path branch of an Ingress rule.
        :param location: Field path of the branch, used in errors.
        :return: IngressPathRule
        """
        path = _mapping(path, location)
        backend: Dict[str, Any] = _mapping(path.get("backend"), f"{location}.backend")
        svc_name: Optional[str] = None
        svc_port: Optional[int] = None
        port_name: Optional[str] = None
        resource_kind: Optional[str] = None

        service: Optional[Any] = backend.get("service")
        resource: Optional[Any] = backend.get("resource")
        if service is not None:
            service = _mapping(service, f"{location}.backend.service")
            svc_name = service.get("name")
            port: Dict[str, Any] = _mapping(
                service.get("port"), f"{location}.backend.service.port"
            )
            svc_port, port_name = _split_port(port.get("number"), port.get("name"))
        elif "serviceName" in backend:
            svc_name = backend.get("serviceName")
            svc_port, port_name = _split_port(backend.get("servicePort"), None)
        elif resource is not None:
            resource = _mapping(resource, f"{location}.backend.resource")
            resource_kind = str(resource.get("kind", "Resource"))

        return cls(
            backend_service_name=None if svc_name is None else str(svc_name),
            backend_service_port=svc_port,
            backend_port_name=port_name,
            resource_backend=resource_kind,
            path=path.get("path"),
            path_type=path.get("pathType"),
        )


def _split_port(number: Any, name: Any) -> Tuple[Optional[int], Optional[str]]:
    # servicePort in v1beta1 is an int-or-string
    if isinstance(number, bool):
        return None, None
    if isinstance(number, int):
        return number, None
    if isinstance(number, str):
        if number.isdigit():
            return int(number), None
        return None, number
    if name is not None:
        return None, str(name)
    return None, None


@dataclass(frozen=True)
class IngressRule:
    host: Optional[str] = None
    paths: Tuple[IngressPathRule, ...] = ()

    @classmethod
    def from_dict(cls, rule: Any, location: str = "rule") -> "IngressRule":
        rule = _mapping(rule, location)
        host: Any = rule.get("host")
        if host is not None and not isinstance(host, str):
            raise MalformedInputError(
                f"{location}.host",
                f"Ingress field '{location}.host' must be a string, "
                f"got {type(host).__name__}",
            )
        http: Dict[str, Any] = _mapping(rule.get("http"), f"{location}.http")
        paths: List[Any] = _sequence(http.get("paths"), f"{location}.http.paths")
        return cls(
            host=host,
            paths=tuple(
                IngressPathRule.from_dict(path, f"{location}.http.paths[{index}]")
                for index, path in enumerate(paths)
            ),
        )


@dataclass(frozen=True)
class IngressSpec:
    """
    Read-only view of a Kubernetes Ingress.
    """

    name: str
    namespace: str
    rules: Tuple[IngressRule, ...] = ()

    @classmethod
    def from_dict(cls, item: Dict[str, Any]) -> "IngressSpec":
        """
        Build the view from an Ingress object in its serialized (camelCase) form,
        e.g. the output of `kubectl get ingress -o json`.
        A node of the wrong shape raises MalformedInputError naming its field path.
        :param item: The Ingress object.
        :return: IngressSpec
        """
        metadata: Dict[str, Any] = _mapping(item.get("metadata"), "metadata")
        spec: Dict[str, Any] = _mapping(item.get("spec"), "spec")
        rules: List[Any] = _sequence(spec.get("rules"), "spec.rules")
        return cls(
            name=str(metadata.get("name", "")),
            namespace=str(metadata.get("namespace") or "default"),
            rules=tuple(
                IngressRule.from_dict(rule, f"spec.rules[{index}]")
                for index, rule in enumerate(rules)
            ),
        )

    @property
    def path_count(self) -> int:
        return sum(len(rule.paths) for rule in self.rules)


@dataclass(frozen=True)
class HTTPRoute:
    """
    One Istio HTTP route: a port match plus either a redirect or a destination.
    """

    name: str
    match_port: int
    redirect_scheme: Optional[str] = None
    destination_host: Optional[str] = None
    destination_port: Optional[int] = None

    @classmethod
    def redirect(cls, name: str, port: int, scheme: str) -> "HTTPRoute":
        return cls(name=name, match_port=port, redirect_scheme=scheme)

    @classmethod
    def proxy(cls, name: str, port: int, host: str, host_port: int) -> "HTTPRoute":
        return cls(
            name=name,
            match_port=port,
            destination_host=host,
            destination_port=host_port,
        )

    @property
    def is_redirect(self) -> bool:
        return self.redirect_scheme is not None

    def to_dict(self) -> dict:
        route: dict = {"name": self.name, "match": [{"port": self.match_port}]}
        if self.is_redirect:
            route["redirect"] = {"scheme": self.redirect_scheme}
        else:
            route["route"] = [
                {
                    "destination": {
                        "host": self.destination_host,
                        "port": {"number": self.destination_port},
                    }
                }
            ]
        return route


@dataclass(frozen=True)
class VirtualServiceSpec:
    """
    The Istio VirtualService produced from one Ingress.
    Route order matters: Istio evaluates `http_routes` top to bottom.
    """

    name: str
    namespace: str
    hosts: Tuple[str, ...] = ()
    gateways: Tuple[str, ...] = ()
    http_routes: Tuple[HTTPRoute, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        """
        Render the custom resource body accepted by the cluster API.
        :return: dict
        """
        return {
            "apiVersion": ISTIO_API_VERSION,
            "kind": VIRTUAL_SERVICE_KIND,
            "metadata": {"name": self.name, "namespace": self.namespace},
            "spec": {
                "hosts": list(self.hosts),
                "gateways": list(self.gateways),
                "http": [route.to_dict() for route in self.http_routes],
            },
        }
