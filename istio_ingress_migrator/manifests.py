"""
Offline source and sink: Ingress manifests on disk and VirtualService
manifests on a stream.
"""

import json
import logging
from typing import IO, Any, Dict, Iterator, List

import yaml

from istio_ingress_migrator.errors import NotFoundError, TransportError
from istio_ingress_migrator.models import IngressSpec, VirtualServiceSpec

logger = logging.getLogger(__name__)


def _iter_items(documents: List[Any]) -> Iterator[Dict]:
    for document in documents:
        if not isinstance(document, dict):
            continue
        items: Any = document.get("items")
        if str(document.get("kind") or "").endswith("List") and isinstance(items, list):
            for item in items:
                if isinstance(item, dict):
                    yield item
        else:
            yield document


class FileIngressSource:
    """
    Looks up an Ingress in a YAML or JSON manifest file.
    The file may hold one object, a `kind: List` (as written by
    `kubectl get ingress -o json`) or several YAML documents.
    """

    def __init__(self, path: str) -> None:
        self.path: str = path

    def _load(self) -> List[Any]:
        try:
            with open(self.path) as manifest_file:
                return list(yaml.safe_load_all(manifest_file))
        except OSError as exc:
            raise TransportError(f"Error reading {self.path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise TransportError(f"Error parsing {self.path}: {exc}") from exc

    def get(self, namespace: str, name: str) -> IngressSpec:
        for item in _iter_items(self._load()):
            if item.get("kind") != "Ingress":
                continue
            metadata: Any = item.get("metadata")
            if not isinstance(metadata, dict):
                continue
            if (metadata.get("name"), metadata.get("namespace") or "default") != (
                name,
                namespace,
            ):
                continue
            logger.debug("Found Ingress %s/%s in %s", namespace, name, self.path)
            return IngressSpec.from_dict(item)
        raise NotFoundError(f"Ingress {namespace}/{name} not found in {self.path}")


class ManifestSink:
    """
    Writes the VirtualService manifest instead of creating it.
    """

    def __init__(self, stream: IO[str], output: str = "yaml") -> None:
        if output not in ("yaml", "json"):
            raise ValueError(f"Unknown output format: {output}")
        self.stream: IO[str] = stream
        self.output: str = output

    def create(self, spec: VirtualServiceSpec) -> dict:
        body: dict = spec.to_dict()
        if self.output == "json":
            json.dump(body, self.stream, indent=4, sort_keys=True)
            self.stream.write("\n")
        else:
            yaml.safe_dump(body, self.stream, sort_keys=False)
        return body
