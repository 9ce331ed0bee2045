"""Base resource model for Kubetask.

A Resource wraps one Kubernetes-style unstructured document::

    {apiVersion, kind, metadata: {name, namespace, uid, labels, annotations,
     ownerReferences, finalizers}, spec, status}

Resources are values. The model is frozen and every operation that
"changes" a resource returns a deep copy, so resources handed back to the
host never alias the observed snapshot.
"""

import copy
import logging
from collections.abc import Mapping
from typing import Any, Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, JsonValue, ValidationError

from ..errors import ConfigurationError
from .annotations import ANNOTATION_CREATED_DUE_TO_WATCH, ANNOTATION_RUN_UID
from .paths import ABSENT, get_path

logger = logging.getLogger(__name__)


class ResourceIdentity(NamedTuple):
    """The 5-tuple that identifies a resource."""

    api_version: str
    kind: str
    namespace: str
    name: str
    uid: str

    def __str__(self) -> str:
        return f"{self.api_version}, Kind={self.kind}: {self.namespace!r} / {self.name!r}"


class ResourceKey(NamedTuple):
    """Identity without uid; used to address attachments."""

    api_version: str
    kind: str
    namespace: str
    name: str


class OwnerRef(NamedTuple):
    """Typed provenance of a resource.

    Only the annotation boundary deals with raw annotation strings; engine
    code compares OwnerRef values.
    """

    kind: Literal["Run", "Watch"]
    uid: str


class Resource(BaseModel):
    """A single unstructured resource.

    Attributes:
        document: The full resource document, validated as a JSON value tree

    Example:
        >>> pod = Resource.from_document({
        ...     "apiVersion": "v1",
        ...     "kind": "Pod",
        ...     "metadata": {"name": "web", "namespace": "default"},
        ... })
        >>> pod.with_name("web-0").name
        'web-0'
    """

    model_config = ConfigDict(frozen=True)

    document: dict[str, JsonValue]

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Resource":
        """Build a resource from a raw document.

        The document is deep-copied, so later changes to the caller's
        mapping do not leak into the resource.

        Raises:
            ConfigurationError: If document is not a mapping of JSON values
        """
        if isinstance(document, Resource):
            return document.deep_copy()
        if not isinstance(document, Mapping):
            raise ConfigurationError(
                f"Invalid resource: Expected a mapping, got {type(document).__name__}"
            )
        try:
            return cls(document=copy.deepcopy(dict(document)))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid resource document: {e}") from e

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def api_version(self) -> str:
        return _as_str(self.document.get("apiVersion"))

    @property
    def kind(self) -> str:
        return _as_str(self.document.get("kind"))

    @property
    def metadata(self) -> dict[str, Any]:
        metadata = self.document.get("metadata")
        return metadata if isinstance(metadata, dict) else {}

    @property
    def name(self) -> str:
        return _as_str(self.metadata.get("name"))

    @property
    def generate_name(self) -> str:
        return _as_str(self.metadata.get("generateName"))

    @property
    def namespace(self) -> str:
        return _as_str(self.metadata.get("namespace"))

    @property
    def uid(self) -> str:
        return _as_str(self.metadata.get("uid"))

    @property
    def labels(self) -> dict[str, str]:
        return _string_map(self.metadata.get("labels"))

    @property
    def annotations(self) -> dict[str, str]:
        return _string_map(self.metadata.get("annotations"))

    @property
    def owner_references(self) -> list[dict[str, Any]]:
        refs = self.metadata.get("ownerReferences")
        if not isinstance(refs, list):
            return []
        return [copy.deepcopy(ref) for ref in refs if isinstance(ref, dict)]

    @property
    def finalizers(self) -> list[str]:
        finalizers = self.metadata.get("finalizers")
        if not isinstance(finalizers, list):
            return []
        return [f for f in finalizers if isinstance(f, str)]

    @property
    def spec(self) -> Any:
        return copy.deepcopy(self.document.get("spec"))

    @property
    def status(self) -> Any:
        return copy.deepcopy(self.document.get("status"))

    @property
    def gvk(self) -> str:
        """Group/version/kind rendered the way status messages show it."""
        return f"{self.api_version}, Kind={self.kind}"

    @property
    def provenance(self) -> OwnerRef | None:
        """The watch that caused this resource to be created, if any."""
        uid = self.annotations.get(ANNOTATION_CREATED_DUE_TO_WATCH)
        if not uid:
            return None
        return OwnerRef(kind="Watch", uid=uid)

    @property
    def run_owner(self) -> OwnerRef | None:
        """The Run that emitted this resource, if any."""
        uid = self.annotations.get(ANNOTATION_RUN_UID)
        if not uid:
            return None
        return OwnerRef(kind="Run", uid=uid)

    def is_owned_by_watch(self, watch_uid: str) -> bool:
        """Check whether this resource was created due to the given watch."""
        return self.provenance == OwnerRef(kind="Watch", uid=watch_uid)

    # ------------------------------------------------------------------
    # Identity and equality
    # ------------------------------------------------------------------

    def identity(self) -> ResourceIdentity:
        return ResourceIdentity(
            api_version=self.api_version,
            kind=self.kind,
            namespace=self.namespace,
            name=self.name,
            uid=self.uid,
        )

    @property
    def key(self) -> ResourceKey:
        return ResourceKey(self.api_version, self.kind, self.namespace, self.name)

    def equals_by_identity(self, other: "Resource") -> bool:
        if other is None:
            return False
        return self.identity() == other.identity()

    def equals_by_value(self, other: "Resource") -> bool:
        """Compare identity, metadata collection sizes, then full structure."""
        if not self.equals_by_identity(other):
            return False
        if (
            len(self.labels) != len(other.labels)
            or len(self.annotations) != len(other.annotations)
            or len(self.owner_references) != len(other.owner_references)
            or len(self.finalizers) != len(other.finalizers)
        ):
            return False
        return self.document == other.document

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def get_path(self, path: str) -> Any:
        """Return the value at a dot-separated path, or ABSENT."""
        value = get_path(self.document, path)
        if value is ABSENT:
            return ABSENT
        return copy.deepcopy(value)

    def has_path(self, path: str) -> bool:
        """True when path resolves, even if the value there is null."""
        return get_path(self.document, path) is not ABSENT

    # ------------------------------------------------------------------
    # Copy-on-write helpers
    # ------------------------------------------------------------------

    def deep_copy(self) -> "Resource":
        return Resource(document=copy.deepcopy(self.document))

    def to_document(self) -> dict[str, Any]:
        """Return a deep copy of the underlying document."""
        return copy.deepcopy(self.document)

    def with_name(self, name: str) -> "Resource":
        return self._with_metadata(name=name)

    def with_generate_name(self, generate_name: str) -> "Resource":
        """Copy with generateName set; an empty value removes the field."""
        return self._with_metadata(generateName=generate_name or None)

    def with_annotation(self, key: str, value: str) -> "Resource":
        return self.with_annotations({key: value})

    def with_annotations(self, annotations: Mapping[str, str]) -> "Resource":
        existing = self.metadata.get("annotations")
        merged = copy.deepcopy(existing) if isinstance(existing, dict) else {}
        merged.update(annotations)
        return self._with_metadata(annotations=merged)

    def _with_metadata(self, **fields: Any) -> "Resource":
        document = self.to_document()
        metadata = document.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
            document["metadata"] = metadata
        for key, value in fields.items():
            if value is None:
                metadata.pop(key, None)
            else:
                metadata[key] = value
        return Resource(document=document)

    def __str__(self) -> str:
        return f"{self.namespace!r} / {self.name!r}: {self.gvk}"


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {k: v for k, v in value.items() if isinstance(v, str)}
