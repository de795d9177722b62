"""
Domain models for the Moray batch benchmark.

Defines the Manta object metadata record that the benchmark writes into the
bucket, and the placement entries ("sharks") recording which storage nodes
hold a copy of the object. Field aliases match the JSON shape Manta stores in
Moray, so `to_value()` yields exactly what a put operation sends.
"""
from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class Placement(BaseModel):
    """
    One copy of an object's data: the datacenter and the storage node holding it.
    """

    datacenter: str = Field(..., description="Datacenter the storage node lives in.")
    manta_storage_id: str = Field(..., description="Storage node hostname, e.g. `3.stor.domain`.")

    model_config = {
        "frozen": True,
    }


class ManifestObject(BaseModel):
    """
    Metadata record for a single stored object.
    """

    object_id: str = Field(..., alias="objectId", description="Unique object identifier.")
    key: str = Field(..., description="Full object path.")
    owner: str = Field(..., description="Owning account uuid.")
    creator: str = Field(..., description="Creating account uuid.")
    dirname: str = Field(..., description="Parent directory path.")
    name: str = Field(..., description="Object name (last path element).")
    type: str = Field("object", description="Entry type.")
    content_length: int = Field(..., alias="contentLength")
    content_md5: str = Field(..., alias="contentMD5")
    content_type: str = Field("application/octet-stream", alias="contentType")
    etag: str = Field(...)
    mtime: int = Field(..., description="Modification time, ms since epoch.")
    headers: Dict[str, Any] = Field(default_factory=dict)
    roles: List[str] = Field(default_factory=list)
    vnode: int = Field(...)
    sharks: List[Placement] = Field(default_factory=list)

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    def with_sharks(self, sharks: List[Placement]) -> "ManifestObject":
        """Return a copy carrying a new placement list; this instance is untouched."""
        return self.model_copy(update={"sharks": list(sharks)})

    def to_value(self) -> Dict[str, Any]:
        """Serialize to the plain JSON value written to the store."""
        return self.model_dump(by_alias=True, mode="json")


__all__ = ["ManifestObject", "Placement"]
