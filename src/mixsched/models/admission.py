# src/mixsched/models/admission.py
"""
Pydantic models of the admission.k8s.io/v1 AdmissionReview envelope.
Only the fields used by the webhook are declared; unknown fields are ignored
so newer API server versions do not break decoding.
"""

import base64
import json
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

ADMISSION_API_VERSION = "admission.k8s.io/v1"
JSON_PATCH_TYPE = "JSONPatch"


class AdmissionOperation(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CONNECT = "CONNECT"


class GroupVersionKind(BaseModel):
    model_config = ConfigDict(extra="ignore")

    group: str = ""
    version: str = ""
    kind: str = ""


class AdmissionRequest(BaseModel):
    """The request half of an AdmissionReview."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    uid: str = Field(..., description="Identifier the response must echo back.")
    kind: GroupVersionKind
    operation: AdmissionOperation
    namespace: str = ""
    name: str = ""
    object: Optional[Any] = Field(None, description="Object being admitted.")
    old_object: Optional[Any] = Field(None, alias="oldObject", description="Prior object for UPDATE/DELETE.")


class PatchOperation(BaseModel):
    """A single RFC 6902 JSON patch operation."""

    op: str
    path: str
    value: Any = None


class ResponseStatus(BaseModel):
    code: int
    message: str


class AdmissionResponse(BaseModel):
    """The response half of an AdmissionReview."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str
    allowed: bool
    patch: Optional[str] = None
    patch_type: Optional[str] = Field(None, alias="patchType")
    status: Optional[ResponseStatus] = None

    @classmethod
    def allow(cls, uid: str) -> "AdmissionResponse":
        return cls(uid=uid, allowed=True)

    @classmethod
    def deny(cls, uid: str, message: str, code: int = 400) -> "AdmissionResponse":
        return cls(uid=uid, allowed=False, status=ResponseStatus(code=code, message=message))

    @classmethod
    def with_patch(cls, uid: str, operations: List[PatchOperation]) -> "AdmissionResponse":
        payload = json.dumps([op.model_dump() for op in operations]).encode()
        return cls(
            uid=uid,
            allowed=True,
            patch=base64.b64encode(payload).decode(),
            patch_type=JSON_PATCH_TYPE,
        )

    def decoded_patch(self) -> List[dict]:
        """Returns the JSON patch carried by the response, or [] when there is none."""
        if not self.patch:
            return []
        return json.loads(base64.b64decode(self.patch))


class AdmissionReview(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api_version: str = Field(ADMISSION_API_VERSION, alias="apiVersion")
    kind: str = "AdmissionReview"
    request: Optional[AdmissionRequest] = None
    response: Optional[AdmissionResponse] = None

    @classmethod
    def respond(cls, response: AdmissionResponse) -> "AdmissionReview":
        return cls(response=response)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
