"""ConversionReview handling for custom resources backed by a container.

`try_convert` never raises: every failure is reported inside the response
review with an HTTP status code, the way the API server expects from a
conversion webhook.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from schemaevo.core.conversion.runtime import ConversionRuntime, ConversionTracker
from schemaevo.core.errors import ConversionError
from schemaevo.core.pipeline import GenerationResult

from .crd import resource_names

log = logging.getLogger("schemaevo.k8s")

REVIEW_API_VERSION = "apiextensions.k8s.io/v1"


def _failure(message: str, code: int) -> Dict[str, Any]:
    return {"status": "Failure", "message": message, "reason": message, "code": int(code)}


class ConversionDispatcher:
    def __init__(
        self,
        result: GenerationResult,
        runtime: Optional[ConversionRuntime] = None,
        *,
        group: Optional[str] = None,
        kind: Optional[str] = None,
        track_conversions: bool = False,
    ):
        self.result = result
        self.runtime = runtime or ConversionRuntime(result)
        k8s = result.spec.k8s
        self.group = group or (k8s.group if k8s is not None else None)
        if not self.group:
            raise ValueError(f"no API group configured for {result.name}")
        self.kind = kind or (resource_names(result)["kind"] if k8s is not None else result.name)
        self.track_conversions = track_conversions

    def api_version(self, version: str) -> str:
        return f"{self.group}/{version}"

    def _version_of(self, api_version: Any, *, what: str) -> str:
        if not isinstance(api_version, str):
            raise ConversionError(f"{what} must be a string")
        group, sep, version = api_version.rpartition("/")
        if not sep or group != self.group or version not in self.result.registry:
            raise ConversionError(f"unknown {what} {api_version!r} for {self.kind}")
        return version

    def convert_object(self, obj: Mapping[str, Any], desired: str) -> Dict[str, Any]:
        if not isinstance(obj, Mapping):
            raise ConversionError("every object must be a JSON object")
        if "apiVersion" not in obj:
            raise ConversionError("object is missing the field apiVersion")
        current = self._version_of(obj["apiVersion"], what="apiVersion")

        out = copy.deepcopy(dict(obj))
        if current == desired:
            return out

        tracker = None
        status = out.get("status") if isinstance(out.get("status"), dict) else None
        if self.track_conversions:
            tracker = ConversionTracker.from_list((status or {}).get("changedValues"))

        out["spec"] = self.runtime.convert(out.get("spec") or {}, current, desired, tracker=tracker)
        out["apiVersion"] = self.api_version(desired)

        if tracker is not None:
            status = dict(status or {})
            status["changedValues"] = tracker.to_list()
            out["status"] = status

        log.debug("converted %s from %s to %s", self.kind, current, desired)
        return out

    def convert_objects(self, objects: List[Mapping[str, Any]], desired_api_version: str) -> List[Dict[str, Any]]:
        desired = self._version_of(desired_api_version, what="desiredAPIVersion")
        return [self.convert_object(obj, desired) for obj in objects]

    def _request(self, review: Any) -> Tuple[str, str, List[Any]]:
        if not isinstance(review, Mapping):
            raise ConversionError("the ConversionReview must be a JSON object")
        request = review.get("request")
        if not isinstance(request, Mapping):
            raise ConversionError("the ConversionReview has no request")
        uid = request.get("uid")
        desired = request.get("desiredAPIVersion")
        objects = request.get("objects")
        if not isinstance(uid, str) or not uid:
            raise ConversionError("the ConversionReview request has no uid")
        if not isinstance(desired, str):
            raise ConversionError("the ConversionReview request has no desiredAPIVersion")
        if not isinstance(objects, list):
            raise ConversionError("the ConversionReview request has no objects")
        return uid, desired, objects

    def try_convert(self, review: Any) -> Dict[str, Any]:
        api_version = REVIEW_API_VERSION
        if isinstance(review, Mapping) and isinstance(review.get("apiVersion"), str):
            api_version = review["apiVersion"]
        response: Dict[str, Any]

        try:
            uid, desired, objects = self._request(review)
        except ConversionError as exc:
            log.warning("invalid ConversionReview for %s: %s", self.kind, exc)
            uid = ""
            if isinstance(review, Mapping) and isinstance(review.get("request"), Mapping):
                uid = str(review["request"].get("uid") or "")
            response = {"uid": uid, "result": _failure(str(exc), exc.http_status_code), "convertedObjects": []}
        else:
            try:
                converted = self.convert_objects(objects, desired)
            except ConversionError as exc:
                log.warning("conversion of %d %s object(s) to %s failed: %s", len(objects), self.kind, desired, exc)
                response = {"uid": uid, "result": _failure(str(exc), exc.http_status_code), "convertedObjects": []}
            else:
                log.info("converted %d %s object(s) to %s", len(converted), self.kind, desired)
                response = {"uid": uid, "result": {"status": "Success"}, "convertedObjects": converted}

        return {"apiVersion": api_version, "kind": "ConversionReview", "response": response}
