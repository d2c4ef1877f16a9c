from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def forbidden(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(403, code, message, details or {})

    @staticmethod
    def not_found(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(404, code, message, details or {})

    @staticmethod
    def conflict(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(409, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})

    @staticmethod
    def from_rejection(meta: Dict[str, Any]) -> "ApiError":
        """Map an executor rejection ({"ok": False, "error", "reason", ...}) to an HTTP error."""
        code = str(meta.get("error") or "rejected")
        reason = str(meta.get("reason") or code)
        details: Dict[str, Any] = {"reason": reason}
        if meta.get("details") is not None:
            details["details"] = meta["details"]
        if meta.get("tx_id"):
            details["tx_id"] = meta["tx_id"]

        if code in {"forbidden", "bad_sig"}:
            return ApiError.forbidden(code, reason, details)
        if code == "not_found":
            return ApiError.not_found(code, reason, details)
        if code == "duplicate_tx":
            return ApiError.conflict(code, reason, details)
        if code in {"tx_unimplemented", "domain_error"}:
            return ApiError.internal(code, reason, details)
        return ApiError.bad_request(code, reason, details)

    def to_json(self) -> Dict[str, Any]:
        return {"ok": False, "error": {"code": self.code, "message": self.message, "details": self.details}}
