"""
Typed bootstrap errors and the machine-readable error envelope.

Every failure the bootstrap can raise carries a stable code.
Only AuthenticationRequired is recoverable, and only inside the
clone retry loop; everything else propagates to the caller with
its original message.
"""
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any


ERROR_CODE_POLICY: dict[str, dict[str, Any]] = {
    "DOTINIT_INT_UNHANDLED_EXCEPTION": {
        "severity": "error",
        "category": "internal",
    },
    "DOTINIT_INT_KEYBOARD_INTERRUPT": {
        "severity": "warn",
        "category": "workflow",
    },
    "DOTINIT_INT_EOF_INTERRUPT": {
        "severity": "warn",
        "category": "workflow",
    },
    "DOTINIT_FS_DESTINATION_CONFLICT": {
        "severity": "error",
        "category": "filesystem",
    },
    "DOTINIT_NET_UNSUPPORTED_TRANSPORT": {
        "severity": "error",
        "category": "network",
    },
    "DOTINIT_NET_AUTH_REQUIRED": {
        "severity": "warn",
        "category": "network",
    },
    "DOTINIT_NET_MALFORMED_URL": {
        "severity": "error",
        "category": "network",
    },
    "DOTINIT_GIT_EXTERNAL_FAIL": {
        "severity": "error",
        "category": "git",
    },
    "DOTINIT_GIT_EMBEDDED_FAIL": {
        "severity": "error",
        "category": "git",
    },
}


class BootstrapError(RuntimeError):
    """Base class for failures raised while bootstrapping."""
    code = "DOTINIT_INT_UNHANDLED_EXCEPTION"
    retryable = False


class DestinationConflict(BootstrapError):
    code = "DOTINIT_FS_DESTINATION_CONFLICT"

    def __init__(self, path: object) -> None:
        super().__init__(f"{path}: not a directory")
        self.path = path


class UnsupportedTransport(BootstrapError):
    code = "DOTINIT_NET_UNSUPPORTED_TRANSPORT"

    def __init__(self, url: str) -> None:
        super().__init__("builtin git does not support cloning repos "
                         "over ssh, please install git")
        self.url = url


class AuthenticationRequired(BootstrapError):
    code = "DOTINIT_NET_AUTH_REQUIRED"
    retryable = True

    def __init__(self, url: str, message: str = "authentication required"
                ) -> None:
        super().__init__(message)
        self.url = url


class MalformedURL(BootstrapError):
    code = "DOTINIT_NET_MALFORMED_URL"

    def __init__(self, url: str, reason: object) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url


class ExternalToolFailure(BootstrapError):
    code = "DOTINIT_GIT_EXTERNAL_FAIL"

    def __init__(self, message: str, returncode: int | None = None
                ) -> None:
        super().__init__(message)
        self.returncode = returncode


class EmbeddedOperationFailure(BootstrapError):
    code = "DOTINIT_GIT_EMBEDDED_FAIL"


def error_code_for(error: BaseException) -> str:
    """Map any exception to a stable code."""
    if isinstance(error, BootstrapError): return error.code
    if isinstance(error, KeyboardInterrupt):
        return "DOTINIT_INT_KEYBOARD_INTERRUPT"
    if isinstance(error, EOFError):
        return "DOTINIT_INT_EOF_INTERRUPT"
    return "DOTINIT_INT_UNHANDLED_EXCEPTION"


def error_policy_for(
    code: str,
    fallback_severity: str = "error",
    fallback_category: str = "workflow",
) -> dict[str, str]:
    """Resolve canonical severity/category for a stable code."""
    policy = ERROR_CODE_POLICY.get(code.strip(), {})
    severity = str(policy.get("severity", fallback_severity)).strip()
    category = str(policy.get("category", fallback_category)).strip()
    return {
        "severity": severity or fallback_severity,
        "category": category or fallback_category,
    }


@dataclass(frozen=True)
class ErrorEnvelope:
    code: str
    severity: str
    category: str
    message: str
    operation: str
    retryable: bool
    suggested_fix: str
    context: dict[str, object]

    def as_dict(self) -> dict[str, object]:
        return {
            "code": self.code,
            "severity": self.severity,
            "category": self.category,
            "message": self.message,
            "operation": self.operation,
            "retryable": self.retryable,
            "suggested_fix": self.suggested_fix,
            "context": self.context,
        }

    def with_runtime_schema(self) -> dict[str, object]:
        payload = self.as_dict()
        payload["schema"] = "dotinit.error_envelope.v1"
        payload["schema_version"] = 1
        payload["generated_at"] = datetime.now(timezone.utc).isoformat(
            timespec="seconds"
        ).replace("+00:00", "Z")
        return payload


def build_error_envelope(
    error: BaseException,
    operation: str,
    context: dict[str, object],
    suggested_fix: str = "",
) -> ErrorEnvelope:
    """Construct a typed error envelope from a raised error."""
    code = error_code_for(error)
    policy = error_policy_for(code)
    message = str(error).strip()
    if not message:
        message = type(error).__name__
    return ErrorEnvelope(
        code=code,
        severity=policy["severity"],
        category=policy["category"],
        message=message,
        operation=operation,
        retryable=bool(getattr(error, "retryable", False)),
        suggested_fix=suggested_fix,
        context=context,
    )
