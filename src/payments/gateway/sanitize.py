"""Reduction of provider responses to a canonical, deterministic shape.

Provider responses carry headers (request ids, dates, rate-limit counters)
and body fields that differ between two otherwise identical calls. Before a
response is treated as authoritative it is reduced here: headers are
dropped, only the whitelisted body keys survive, nested ids are flattened
and keys are sorted, so two replicas observing the same session reach
byte-identical results.
"""

import json
from dataclasses import dataclass

from payments.gateway.port import SessionOutcome

_SESSION_FIELDS = (
    "id",
    "status",
    "payment_status",
    "client_reference_id",
    "amount_total",
    "currency",
    "payment_intent",
    "metadata",
    "url",
)

_ERROR_FIELDS = ("type", "code", "message", "param")


@dataclass(frozen=True)
class CanonicalResponse:
    """A provider response with everything nondeterministic removed."""

    status_code: int
    body: dict

    def to_bytes(self) -> bytes:
        return canonical_bytes({"status": self.status_code, "body": self.body})


def canonical_bytes(value) -> bytes:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=True).encode("utf-8")


def _flatten_id(value):
    if isinstance(value, dict):
        return value.get("id")
    return value


def canonical_session(payload: dict) -> dict:
    """Keep only the checkout session fields the core relies on.

    An expanded ``payment_intent`` is flattened to its id; its status is kept
    as ``payment_intent_status``.
    """
    session = {}
    for key in _SESSION_FIELDS:
        if key not in payload or payload[key] is None:
            continue
        value = payload[key]
        if key == "payment_intent":
            if isinstance(value, dict) and value.get("status"):
                session["payment_intent_status"] = value["status"]
            value = _flatten_id(value)
        elif key == "metadata":
            value = {str(k): str(v) for k, v in sorted((value or {}).items())}
        session[key] = value
    return session


def canonical_error(payload: dict) -> dict:
    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return {}
    return {key: error[key] for key in _ERROR_FIELDS if error.get(key) is not None}


def reduce_response(status_code: int, content: bytes) -> CanonicalResponse:
    """Reduce a raw provider response to its canonical form.

    Only the status code and body take part; headers are ignored entirely.
    Unparseable bodies reduce to an empty body.
    """
    try:
        payload = json.loads(content or b"{}")
    except (ValueError, UnicodeDecodeError):
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    if 200 <= status_code < 300:
        body = canonical_session(payload)
    else:
        body = {"error": canonical_error(payload)}
    return CanonicalResponse(status_code=status_code, body=body)


def outcome_for(session: dict) -> SessionOutcome:
    """Map a canonical checkout session onto the core's three outcomes."""
    status = session.get("status")
    payment_status = session.get("payment_status")
    intent_status = session.get("payment_intent_status")

    if status == "complete" and payment_status in ("paid", "no_payment_required"):
        return SessionOutcome.COMPLETED
    if status == "expired" or intent_status == "canceled":
        return SessionOutcome.FAILED
    if status == "complete" and payment_status == "unpaid" and intent_status == "requires_payment_method":
        # a delayed payment method was declined after the session closed
        return SessionOutcome.FAILED
    # "open", or "complete" with a delayed payment method still settling
    return SessionOutcome.PENDING
